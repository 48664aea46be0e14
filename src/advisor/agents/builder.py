"""
Agent Builder.

Creates agents from templates and registers them. Templates can be
added at runtime and exported or imported as validated dictionaries.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from ..exceptions import ConfigurationError, TemplateNotFoundError
from .agent import Agent
from .registry import AgentRegistry
from .templates import BUILTIN_TEMPLATES, AgentTemplate

logger = logging.getLogger(__name__)


class AgentBuilder:
    """Builds agents from templates into an ``AgentRegistry``.

    Calling ``create_agent`` for an id that is already registered replaces
    the existing agent with a fresh one built from the template. The
    replacement is logged at WARNING.

    Usage:
        builder = AgentBuilder(registry)
        builder.create_all()
        builder.create_agent("marketing", preferred_provider="groq")
    """

    def __init__(
        self,
        registry: AgentRegistry,
        templates: Optional[Iterable[AgentTemplate]] = None,
    ):
        """Initialize the builder.

        Args:
            registry: Registry that created agents are added to
            templates: Templates to start with (built-ins by default)
        """
        self.registry = registry
        self._templates: dict[str, AgentTemplate] = {}
        for template in BUILTIN_TEMPLATES if templates is None else templates:
            self.add_template(template)

    def add_template(self, template: AgentTemplate) -> None:
        if template.id in self._templates:
            logger.info(f"Replacing agent template {template.id}")
        self._templates[template.id] = template

    def get_template(self, template_id: str) -> AgentTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def get_templates(self) -> list[AgentTemplate]:
        return list(self._templates.values())

    def create_agent(self, template_id: str, **customizations: Any) -> Agent:
        """Create an agent from a template and register it.

        Args:
            template_id: Template to build from
            **customizations: Agent field overrides (e.g., preferred_provider)

        Returns:
            The registered agent

        Raises:
            TemplateNotFoundError: If the template id is unknown
            ConfigurationError: If a customization is not an agent field
        """
        template = self.get_template(template_id)
        try:
            agent = Agent.from_template(template, **customizations)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid customization for agent {template_id}: {e}", cause=e
            ) from e

        previous = self.registry.register(agent)
        if previous is not None:
            logger.warning(
                f"Agent {agent.id} already existed and was replaced "
                f"with a fresh instance from template {template_id}"
            )
        else:
            logger.info(f"Created agent {agent.id} from template {template_id}")
        return agent

    def create_all(self) -> list[Agent]:
        """Create one agent per known template."""
        return [self.create_agent(t.id) for t in self.get_templates()]

    def export_template(self, template_id: str) -> dict[str, Any]:
        from ..schemas import AgentTemplateSchema

        return AgentTemplateSchema.from_template(self.get_template(template_id)).model_dump()

    def import_template(self, data: dict[str, Any]) -> AgentTemplate:
        """Validate and add a template from exported data.

        Raises:
            ConfigurationError: If the data fails validation
        """
        from ..schemas import AgentTemplateSchema

        try:
            template = AgentTemplateSchema.model_validate(data).to_template()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid agent template: {e}", cause=e) from e

        self.add_template(template)
        return template
