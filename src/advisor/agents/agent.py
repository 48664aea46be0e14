"""
Agent data.

Agents are plain data: identity, routing vocabulary, provider preferences
and status, plus the template their prompt and fallbacks come from. All
behaviour lives in ``AgentExecutor``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..domain.entities import AgentStatus
from .templates import AgentTemplate


@dataclass
class Agent:
    """A configured, routable agent.

    Only ``preferred_provider``, ``preferred_model``, ``status`` and
    ``enable_llm`` change after creation, through
    ``AgentOrchestrator.configure_agent``.
    """

    id: str
    name: str
    description: str
    template: AgentTemplate
    specialties: list[str] = field(default_factory=list)
    trigger_keywords: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    priority: int = 50
    preferred_provider: Optional[str] = None
    preferred_model: Optional[str] = None
    enable_llm: bool = True
    status: AgentStatus = AgentStatus.ACTIVE

    @classmethod
    def from_template(cls, template: AgentTemplate, **overrides: Any) -> "Agent":
        """Build an agent with fresh copies of the template's collections."""
        values: dict[str, Any] = {
            "id": template.id,
            "name": template.name,
            "description": template.description,
            "template": template,
            "specialties": list(template.specialties),
            "trigger_keywords": list(template.trigger_keywords),
            "tools": list(template.tools),
            "priority": template.priority,
            "preferred_provider": template.preferred_provider,
            "preferred_model": template.preferred_model,
        }
        for key in ("specialties", "trigger_keywords", "tools"):
            if key in overrides:
                overrides[key] = list(overrides[key])
        values.update(overrides)
        if isinstance(values.get("status"), str):
            values["status"] = AgentStatus(values["status"])
        return cls(**values)

    @property
    def is_active(self) -> bool:
        return self.status == AgentStatus.ACTIVE

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "specialties": list(self.specialties),
            "status": self.status.value,
            "priority": self.priority,
            "tools": list(self.tools),
        }

    def configuration(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "template_id": self.template.id,
            "preferred_provider": self.preferred_provider,
            "preferred_model": self.preferred_model,
            "enable_llm": self.enable_llm,
            "status": self.status.value,
            "priority": self.priority,
            "specialties": list(self.specialties),
            "trigger_keywords": list(self.trigger_keywords),
            "tools": list(self.tools),
        }
