"""
Validated input/output schemas.

Pydantic models for data crossing the admin boundary: agent configuration
updates and exported/imported agent templates.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .agents.templates import AgentTemplate, FallbackRule
from .domain.entities import AgentStatus


class AgentConfigUpdate(BaseModel):
    """Partial update accepted by ``configure_agent``.

    Only fields that were explicitly set are applied.
    """

    preferred_provider: Optional[str] = None
    preferred_model: Optional[str] = None
    status: Optional[AgentStatus] = None
    enable_llm: Optional[bool] = None

    class Config:
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "preferred_provider": "groq",
                "status": "paused",
            }
        }


class FallbackRuleSchema(BaseModel):
    keywords: list[str] = Field(min_length=1)
    response: str = Field(min_length=1)


class AgentTemplateSchema(BaseModel):
    """Serialized agent template for export and import."""

    id: str = Field(min_length=1, pattern=r"^[a-z0-9][a-z0-9\-]*$")
    name: str = Field(min_length=1)
    description: str = ""
    system_prompt: str = Field(min_length=1)
    default_fallback: str = Field(min_length=1)
    specialties: list[str] = Field(default_factory=list)
    trigger_keywords: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    priority: int = Field(default=50, ge=0, le=100)
    fallback_rules: list[FallbackRuleSchema] = Field(default_factory=list)
    preferred_provider: Optional[str] = None
    preferred_model: Optional[str] = None
    examples: list[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    @classmethod
    def from_template(cls, template: AgentTemplate) -> "AgentTemplateSchema":
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            system_prompt=template.system_prompt,
            default_fallback=template.default_fallback,
            specialties=list(template.specialties),
            trigger_keywords=list(template.trigger_keywords),
            tools=list(template.tools),
            priority=template.priority,
            fallback_rules=[
                FallbackRuleSchema(keywords=list(r.keywords), response=r.response)
                for r in template.fallback_rules
            ],
            preferred_provider=template.preferred_provider,
            preferred_model=template.preferred_model,
            examples=list(template.examples),
        )

    def to_template(self) -> AgentTemplate:
        return AgentTemplate(
            id=self.id,
            name=self.name,
            description=self.description,
            system_prompt=self.system_prompt,
            default_fallback=self.default_fallback,
            specialties=tuple(self.specialties),
            trigger_keywords=tuple(self.trigger_keywords),
            tools=tuple(self.tools),
            priority=self.priority,
            fallback_rules=tuple(
                FallbackRule(tuple(r.keywords), r.response) for r in self.fallback_rules
            ),
            preferred_provider=self.preferred_provider,
            preferred_model=self.preferred_model,
            examples=tuple(self.examples),
        )
