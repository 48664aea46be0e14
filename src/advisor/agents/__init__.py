"""Agents: templates, builder, registry and the shared executor."""

from .agent import Agent
from .builder import AgentBuilder
from .executor import AgentExecutor, score_completion
from .fallback import FallbackReply, select_fallback
from .prompt_builder import PromptBuilder
from .registry import AgentRegistry
from .templates import BUILTIN_TEMPLATES, AgentTemplate, FallbackRule

__all__ = [
    "Agent",
    "AgentBuilder",
    "AgentExecutor",
    "AgentRegistry",
    "AgentTemplate",
    "BUILTIN_TEMPLATES",
    "FallbackReply",
    "FallbackRule",
    "PromptBuilder",
    "score_completion",
    "select_fallback",
]
