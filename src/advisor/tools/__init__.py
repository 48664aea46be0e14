"""Agent tools and the knowledge base."""

from .builtin import create_builtin_tools
from .knowledge import DEFAULT_KNOWLEDGE, KnowledgeBase, create_default_knowledge_base
from .registry import ToolRegistry

__all__ = [
    "DEFAULT_KNOWLEDGE",
    "KnowledgeBase",
    "ToolRegistry",
    "create_builtin_tools",
    "create_default_knowledge_base",
]
