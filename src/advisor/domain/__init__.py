"""
Domain layer for the advisor orchestrator.

Contains pure domain entities and port interfaces with no infrastructure
dependencies.
"""

from .entities import (
    AgentContext,
    AgentStatus,
    AttemptOutcome,
    ChainExhausted,
    ChainResult,
    ChainSuccess,
    Completion,
    KnowledgeEntry,
    Message,
    MessageRole,
    PromptMessage,
    PromptRole,
    ProviderAttempt,
    ProviderKind,
    ProviderStatus,
    ProviderTestResult,
    ResponseSource,
    RoutingDecision,
    Session,
    ToolDefinition,
    ToolResult,
    utcnow,
)
from .ports import IConversationSink, ILLMProvider

__all__ = [
    # Entities
    "AgentContext",
    "AgentStatus",
    "AttemptOutcome",
    "ChainExhausted",
    "ChainResult",
    "ChainSuccess",
    "Completion",
    "KnowledgeEntry",
    "Message",
    "MessageRole",
    "PromptMessage",
    "PromptRole",
    "ProviderAttempt",
    "ProviderKind",
    "ProviderStatus",
    "ProviderTestResult",
    "ResponseSource",
    "RoutingDecision",
    "Session",
    "ToolDefinition",
    "ToolResult",
    "utcnow",
    # Ports
    "IConversationSink",
    "ILLMProvider",
]
