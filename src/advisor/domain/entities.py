"""
Domain entities for the advisor orchestrator.

These are pure domain objects with no infrastructure dependencies.
They define the core data structures shared by providers, agents,
tools and the orchestrator.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Optional, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================
# Conversation Messages
# ============================================


class MessageRole(str, Enum):
    """Author of a stored conversation message."""

    USER = "user"
    AGENT = "agent"


class ResponseSource(str, Enum):
    """How an agent response was produced."""

    LLM = "llm"
    FALLBACK = "fallback"
    TOOL_AUGMENTED = "tool-augmented"


@dataclass(frozen=True)
class Message:
    """A single immutable entry in a session.

    Attributes:
        role: user or agent
        content: Message text
        timestamp: When the message entered the session
        agent_id: Agent that produced the message (agent messages only)
        confidence: Agent confidence in [0, 1] (agent messages only)
        metadata: source, processing_time_ms, provider_id, model,
            tools_used, routing_score, provider_attempts
    """

    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    agent_id: Optional[str] = None
    confidence: Optional[float] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> Optional[ResponseSource]:
        value = self.metadata.get("source")
        return ResponseSource(value) if value else None

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    def with_timestamp(self, timestamp: datetime) -> "Message":
        """Return a copy of this message stamped with ``timestamp``."""
        return dataclasses.replace(self, timestamp=timestamp)

    def frozen(self) -> "Message":
        """Return a copy whose metadata is read-only all the way down."""
        return dataclasses.replace(self, metadata=freeze(self.metadata))


def freeze(value: Any) -> Any:
    """Copy mappings into read-only proxies and sequences into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    return value


@dataclass
class Session:
    """An append-only conversation owned by the session store.

    Messages are kept in arrival order. A message whose timestamp is older
    than the current tail is re-stamped with the tail's timestamp so that
    timestamps never decrease.
    """

    id: str
    user_id: str = "anonymous"
    agent_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    last_activity_at: Optional[datetime] = None
    key_topics: list[str] = field(default_factory=list)
    _messages: list[Message] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if self.last_activity_at is None:
            self.last_activity_at = self.created_at

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def message_count(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> Message:
        """Append a message, returning the message as stored.

        The stored copy carries frozen metadata, so neither the caller nor
        later readers can change history.
        """
        message = message.frozen()
        if self._messages and message.timestamp < self._messages[-1].timestamp:
            message = message.with_timestamp(self._messages[-1].timestamp)
        self._messages.append(message)
        self.last_activity_at = max(self.last_activity_at, message.timestamp)
        if message.role == MessageRole.AGENT and message.agent_id:
            self.agent_id = message.agent_id
        return message

    def recent(self, limit: int) -> tuple[Message, ...]:
        """Return the last ``limit`` messages."""
        if limit <= 0:
            return ()
        return tuple(self._messages[-limit:])


# ============================================
# Provider Types
# ============================================


class PromptRole(str, Enum):
    """Role of a message sent to a language model."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class PromptMessage:
    """A message in the prompt handed to a provider."""

    role: PromptRole
    content: str

    def to_api(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Completion:
    """Result of a single successful generate call.

    Attributes:
        text: Generated text
        model: Model that produced the text
        provider_id: Provider that served the request
        latency_ms: Wall-clock time of the call
        finish_reason: Provider-reported stop reason ("stop", "length", ...)
        usage: Token counts when the provider reports them
    """

    text: str
    model: str
    provider_id: str
    latency_ms: int = 0
    finish_reason: Optional[str] = None
    usage: dict[str, int] = field(default_factory=dict)


class ProviderKind(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class ProviderStatus:
    """Snapshot of a provider's cached health."""

    id: str
    name: str
    available: bool
    models: list[str]
    kind: ProviderKind
    latency_ms: Optional[int] = None
    error: Optional[str] = None
    checked_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "available": self.available,
            "models": list(self.models),
            "kind": self.kind.value,
            "latency_ms": self.latency_ms,
            "error": self.error,
            "checked_at": self.checked_at.isoformat() if self.checked_at else None,
        }


@dataclass
class ProviderTestResult:
    """Outcome of an on-demand provider test."""

    provider_id: str
    success: bool
    latency_ms: Optional[int] = None
    error: Optional[str] = None
    model: Optional[str] = None
    sample: Optional[str] = None


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ProviderAttempt:
    """One step of a failover chain walk."""

    provider_id: str
    outcome: AttemptOutcome
    error: Optional[str] = None
    latency_ms: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "outcome": self.outcome.value,
            "error": self.error,
            "latency_ms": self.latency_ms,
        }


@dataclass
class ChainSuccess:
    completion: Completion
    attempts: list[ProviderAttempt] = field(default_factory=list)


@dataclass
class ChainExhausted:
    attempts: list[ProviderAttempt] = field(default_factory=list)


ChainResult = Union[ChainSuccess, ChainExhausted]


# ============================================
# Tools and Knowledge
# ============================================


ToolExecutor = Callable[[dict[str, Any]], Awaitable[Any]]
ArgumentExtractor = Callable[[str], dict[str, Any]]
ResultFormatter = Callable[[Any], str]


@dataclass
class ToolDefinition:
    """A tool agents can invoke.

    Attributes:
        id: Tool identifier (e.g., "market-analysis")
        name: Display name
        description: What the tool does
        parameters: JSON Schema for the tool's arguments
        executor: Async callable taking the argument dict
        triggers: Keywords that invoke the tool from free text
        extract_arguments: Derives arguments from the user's text
        format_result: Renders the tool output for appending to a reply
    """

    id: str
    name: str
    description: str
    executor: ToolExecutor
    parameters: dict[str, Any] = field(default_factory=dict)
    triggers: tuple[str, ...] = ()
    extract_arguments: Optional[ArgumentExtractor] = None
    format_result: Optional[ResultFormatter] = None


@dataclass
class ToolResult:
    """Result of a tool invocation. Never raised, always returned."""

    tool_id: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    latency_ms: int = 0


@dataclass(frozen=True)
class KnowledgeEntry:
    id: str
    topic: str
    content: str
    tags: tuple[str, ...] = ()
    category: str = "general"


# ============================================
# Routing / Agent Context
# ============================================


class AgentStatus(str, Enum):
    """Lifecycle state of an agent. Only active agents are routed to."""

    ACTIVE = "active"
    PAUSED = "paused"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class RoutingDecision:
    """Which agent handles a message and why.

    ``defaulted`` is True when no agent cleared the routing threshold and
    the default agent was chosen.
    """

    agent_id: str
    score: int
    confidence: float
    matched_terms: tuple[str, ...] = ()
    defaulted: bool = False


@dataclass
class AgentContext:
    """Per-request context handed from the orchestrator to an agent."""

    session_id: Optional[str] = None
    user_id: str = "anonymous"
    history: tuple[Message, ...] = ()
    key_topics: tuple[str, ...] = ()
    routing: Optional[RoutingDecision] = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
