"""
Port interfaces (abstract base classes) for the advisor.

These define the contracts that adapters must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .entities import Completion, Message, PromptMessage, Session


# ============================================
# LLM Provider Interface
# ============================================


class ILLMProvider(ABC):
    """Interface for language-model backends (Ollama, OpenAI, Claude, ...).

    Implementations handle the specifics of each API while giving the
    failover chain one uniform surface: a cached availability check, a
    forced health probe, and a single bounded generate call.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Stable provider identifier (e.g., 'ollama', 'groq')."""
        pass

    @property
    @abstractmethod
    def models(self) -> list[str]:
        """Models this provider serves, default model first."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Return cached availability, probing only when the cache is stale."""
        pass

    @abstractmethod
    async def check_health(self) -> bool:
        """Probe the backend now and refresh the cached availability."""
        pass

    @abstractmethod
    async def generate(
        self,
        messages: list[PromptMessage],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        """Make one bounded generation attempt.

        Raises:
            ProviderTimeoutError: If the call exceeds the generate timeout
            ProviderUnavailableError: If the backend cannot be reached
            ProviderError: On any non-success or malformed response
        """
        pass


# ============================================
# Conversation Sink Interface
# ============================================


class IConversationSink(ABC):
    """Optional write-only destination for session messages.

    The orchestrator forwards messages opportunistically. Failures are
    logged and never affect the response.
    """

    @abstractmethod
    async def record(self, session: Session, messages: list[Message]) -> None:
        pass
