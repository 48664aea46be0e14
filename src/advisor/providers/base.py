"""
Base LLM Provider Implementation.

Provides the health cache and the bounded generate call shared by all
providers. Subclasses implement ``_probe`` and ``_generate`` for a
specific API.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from ..domain.entities import (
    Completion,
    PromptMessage,
    ProviderKind,
    ProviderStatus,
    utcnow,
)
from ..domain.ports import ILLMProvider
from ..exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)


@dataclass
class LLMProviderConfig:
    """Configuration for LLM providers.

    Attributes:
        model: Default model name
        api_key: API key (None for local servers)
        base_url: Optional custom base URL
        models: Additional models the provider serves
        timeout: Generate timeout in seconds
        probe_timeout: Health probe timeout in seconds
        health_ttl: How long a health result is trusted, in seconds
        temperature: Default temperature
        max_tokens: Default max tokens
    """

    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    models: list[str] = field(default_factory=list)
    timeout: float = 20.0
    probe_timeout: float = 5.0
    health_ttl: float = 45.0
    temperature: float = 0.7
    max_tokens: int = 1000
    extra: dict[str, Any] = field(default_factory=dict)


class BaseLLMProvider(ILLMProvider, ABC):
    """Base class for LLM provider implementations.

    Availability is cached for ``config.health_ttl`` seconds. Within that
    window ``is_available`` answers from the cache without touching the
    network. ``check_health`` always probes.
    """

    kind: ProviderKind = ProviderKind.REMOTE

    def __init__(
        self,
        provider_id: str,
        name: str,
        config: LLMProviderConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the provider.

        Args:
            provider_id: Stable identifier used in the chain
            name: Display name
            config: Provider configuration
            clock: Monotonic clock, injectable for tests
        """
        self._id = provider_id
        self.name = name
        self.config = config
        self._clock = clock

        self._available: Optional[bool] = None
        self._checked_at: Optional[float] = None
        self._checked_at_wall: Optional[datetime] = None
        self.latency_ms: Optional[int] = None
        self.last_error: Optional[str] = None

    @property
    def id(self) -> str:
        return self._id

    @property
    def default_model(self) -> str:
        return self.config.model

    @property
    def models(self) -> list[str]:
        """Return served models, default model first."""
        result = [self.config.model]
        for model in self.config.models:
            if model not in result:
                result.append(model)
        return result

    def resolve_model(self, preferred: Optional[str] = None) -> str:
        """Pick the preferred model if served, else the default."""
        if preferred and preferred in self.models:
            return preferred
        return self.default_model

    # ----------------------------------------
    # Health cache
    # ----------------------------------------

    @property
    def cache_fresh(self) -> bool:
        if self._checked_at is None:
            return False
        return (self._clock() - self._checked_at) < self.config.health_ttl

    @property
    def cached_available(self) -> Optional[bool]:
        """Last cached availability, or None if never checked."""
        return self._available

    def _record_health(self, available: bool, error: Optional[str] = None) -> None:
        self._available = available
        self._checked_at = self._clock()
        self._checked_at_wall = utcnow()
        self.last_error = error

    def mark_unavailable(self, reason: str) -> None:
        """Cache this provider as unavailable for the rest of the TTL."""
        logger.warning(f"Provider {self.id} marked unavailable: {reason}")
        self._record_health(False, reason)

    async def is_available(self) -> bool:
        if self.cache_fresh:
            return bool(self._available)
        return await self.check_health()

    async def check_health(self) -> bool:
        start = time.perf_counter()
        error: Optional[str] = None
        try:
            available = await asyncio.wait_for(
                self._probe(), timeout=self.config.probe_timeout
            )
        except asyncio.TimeoutError:
            available = False
            error = f"Health probe timed out after {self.config.probe_timeout}s"
        except ProviderError as e:
            available = False
            error = e.message
        except Exception as e:
            available = False
            error = f"Health probe failed: {e}"

        if available:
            self.latency_ms = int((time.perf_counter() - start) * 1000)
            logger.debug(f"Provider {self.id} healthy ({self.latency_ms}ms)")
        else:
            logger.info(f"Provider {self.id} unavailable: {error}")

        self._record_health(bool(available), error)
        return bool(available)

    def status(self) -> ProviderStatus:
        """Return the cached status without probing."""
        return ProviderStatus(
            id=self.id,
            name=self.name,
            available=bool(self._available),
            models=self.models,
            kind=self.kind,
            latency_ms=self.latency_ms,
            error=self.last_error,
            checked_at=self._checked_at_wall,
        )

    # ----------------------------------------
    # Generation
    # ----------------------------------------

    async def generate(
        self,
        messages: list[PromptMessage],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        model_name = self.resolve_model(model)
        temperature = self.config.temperature if temperature is None else temperature
        max_tokens = max_tokens or self.config.max_tokens

        start = time.perf_counter()
        try:
            completion = await asyncio.wait_for(
                self._generate(messages, model_name, temperature, max_tokens),
                timeout=self.config.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderTimeoutError(
                f"{self.name} did not respond within {self.config.timeout}s",
                provider_id=self.id,
                timeout_seconds=self.config.timeout,
                cause=e,
            ) from e
        except ProviderError:
            raise
        except Exception as e:
            raise self._translate_error(e) from e

        if not completion.text or not completion.text.strip():
            raise ProviderError(
                f"{self.name} returned an empty response", provider_id=self.id
            )

        completion.latency_ms = int((time.perf_counter() - start) * 1000)
        self.latency_ms = completion.latency_ms
        return completion

    def _translate_error(self, error: Exception) -> ProviderError:
        """Map a client library exception to a provider error.

        Subclasses override to recognise their SDK's exception types.
        """
        return ProviderError(
            f"Unexpected error from {self.name}: {error}",
            provider_id=self.id,
            cause=error,
        )

    def _require_api_key(self) -> None:
        if not self.config.api_key:
            raise ProviderUnavailableError(
                f"{self.name} API key not configured", provider_id=self.id
            )

    @abstractmethod
    async def _probe(self) -> bool:
        """Check the backend is reachable. Must be implemented by subclasses."""
        pass

    @abstractmethod
    async def _generate(
        self,
        messages: list[PromptMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        """Make one non-streaming request. Must be implemented by subclasses."""
        pass

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
