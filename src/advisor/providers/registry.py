"""
Provider registry and selection.

Holds providers in priority order and answers "which providers are up"
from their health caches.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

from ..domain.entities import PromptMessage, PromptRole, ProviderStatus, ProviderTestResult
from ..exceptions import ProviderError
from .base import BaseLLMProvider

logger = logging.getLogger(__name__)

TEST_PROMPT = [
    PromptMessage(PromptRole.USER, "Reply with the single word: ok"),
]


class ProviderRegistry:
    """Ordered map of provider id to provider.

    Registration order is priority order: the first registered provider is
    tried first by the failover chain.
    """

    def __init__(self, providers: Optional[Iterable[BaseLLMProvider]] = None):
        self._providers: dict[str, BaseLLMProvider] = {}
        for provider in providers or ():
            self.register(provider)

    def register(self, provider: BaseLLMProvider) -> None:
        if provider.id in self._providers:
            logger.warning(f"Replacing registered provider {provider.id}")
        self._providers[provider.id] = provider

    def get(self, provider_id: str) -> Optional[BaseLLMProvider]:
        return self._providers.get(provider_id)

    def ordered(self) -> list[BaseLLMProvider]:
        return list(self._providers.values())

    def ids(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    async def detect(self) -> list[ProviderStatus]:
        """Return statuses for all providers, probing only stale caches."""
        statuses = []
        for provider in self.ordered():
            await provider.is_available()
            statuses.append(provider.status())
        return statuses

    def cached_statuses(self) -> list[ProviderStatus]:
        """Return last known statuses without any network I/O."""
        return [provider.status() for provider in self.ordered()]

    async def get_best_provider(self) -> Optional[BaseLLMProvider]:
        """Return the first available provider in priority order."""
        for provider in self.ordered():
            if await provider.is_available():
                return provider
        return None

    async def test_provider(self, provider_id: str) -> ProviderTestResult:
        """Force a fresh probe and a tiny generation against one provider.

        Never raises. Unknown ids and failures are reported in the result.
        """
        provider = self.get(provider_id)
        if provider is None:
            return ProviderTestResult(
                provider_id=provider_id,
                success=False,
                error=f"Unknown provider: {provider_id}",
            )

        start = time.perf_counter()
        if not await provider.check_health():
            return ProviderTestResult(
                provider_id=provider_id,
                success=False,
                latency_ms=int((time.perf_counter() - start) * 1000),
                error=provider.last_error or "Provider unavailable",
            )

        try:
            completion = await provider.generate(TEST_PROMPT, max_tokens=16)
        except ProviderError as e:
            logger.warning(f"Provider test failed for {provider_id}: {e}")
            return ProviderTestResult(
                provider_id=provider_id,
                success=False,
                latency_ms=int((time.perf_counter() - start) * 1000),
                error=e.message,
            )

        return ProviderTestResult(
            provider_id=provider_id,
            success=True,
            latency_ms=int((time.perf_counter() - start) * 1000),
            model=completion.model,
            sample=completion.text[:100],
        )

    async def aclose(self) -> None:
        for provider in self.ordered():
            await provider.aclose()
