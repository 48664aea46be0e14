"""
Failover chain over registered providers.

Walks providers one at a time and returns the first successful
completion. Exhausting the chain is reported as a value, not raised.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.entities import (
    AttemptOutcome,
    ChainExhausted,
    ChainResult,
    ChainSuccess,
    PromptMessage,
    ProviderAttempt,
)
from ..exceptions import ProviderError, ProviderTimeoutError, ProviderUnavailableError
from .base import BaseLLMProvider
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


class FailoverChain:
    """Sequential, single-attempt-per-provider failover.

    Order: the preferred provider (if registered), then the registry's
    priority order, without duplicates. Providers whose cached health says
    unavailable are skipped without a probe. Each remaining provider gets
    exactly one generate call.

    Usage:
        chain = FailoverChain(registry)
        result = await chain.run(prompt, preferred_provider="groq")
        if isinstance(result, ChainSuccess):
            print(result.completion.text)
    """

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    def plan(self, preferred_provider: Optional[str] = None) -> list[BaseLLMProvider]:
        """Return providers in the order they will be attempted."""
        order: list[BaseLLMProvider] = []
        if preferred_provider:
            preferred = self.registry.get(preferred_provider)
            if preferred is not None:
                order.append(preferred)
            else:
                logger.debug(f"Preferred provider {preferred_provider} not registered")
        for provider in self.registry.ordered():
            if provider not in order:
                order.append(provider)
        return order

    async def run(
        self,
        messages: list[PromptMessage],
        preferred_provider: Optional[str] = None,
        preferred_model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChainResult:
        attempts: list[ProviderAttempt] = []

        for provider in self.plan(preferred_provider):
            if not await provider.is_available():
                attempts.append(
                    ProviderAttempt(
                        provider.id,
                        AttemptOutcome.SKIPPED,
                        error=provider.last_error,
                    )
                )
                continue

            try:
                completion = await provider.generate(
                    messages,
                    model=preferred_model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except ProviderTimeoutError as e:
                logger.warning(f"Provider {provider.id} timed out: {e.message}")
                attempts.append(
                    ProviderAttempt(provider.id, AttemptOutcome.TIMEOUT, error=e.message)
                )
                continue
            except ProviderUnavailableError as e:
                provider.mark_unavailable(e.message)
                attempts.append(
                    ProviderAttempt(
                        provider.id, AttemptOutcome.UNAVAILABLE, error=e.message
                    )
                )
                continue
            except ProviderError as e:
                logger.warning(f"Provider {provider.id} failed: {e.message}")
                attempts.append(
                    ProviderAttempt(provider.id, AttemptOutcome.FAILED, error=e.message)
                )
                continue

            attempts.append(
                ProviderAttempt(
                    provider.id,
                    AttemptOutcome.SUCCESS,
                    latency_ms=completion.latency_ms,
                )
            )
            logger.info(
                f"Provider {provider.id} answered with {completion.model} "
                f"in {completion.latency_ms}ms"
            )
            return ChainSuccess(completion=completion, attempts=attempts)

        logger.warning(
            f"All {len(attempts)} providers failed or were unavailable"
        )
        return ChainExhausted(attempts=attempts)
