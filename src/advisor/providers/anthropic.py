"""
Anthropic Claude LLM Provider.

Implements a single non-streaming Messages API call. System prompts are
passed through the separate ``system`` parameter.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from ..domain.entities import Completion, PromptMessage, PromptRole
from ..exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from .base import BaseLLMProvider, LLMProviderConfig

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring anthropic if not used
try:
    import anthropic
    from anthropic import AsyncAnthropic

    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False
    anthropic = None
    AsyncAnthropic = None


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider implementation.

    Usage:
        config = LLMProviderConfig(
            api_key="sk-ant-...",
            model="claude-sonnet-4-5-20250929",
        )
        provider = AnthropicProvider(config)
    """

    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

    # Anthropic's finish reasons mapped to OpenAI vocabulary
    STOP_REASONS = {
        "end_turn": "stop",
        "stop_sequence": "stop",
        "max_tokens": "length",
    }

    def __init__(
        self,
        config: LLMProviderConfig,
        provider_id: str = "anthropic",
        name: str = "Anthropic Claude",
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the Anthropic provider.

        Args:
            config: Provider configuration
            provider_id: Identifier in the provider chain
            name: Display name
            clock: Monotonic clock for the health cache

        Raises:
            ImportError: If anthropic package is not installed
        """
        if not ANTHROPIC_AVAILABLE:
            raise ImportError(
                "anthropic package is required for AnthropicProvider. "
                "Install with: pip install anthropic"
            )

        super().__init__(provider_id, name, config, clock=clock)

        self.client = AsyncAnthropic(
            api_key=config.api_key or "missing",
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    def _format_messages_for_api(
        self, messages: list[PromptMessage]
    ) -> tuple[Optional[str], list[dict[str, Any]]]:
        """Split out system prompts and convert the rest.

        Anthropic uses a separate system parameter, not in messages.
        """
        system_parts = []
        api_messages = []
        for msg in messages:
            if msg.role == PromptRole.SYSTEM:
                system_parts.append(msg.content)
            else:
                api_messages.append(msg.to_api())

        system = "\n\n".join(system_parts) if system_parts else None
        return system, api_messages

    async def _probe(self) -> bool:
        self._require_api_key()
        await self.client.models.list(limit=1)
        return True

    async def _generate(
        self,
        messages: list[PromptMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        self._require_api_key()
        system, api_messages = self._format_messages_for_api(messages)

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": api_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(**kwargs)

        text = "".join(
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
        )

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
            }

        return Completion(
            text=text,
            model=response.model or model,
            provider_id=self.id,
            finish_reason=self.STOP_REASONS.get(
                response.stop_reason, response.stop_reason
            ),
            usage=usage,
        )

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, anthropic.APITimeoutError):
            return ProviderTimeoutError(
                f"Anthropic request timeout: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, anthropic.APIConnectionError):
            return ProviderUnavailableError(
                f"Anthropic connection error: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, anthropic.AuthenticationError):
            return ProviderUnavailableError(
                f"Anthropic rejected credentials: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, anthropic.RateLimitError):
            return ProviderError(
                f"Anthropic rate limit exceeded: {error}",
                provider_id=self.id,
                code="PROVIDER_RATE_LIMITED",
                cause=error,
            )
        if isinstance(error, anthropic.APIError):
            return ProviderError(
                f"Anthropic API error: {error}",
                provider_id=self.id,
                cause=error,
            )
        return super()._translate_error(error)

    async def aclose(self) -> None:
        await self.client.close()
