"""
OpenAI-compatible LLM Provider.

Uses the OpenAI SDK against api.openai.com or any server that speaks the
same chat-completions API (vLLM, LocalAI, Groq, DeepSeek, OpenRouter).
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..domain.entities import Completion, PromptMessage, ProviderKind
from ..exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from .base import BaseLLMProvider, LLMProviderConfig

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring openai if not used
try:
    import openai
    from openai import AsyncOpenAI

    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False
    openai = None
    AsyncOpenAI = None


class OpenAICompatibleProvider(BaseLLMProvider):
    """Provider for OpenAI and OpenAI-compatible chat-completions servers.

    Remote deployments require an API key. Without one the provider reports
    itself unavailable without making a network call. Local servers
    (``kind=ProviderKind.LOCAL``) accept a placeholder key.

    Usage:
        config = LLMProviderConfig(
            api_key=os.getenv("GROQ_API_KEY"),
            model="llama-3.1-8b-instant",
            base_url="https://api.groq.com/openai/v1",
        )
        provider = OpenAICompatibleProvider(config, provider_id="groq", name="Groq")
    """

    DEFAULT_MODEL = "gpt-4o-mini"
    LOCAL_PLACEHOLDER_KEY = "not-needed"

    def __init__(
        self,
        config: LLMProviderConfig,
        provider_id: str = "openai",
        name: str = "OpenAI",
        kind: ProviderKind = ProviderKind.REMOTE,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the provider.

        Args:
            config: Provider configuration
            provider_id: Identifier in the provider chain
            name: Display name
            kind: LOCAL for self-hosted servers, REMOTE for hosted APIs
            clock: Monotonic clock for the health cache

        Raises:
            ImportError: If openai package is not installed
        """
        if not OPENAI_AVAILABLE:
            raise ImportError(
                "openai package is required for OpenAICompatibleProvider. "
                "Install with: pip install openai"
            )

        super().__init__(provider_id, name, config, clock=clock)
        self.kind = kind

        api_key = config.api_key
        if not api_key and kind == ProviderKind.LOCAL:
            api_key = self.LOCAL_PLACEHOLDER_KEY

        # One attempt per chain step, so SDK retries are disabled
        self.client = AsyncOpenAI(
            api_key=api_key or self.LOCAL_PLACEHOLDER_KEY,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    @property
    def requires_api_key(self) -> bool:
        return self.kind == ProviderKind.REMOTE

    async def _probe(self) -> bool:
        if self.requires_api_key:
            self._require_api_key()
        await self.client.models.list()
        return True

    async def _generate(
        self,
        messages: list[PromptMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        if self.requires_api_key:
            self._require_api_key()

        response = await self.client.chat.completions.create(
            model=model,
            messages=[m.to_api() for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        if not response.choices:
            raise ProviderError(
                f"{self.name} returned no choices", provider_id=self.id
            )

        choice = response.choices[0]
        text: Optional[str] = choice.message.content if choice.message else None
        if text is None:
            raise ProviderError(
                f"{self.name} response did not contain text", provider_id=self.id
            )

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            }

        return Completion(
            text=text,
            model=response.model or model,
            provider_id=self.id,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, openai.APITimeoutError):
            return ProviderTimeoutError(
                f"{self.name} request timeout: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, openai.APIConnectionError):
            return ProviderUnavailableError(
                f"{self.name} connection error: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, openai.AuthenticationError):
            return ProviderUnavailableError(
                f"{self.name} rejected credentials: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, openai.RateLimitError):
            return ProviderError(
                f"{self.name} rate limit exceeded: {error}",
                provider_id=self.id,
                code="PROVIDER_RATE_LIMITED",
                cause=error,
            )
        if isinstance(error, openai.APIError):
            return ProviderError(
                f"{self.name} API error: {error}",
                provider_id=self.id,
                cause=error,
            )
        return super()._translate_error(error)

    async def aclose(self) -> None:
        await self.client.close()
