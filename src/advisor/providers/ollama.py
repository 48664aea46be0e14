"""
Ollama LLM Provider.

Talks to a locally-hosted Ollama server over its HTTP API. The health
probe lists installed models, generation is a single non-streaming
chat call.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from ..domain.entities import Completion, PromptMessage, ProviderKind
from ..exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from .base import BaseLLMProvider, LLMProviderConfig

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring httpx if not used
try:
    import httpx

    OLLAMA_AVAILABLE = True
except ImportError:
    OLLAMA_AVAILABLE = False
    httpx = None


class OllamaProvider(BaseLLMProvider):
    """Ollama local LLM provider implementation.

    Usage:
        config = LLMProviderConfig(
            model="llama3.2",
            base_url="http://localhost:11434",
        )
        provider = OllamaProvider(config)

        if await provider.is_available():
            completion = await provider.generate(messages)
    """

    kind = ProviderKind.LOCAL

    DEFAULT_MODEL = "llama3.2"
    DEFAULT_BASE_URL = "http://localhost:11434"

    def __init__(
        self,
        config: LLMProviderConfig,
        provider_id: str = "ollama",
        name: str = "Ollama (Local)",
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the Ollama provider.

        Args:
            config: Provider configuration
            provider_id: Identifier in the provider chain
            name: Display name
            clock: Monotonic clock for the health cache

        Raises:
            ImportError: If httpx package is not installed
        """
        if not OLLAMA_AVAILABLE:
            raise ImportError(
                "httpx package is required for OllamaProvider. "
                "Install with: pip install httpx"
            )

        super().__init__(provider_id, name, config, clock=clock)

        self.base_url = config.base_url or self.DEFAULT_BASE_URL
        self._installed_models: list[str] = []

        # Per-call bounds are applied by asyncio.wait_for in the base class
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.timeout,
        )

    @property
    def models(self) -> list[str]:
        result = super().models
        for model in self._installed_models:
            if model not in result:
                result.append(model)
        return result

    async def _probe(self) -> bool:
        response = await self.client.get("/api/tags")
        if response.status_code != 200:
            raise ProviderError(
                f"Ollama health check returned {response.status_code}",
                provider_id=self.id,
            )

        data = response.json()
        self._installed_models = [
            m.get("name") for m in data.get("models", []) if m.get("name")
        ]
        return True

    async def _generate(
        self,
        messages: list[PromptMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Completion:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [m.to_api() for m in messages],
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }

        response = await self.client.post("/api/chat", json=payload)
        response.raise_for_status()

        data = response.json()
        message = data.get("message") or {}
        content = message.get("content")
        if content is None:
            raise ProviderError(
                "Ollama response did not contain a message", provider_id=self.id
            )

        usage: dict[str, int] = {}
        if "prompt_eval_count" in data:
            usage["prompt_tokens"] = data["prompt_eval_count"]
        if "eval_count" in data:
            usage["completion_tokens"] = data["eval_count"]

        return Completion(
            text=content,
            model=data.get("model", model),
            provider_id=self.id,
            finish_reason=data.get("done_reason", "stop"),
            usage=usage,
        )

    def _translate_error(self, error: Exception) -> ProviderError:
        if isinstance(error, httpx.HTTPStatusError):
            return ProviderError(
                f"Ollama API error: {error.response.status_code} - {error.response.text}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, httpx.TimeoutException):
            return ProviderTimeoutError(
                f"Ollama request timeout: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, httpx.RequestError):
            return ProviderUnavailableError(
                f"Ollama connection error: {error}",
                provider_id=self.id,
                cause=error,
            )
        if isinstance(error, ValueError):
            return ProviderError(
                f"Malformed Ollama response: {error}",
                provider_id=self.id,
                cause=error,
            )
        return super()._translate_error(error)

    async def aclose(self) -> None:
        await self.client.aclose()
