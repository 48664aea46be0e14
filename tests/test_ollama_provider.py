"""
Unit tests for the Ollama provider.

The httpx client is replaced with mocks, so no Ollama server is needed.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from advisor.domain.entities import PromptMessage, PromptRole, ProviderKind
from advisor.exceptions import ProviderError, ProviderTimeoutError, ProviderUnavailableError
from advisor.providers.base import LLMProviderConfig
from advisor.providers.ollama import OLLAMA_AVAILABLE, OllamaProvider

# Skip if httpx not installed
pytestmark = pytest.mark.skipif(
    not OLLAMA_AVAILABLE,
    reason="httpx package not installed"
)

if OLLAMA_AVAILABLE:
    import httpx


@pytest.fixture
def ollama_config():
    """Test Ollama config."""
    return LLMProviderConfig(
        model="llama3.2",
        base_url="http://localhost:11434",
    )


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def provider(ollama_config):
    provider = OllamaProvider(ollama_config)
    provider.client = MagicMock()
    provider.client.aclose = AsyncMock()
    return provider


class TestOllamaProvider:
    """Tests for Ollama provider initialization."""

    def test_init(self, ollama_config):
        """Provider initializes as a local provider."""
        provider = OllamaProvider(ollama_config)

        assert provider.id == "ollama"
        assert provider.kind == ProviderKind.LOCAL
        assert provider.base_url == "http://localhost:11434"
        assert provider.default_model == "llama3.2"

    def test_default_base_url(self):
        provider = OllamaProvider(LLMProviderConfig(model="llama3.2"))
        assert provider.base_url == OllamaProvider.DEFAULT_BASE_URL

    def test_init_without_httpx(self, ollama_config):
        """Provider raises ImportError if httpx not available."""
        with patch("advisor.providers.ollama.OLLAMA_AVAILABLE", False):
            with pytest.raises(ImportError, match="httpx package is required"):
                OllamaProvider(ollama_config)


class TestOllamaHealth:
    """Tests for the /api/tags probe."""

    @pytest.mark.asyncio
    async def test_probe_lists_installed_models(self, provider):
        provider.client.get = AsyncMock(return_value=_response(payload={
            "models": [{"name": "llama3.2"}, {"name": "qwen3:4b"}],
        }))

        assert await provider.check_health() is True
        provider.client.get.assert_awaited_once_with("/api/tags")
        assert provider.models == ["llama3.2", "qwen3:4b"]

    @pytest.mark.asyncio
    async def test_non_200_is_unavailable(self, provider):
        provider.client.get = AsyncMock(return_value=_response(status_code=500))

        assert await provider.check_health() is False
        assert "500" in provider.last_error

    @pytest.mark.asyncio
    async def test_connection_refused_is_unavailable(self, provider):
        provider.client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))

        assert await provider.check_health() is False


class TestOllamaGenerate:
    """Tests for the /api/chat call."""

    @pytest.mark.asyncio
    async def test_generate_payload_and_completion(self, provider):
        provider.client.post = AsyncMock(return_value=_response(payload={
            "model": "llama3.2",
            "message": {"role": "assistant", "content": "Hello there"},
            "done_reason": "stop",
            "prompt_eval_count": 12,
            "eval_count": 3,
        }))
        messages = [
            PromptMessage(PromptRole.SYSTEM, "Be brief"),
            PromptMessage(PromptRole.USER, "Hi"),
        ]

        completion = await provider.generate(messages, temperature=0.2, max_tokens=50)

        path = provider.client.post.call_args.args[0]
        payload = provider.client.post.call_args.kwargs["json"]
        assert path == "/api/chat"
        assert payload["stream"] is False
        assert payload["messages"] == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hi"},
        ]
        assert payload["options"] == {"temperature": 0.2, "num_predict": 50}

        assert completion.text == "Hello there"
        assert completion.provider_id == "ollama"
        assert completion.finish_reason == "stop"
        assert completion.usage == {"prompt_tokens": 12, "completion_tokens": 3}

    @pytest.mark.asyncio
    async def test_missing_message_is_provider_error(self, provider):
        provider.client.post = AsyncMock(return_value=_response(payload={"done": True}))

        with pytest.raises(ProviderError, match="did not contain a message"):
            await provider.generate([PromptMessage(PromptRole.USER, "Hi")])

    @pytest.mark.asyncio
    async def test_http_status_error_is_provider_error(self, provider):
        request = httpx.Request("POST", "http://localhost:11434/api/chat")
        response = httpx.Response(404, text="model not found", request=request)
        provider.client.post = AsyncMock(
            side_effect=httpx.HTTPStatusError("not found", request=request, response=response)
        )

        with pytest.raises(ProviderError, match="404"):
            await provider.generate([PromptMessage(PromptRole.USER, "Hi")])

    @pytest.mark.asyncio
    async def test_connect_error_is_unavailable(self, provider):
        provider.client.post = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderUnavailableError):
            await provider.generate([PromptMessage(PromptRole.USER, "Hi")])

    @pytest.mark.asyncio
    async def test_read_timeout_is_timeout(self, provider):
        provider.client.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(ProviderTimeoutError):
            await provider.generate([PromptMessage(PromptRole.USER, "Hi")])

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self, provider):
        await provider.aclose()
        provider.client.aclose.assert_awaited_once()
