"""LLM provider implementations and failover."""

from .base import BaseLLMProvider, LLMProviderConfig
from .anthropic import AnthropicProvider
from .chain import FailoverChain
from .factory import PROVIDER_PROFILES, ProviderProfile, create_providers
from .ollama import OllamaProvider
from .openai import OpenAICompatibleProvider
from .registry import ProviderRegistry

__all__ = [
    "BaseLLMProvider",
    "LLMProviderConfig",
    "AnthropicProvider",
    "OpenAICompatibleProvider",
    "OllamaProvider",
    "FailoverChain",
    "ProviderRegistry",
    "ProviderProfile",
    "PROVIDER_PROFILES",
    "create_providers",
]
