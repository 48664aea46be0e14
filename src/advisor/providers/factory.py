"""
Build the provider registry from settings.

Local servers are registered when a URL is configured (Ollama always has
one). Hosted providers are registered only when an API key is present.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import AdvisorSettings
from ..domain.entities import ProviderKind
from .base import BaseLLMProvider, LLMProviderConfig
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderProfile:
    """Static description of a known provider."""

    id: str
    name: str
    adapter: str  # "ollama" | "openai" | "anthropic"
    kind: ProviderKind
    default_model: str
    base_url: Optional[str] = None


PROVIDER_PROFILES: dict[str, ProviderProfile] = {
    profile.id: profile
    for profile in (
        ProviderProfile("ollama", "Ollama (Local)", "ollama", ProviderKind.LOCAL, "llama3.2"),
        ProviderProfile("vllm", "vLLM (Local)", "openai", ProviderKind.LOCAL, "meta-llama/Llama-3.1-8B-Instruct"),
        ProviderProfile("localai", "LocalAI", "openai", ProviderKind.LOCAL, "gpt-4"),
        ProviderProfile(
            "groq", "Groq", "openai", ProviderKind.REMOTE,
            "llama-3.1-8b-instant", "https://api.groq.com/openai/v1",
        ),
        ProviderProfile(
            "deepseek", "DeepSeek", "openai", ProviderKind.REMOTE,
            "deepseek-chat", "https://api.deepseek.com/v1",
        ),
        ProviderProfile(
            "openrouter", "OpenRouter", "openai", ProviderKind.REMOTE,
            "meta-llama/llama-3.1-8b-instruct:free", "https://openrouter.ai/api/v1",
        ),
        ProviderProfile("openai", "OpenAI", "openai", ProviderKind.REMOTE, "gpt-4o-mini"),
        ProviderProfile(
            "anthropic", "Anthropic Claude", "anthropic", ProviderKind.REMOTE,
            "claude-sonnet-4-5-20250929",
        ),
    )
}


def _build_provider(profile: ProviderProfile, config: LLMProviderConfig) -> BaseLLMProvider:
    # Imported here so a missing SDK only disables its own providers
    if profile.adapter == "ollama":
        from .ollama import OllamaProvider

        return OllamaProvider(config, provider_id=profile.id, name=profile.name)
    if profile.adapter == "anthropic":
        from .anthropic import AnthropicProvider

        return AnthropicProvider(config, provider_id=profile.id, name=profile.name)

    from .openai import OpenAICompatibleProvider

    return OpenAICompatibleProvider(
        config, provider_id=profile.id, name=profile.name, kind=profile.kind
    )


def create_providers(settings: AdvisorSettings) -> ProviderRegistry:
    """Create a registry holding every configured provider in chain order.

    Args:
        settings: Loaded advisor settings

    Returns:
        ProviderRegistry, possibly empty when nothing is configured
    """
    registry = ProviderRegistry()

    for provider_id in settings.provider_chain:
        profile = PROVIDER_PROFILES.get(provider_id)
        if profile is None:
            logger.warning(f"Unknown provider in LLM_PROVIDER_CHAIN: {provider_id}")
            continue

        provider_settings = settings.provider(provider_id)
        if profile.kind == ProviderKind.LOCAL and not provider_settings.base_url:
            logger.debug(f"Skipping {provider_id}: no URL configured")
            continue
        if profile.kind == ProviderKind.REMOTE and not provider_settings.api_key:
            logger.debug(f"Skipping {provider_id}: no API key configured")
            continue

        config = LLMProviderConfig(
            model=provider_settings.model or profile.default_model,
            api_key=provider_settings.api_key,
            base_url=provider_settings.base_url or profile.base_url,
            timeout=settings.generate_timeout_seconds,
            probe_timeout=settings.probe_timeout_seconds,
            health_ttl=settings.health_ttl_seconds,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )

        try:
            provider = _build_provider(profile, config)
        except ImportError as e:
            logger.warning(f"Failed to initialize {profile.name} provider: {e}")
            continue

        registry.register(provider)
        logger.info(f"Registered {profile.name} provider with model: {config.model}")

    if not len(registry):
        logger.warning("No LLM providers configured - responses will use fallback templates")

    return registry
