"""Runtime settings for the advisor orchestrator.

Settings are read from the process environment, after loading a local
``.env`` file with python-dotenv.

Environment Variables:
    - LLM_PROVIDER_CHAIN: Comma-separated provider ids in priority order
    - OLLAMA_URL / OLLAMA_MODEL: Local Ollama server
    - VLLM_URL / VLLM_MODEL: Local vLLM OpenAI-compatible server (optional)
    - LOCALAI_URL / LOCALAI_MODEL: LocalAI OpenAI-compatible server (optional)
    - GROQ_API_KEY, DEEPSEEK_API_KEY, OPENROUTER_API_KEY: Hosted providers
    - OPENAI_API_KEY / OPENAI_MODEL: OpenAI
    - ANTHROPIC_API_KEY / ANTHROPIC_MODEL: Anthropic
    - ADVISOR_HEALTH_TTL, ADVISOR_PROBE_TIMEOUT, ADVISOR_GENERATE_TIMEOUT,
      ADVISOR_TOOL_TIMEOUT: Time bounds in seconds
    - ADVISOR_HISTORY_WINDOW, ADVISOR_ROUTING_MIN_SCORE,
      ADVISOR_DEFAULT_AGENT, ADVISOR_MAX_MESSAGE_LENGTH
    - ADVISOR_LOG_LEVEL: Logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_PROVIDER_CHAIN = (
    "ollama",
    "vllm",
    "localai",
    "groq",
    "deepseek",
    "openrouter",
    "openai",
    "anthropic",
)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}", setting=name, cause=e
        ) from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive", setting=name)
    return value


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}", setting=name, cause=e
        ) from e
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative", setting=name)
    return value


@dataclass
class ProviderSettings:
    """Connection details for a single provider.

    Attributes:
        base_url: Endpoint override (required for self-hosted servers)
        api_key: Credential, None for local servers
        model: Default model to request
    """

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    model: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.base_url or self.api_key)


@dataclass
class AdvisorSettings:
    """All tunables for the orchestrator, providers and agents."""

    provider_chain: tuple[str, ...] = DEFAULT_PROVIDER_CHAIN
    providers: dict[str, ProviderSettings] = field(default_factory=dict)

    # Time bounds (seconds)
    health_ttl_seconds: float = 45.0
    probe_timeout_seconds: float = 5.0
    generate_timeout_seconds: float = 20.0
    tool_timeout_seconds: float = 10.0

    # Conversation / routing
    history_window: int = 6
    routing_min_score: int = 10
    default_agent_id: str = "general-conversation"
    max_message_length: int = 2000
    knowledge_top_n: int = 3

    # Generation defaults
    temperature: float = 0.7
    max_tokens: int = 1000

    log_level: str = "INFO"

    def provider(self, provider_id: str) -> ProviderSettings:
        """Return settings for a provider, empty if none were given."""
        return self.providers.get(provider_id, ProviderSettings())

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ) -> "AdvisorSettings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ`` (used in tests)
            load_env_file: Load ``.env`` into the process environment first

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed
        """
        if env is None:
            if load_env_file:
                load_dotenv()
            env = os.environ

        chain_raw = env.get("LLM_PROVIDER_CHAIN", "")
        chain = tuple(
            part.strip().lower() for part in chain_raw.split(",") if part.strip()
        ) or DEFAULT_PROVIDER_CHAIN

        providers = {
            "ollama": ProviderSettings(
                base_url=env.get("OLLAMA_URL", "http://localhost:11434"),
                model=env.get("OLLAMA_MODEL", "llama3.2"),
            ),
            "vllm": ProviderSettings(
                base_url=env.get("VLLM_URL") or None,
                api_key=env.get("VLLM_API_KEY") or None,
                model=env.get("VLLM_MODEL") or None,
            ),
            "localai": ProviderSettings(
                base_url=env.get("LOCALAI_URL") or None,
                model=env.get("LOCALAI_MODEL") or None,
            ),
            "groq": ProviderSettings(
                api_key=env.get("GROQ_API_KEY") or None,
                model=env.get("GROQ_MODEL") or None,
            ),
            "deepseek": ProviderSettings(
                api_key=env.get("DEEPSEEK_API_KEY") or None,
                model=env.get("DEEPSEEK_MODEL") or None,
            ),
            "openrouter": ProviderSettings(
                api_key=env.get("OPENROUTER_API_KEY") or None,
                model=env.get("OPENROUTER_MODEL") or None,
            ),
            "openai": ProviderSettings(
                api_key=env.get("OPENAI_API_KEY") or None,
                model=env.get("OPENAI_MODEL") or None,
            ),
            "anthropic": ProviderSettings(
                api_key=env.get("ANTHROPIC_API_KEY") or None,
                model=env.get("ANTHROPIC_MODEL") or None,
            ),
        }

        return cls(
            provider_chain=chain,
            providers=providers,
            health_ttl_seconds=_parse_float(env, "ADVISOR_HEALTH_TTL", 45.0),
            probe_timeout_seconds=_parse_float(env, "ADVISOR_PROBE_TIMEOUT", 5.0),
            generate_timeout_seconds=_parse_float(
                env, "ADVISOR_GENERATE_TIMEOUT", 20.0
            ),
            tool_timeout_seconds=_parse_float(env, "ADVISOR_TOOL_TIMEOUT", 10.0),
            history_window=_parse_int(env, "ADVISOR_HISTORY_WINDOW", 6),
            routing_min_score=_parse_int(env, "ADVISOR_ROUTING_MIN_SCORE", 10),
            default_agent_id=env.get("ADVISOR_DEFAULT_AGENT", "general-conversation"),
            max_message_length=_parse_int(env, "ADVISOR_MAX_MESSAGE_LENGTH", 2000),
            knowledge_top_n=_parse_int(env, "ADVISOR_KNOWLEDGE_TOP_N", 3),
            log_level=env.get("ADVISOR_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with the standard advisor format."""
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        raise ConfigurationError(
            f"Unknown log level: {level}", setting="ADVISOR_LOG_LEVEL"
        )
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
