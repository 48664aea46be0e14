"""
Tests for environment-driven settings.
"""

import logging

import pytest

from advisor.config import DEFAULT_PROVIDER_CHAIN, AdvisorSettings, configure_logging
from advisor.exceptions import ConfigurationError


class TestAdvisorSettingsFromEnv:
    """Tests for AdvisorSettings.from_env."""

    def test_defaults_with_empty_env(self):
        """Empty environment yields documented defaults."""
        settings = AdvisorSettings.from_env(env={})

        assert settings.provider_chain == DEFAULT_PROVIDER_CHAIN
        assert settings.health_ttl_seconds == 45.0
        assert settings.probe_timeout_seconds == 5.0
        assert settings.generate_timeout_seconds == 20.0
        assert settings.history_window == 6
        assert settings.routing_min_score == 10
        assert settings.default_agent_id == "general-conversation"
        assert settings.max_message_length == 2000
        assert settings.log_level == "INFO"

    def test_ollama_always_has_url(self):
        """Ollama gets a default localhost URL and model."""
        settings = AdvisorSettings.from_env(env={})

        ollama = settings.provider("ollama")
        assert ollama.base_url == "http://localhost:11434"
        assert ollama.model == "llama3.2"
        assert ollama.configured

    def test_hosted_providers_unconfigured_without_keys(self):
        """Hosted providers need an API key to count as configured."""
        settings = AdvisorSettings.from_env(env={})

        assert not settings.provider("groq").configured
        assert not settings.provider("anthropic").configured

    def test_reads_keys_and_models(self):
        """API keys and model overrides are picked up."""
        settings = AdvisorSettings.from_env(env={
            "GROQ_API_KEY": "gsk-test",
            "GROQ_MODEL": "llama-3.3-70b-versatile",
            "VLLM_URL": "http://gpu-box:8000/v1",
        })

        assert settings.provider("groq").api_key == "gsk-test"
        assert settings.provider("groq").model == "llama-3.3-70b-versatile"
        assert settings.provider("vllm").base_url == "http://gpu-box:8000/v1"

    def test_custom_chain_is_normalized(self):
        """LLM_PROVIDER_CHAIN is split, stripped and lowercased."""
        settings = AdvisorSettings.from_env(env={"LLM_PROVIDER_CHAIN": " Groq, ollama ,,"})

        assert settings.provider_chain == ("groq", "ollama")

    def test_numeric_overrides(self):
        """Numeric settings parse from strings."""
        settings = AdvisorSettings.from_env(env={
            "ADVISOR_HEALTH_TTL": "10",
            "ADVISOR_GENERATE_TIMEOUT": "2.5",
            "ADVISOR_HISTORY_WINDOW": "4",
        })

        assert settings.health_ttl_seconds == 10.0
        assert settings.generate_timeout_seconds == 2.5
        assert settings.history_window == 4

    def test_invalid_number_raises(self):
        """Non-numeric values raise ConfigurationError naming the setting."""
        with pytest.raises(ConfigurationError) as exc_info:
            AdvisorSettings.from_env(env={"ADVISOR_PROBE_TIMEOUT": "soon"})

        assert exc_info.value.details["setting"] == "ADVISOR_PROBE_TIMEOUT"

    def test_non_positive_timeout_raises(self):
        """Timeouts must be positive."""
        with pytest.raises(ConfigurationError):
            AdvisorSettings.from_env(env={"ADVISOR_GENERATE_TIMEOUT": "0"})

    def test_negative_int_raises(self):
        with pytest.raises(ConfigurationError):
            AdvisorSettings.from_env(env={"ADVISOR_HISTORY_WINDOW": "-1"})

    def test_unknown_provider_returns_empty_settings(self):
        settings = AdvisorSettings.from_env(env={})
        assert settings.provider("nope").configured is False


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_unknown_level_raises(self):
        with pytest.raises(ConfigurationError):
            configure_logging("CHATTY")

    def test_accepts_lowercase_level(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))

        configure_logging("debug")

        assert calls["level"] == logging.DEBUG
        assert "%(levelname)s" in calls["format"]
