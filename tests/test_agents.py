"""
Tests for agent templates, the builder, fallback selection and prompts.
"""

import logging

import pytest

from advisor.agents import (
    BUILTIN_TEMPLATES,
    AgentBuilder,
    AgentRegistry,
    AgentTemplate,
    PromptBuilder,
    select_fallback,
)
from advisor.agents.fallback import DEFAULT_CONFIDENCE, KEYWORD_CONFIDENCE
from advisor.agents.templates import MARKETING
from advisor.domain.entities import (
    AgentContext,
    AgentStatus,
    KnowledgeEntry,
    Message,
    MessageRole,
    PromptRole,
)
from advisor.exceptions import AgentNotFoundError, ConfigurationError, TemplateNotFoundError


@pytest.fixture
def builder():
    return AgentBuilder(AgentRegistry())


class TestTemplates:

    def test_builtin_ids(self):
        assert [t.id for t in BUILTIN_TEMPLATES] == [
            "general-conversation", "marketing", "investment", "financial",
            "legal", "research", "support", "venture-launch",
        ]

    def test_every_template_has_fallback(self):
        for template in BUILTIN_TEMPLATES:
            assert template.default_fallback
            assert template.system_prompt


class TestAgentBuilder:
    """Tests for AgentBuilder."""

    def test_create_all(self, builder):
        agents = builder.create_all()

        assert len(agents) == len(BUILTIN_TEMPLATES)
        assert len(builder.registry) == len(BUILTIN_TEMPLATES)

    def test_create_with_customization(self, builder):
        agent = builder.create_agent("marketing", preferred_provider="groq", status="paused")

        assert agent.preferred_provider == "groq"
        assert agent.status == AgentStatus.PAUSED
        assert builder.registry.get("marketing") is agent

    def test_unknown_template(self, builder):
        with pytest.raises(TemplateNotFoundError):
            builder.create_agent("astrology")

    def test_unknown_customization(self, builder):
        with pytest.raises(ConfigurationError):
            builder.create_agent("marketing", favourite_colour="blue")

    def test_invalid_status(self, builder):
        with pytest.raises(ConfigurationError):
            builder.create_agent("marketing", status="sleepy")

    def test_agents_do_not_share_collections(self, builder):
        first = builder.create_agent("marketing")
        first.tools.append("funding-calculator")

        second = builder.create_agent("marketing")

        assert "funding-calculator" not in second.tools
        assert MARKETING.tools == ("market-analysis", "knowledge-search")

    def test_recreate_replaces_and_warns(self, builder, caplog):
        builder.create_all()
        original = builder.registry.get("marketing")
        original.preferred_provider = "groq"

        with caplog.at_level(logging.WARNING):
            replacement = builder.create_agent("marketing")

        assert builder.registry.get("marketing") is replacement
        assert replacement.preferred_provider is None
        assert "already existed" in caplog.text
        # position is kept
        assert [a.id for a in builder.registry][1] == "marketing"

    def test_export_import_roundtrip(self, builder):
        data = builder.export_template("legal")
        data["id"] = "legal-eu"
        data["name"] = "EU Legal Advisor"

        template = builder.import_template(data)
        agent = builder.create_agent("legal-eu")

        assert template.fallback_rules == builder.get_template("legal").fallback_rules
        assert agent.name == "EU Legal Advisor"

    def test_import_invalid_template(self, builder):
        with pytest.raises(ConfigurationError):
            builder.import_template({"id": "Bad Id!", "name": "x"})


class TestAgentRegistry:

    def test_require_unknown(self):
        with pytest.raises(AgentNotFoundError):
            AgentRegistry().require("ghost")


class TestAgent:

    def test_summary_and_configuration(self, agent_registry):
        agent = agent_registry.get("investment")

        assert agent.summary()["status"] == "active"
        assert agent.summary()["priority"] == agent.priority
        config = agent.configuration()
        assert config["template_id"] == "investment"
        assert config["enable_llm"] is True
        assert config["tools"] == ["valuation-estimator", "market-analysis", "knowledge-search"]


class TestFallback:
    """Tests for deterministic fallback selection."""

    def test_first_matching_rule(self):
        reply = select_fallback(MARKETING, "I need marketing advice")

        assert reply.text.startswith("I can help you create effective marketing campaigns")
        assert reply.confidence == KEYWORD_CONFIDENCE
        assert reply.matched_keyword == "marketing"

    def test_rule_order_wins(self):
        reply = select_fallback(MARKETING, "marketing for growth")

        assert reply.matched_keyword == "growth"

    def test_default_reply(self):
        reply = select_fallback(MARKETING, "Tell me something")

        assert reply.text == MARKETING.default_fallback
        assert reply.confidence == DEFAULT_CONFIDENCE

    def test_whole_word_match(self):
        template = AgentTemplate(
            id="t", name="T", description="", system_prompt="p", default_fallback="default",
        )
        general = BUILTIN_TEMPLATES[0]

        assert select_fallback(general, "this is a thing").matched_keyword == ""
        assert select_fallback(template, "anything").text == "default"

    def test_deterministic(self):
        assert select_fallback(MARKETING, "growth plan") == select_fallback(MARKETING, "growth plan")


class TestPromptBuilder:
    """Tests for prompt construction."""

    def test_system_prompt_sections(self, agent_registry, tool_registry):
        agent = agent_registry.get("marketing")
        knowledge = [KnowledgeEntry(id="k", topic="Funnels", content="Optimize conversion first.")]

        prompt = PromptBuilder().build_system_prompt(
            agent,
            knowledge=knowledge,
            tools=tool_registry.tools_for(agent.tools),
            key_topics=("marketing",),
        )

        assert prompt.startswith(MARKETING.system_prompt)
        assert "Your specialties: Growth Marketing" in prompt
        assert "- market-analysis:" in prompt
        assert "[TOOL:" in prompt
        assert "- Funnels: Optimize conversion first." in prompt
        assert "Topics discussed so far: marketing." in prompt

    def test_no_tool_section_without_tools(self, agent_registry):
        prompt = PromptBuilder().build_system_prompt(agent_registry.get("support"))

        assert "Available tools" not in prompt

    def test_history_window(self, agent_registry):
        history = tuple(
            Message(role=MessageRole.USER if i % 2 == 0 else MessageRole.AGENT, content=f"m{i}")
            for i in range(10)
        )
        context = AgentContext(history=history)

        messages = PromptBuilder(history_window=4).build(
            agent_registry.get("marketing"), "latest", context
        )

        assert messages[0].role == PromptRole.SYSTEM
        assert [m.content for m in messages[1:]] == ["m6", "m7", "m8", "m9", "latest"]
        assert messages[1].role == PromptRole.USER
        assert messages[2].role == PromptRole.ASSISTANT

    def test_zero_window_sends_no_history(self, agent_registry):
        context = AgentContext(history=(Message.user("old"),))

        messages = PromptBuilder(history_window=0).build(
            agent_registry.get("marketing"), "new", context
        )

        assert [m.content for m in messages[1:]] == ["new"]
