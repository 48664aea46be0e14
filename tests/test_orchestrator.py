"""
Tests for the agent orchestrator: message flow, admin operations and
diagnostics.
"""

import asyncio
import logging

import pytest

from advisor.agents import AgentExecutor, AgentRegistry
from advisor.agents.templates import MARKETING
from advisor.domain.entities import AgentStatus, MessageRole, ResponseSource
from advisor.domain.ports import IConversationSink
from advisor.exceptions import AgentNotFoundError, ConfigurationError, InvalidMessageError, TemplateNotFoundError
from advisor.orchestrator import AgentOrchestrator, OrchestratorConfig
from advisor.providers import FailoverChain, ProviderRegistry
from advisor.schemas import AgentConfigUpdate

from conftest import FakeProvider

LONG_ANSWER = (
    "Focus on one channel first, measure acquisition cost weekly and double "
    "down on what converts."
)


class RecordingSink(IConversationSink):
    def __init__(self, fail=False):
        self.records = []
        self.fail = fail

    async def record(self, session, messages):
        if self.fail:
            raise RuntimeError("sink offline")
        self.records.append((session.id, [m.content for m in messages]))


class TestProcessMessage:
    """End-to-end message handling."""

    @pytest.mark.asyncio
    async def test_marketing_fallback_without_providers(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        reply = await orchestrator.process_message("I need marketing advice", session_id="s1")

        assert reply.agent_id == "marketing"
        assert reply.source == ResponseSource.FALLBACK
        assert reply.content == MARKETING.fallback_rules[1].response
        assert reply.confidence == 0.7
        assert reply.metadata["session_id"] == "s1"

        session = orchestrator.sessions.get("s1")
        assert [m.role for m in session.messages] == [MessageRole.USER, MessageRole.AGENT]
        assert session.messages[-1] == reply
        assert session.agent_id == "marketing"

    @pytest.mark.asyncio
    async def test_llm_reply(self, orchestrator_factory):
        orchestrator = orchestrator_factory([FakeProvider("local", replies=[LONG_ANSWER])])

        reply = await orchestrator.process_message("I need marketing advice")

        assert reply.source == ResponseSource.LLM
        assert reply.content == LONG_ANSWER
        assert reply.metadata["provider_id"] == "local"

    @pytest.mark.asyncio
    async def test_new_session_created(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        reply = await orchestrator.process_message("Hello", user_id="u42")

        session = orchestrator.sessions.get(reply.metadata["session_id"])
        assert session.user_id == "u42"

    @pytest.mark.asyncio
    async def test_three_exchanges_store_six_messages(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        for text in ("Hello", "I need marketing advice", "What is our runway?"):
            await orchestrator.process_message(text, session_id="s1")

        session = orchestrator.sessions.get("s1")
        assert session.message_count == 6
        assert [m.role for m in session.messages] == [MessageRole.USER, MessageRole.AGENT] * 3
        stamps = [m.timestamp for m in session.messages]
        assert stamps == sorted(stamps)

    @pytest.mark.asyncio
    async def test_history_excludes_current_message(self, orchestrator_factory):
        provider = FakeProvider("local", replies=[LONG_ANSWER])
        orchestrator = orchestrator_factory([provider])

        await orchestrator.process_message("Hello", session_id="s1")
        await orchestrator.process_message("I need marketing advice", session_id="s1")

        prompt = provider.generate_calls[1]["messages"]
        assert [m.content for m in prompt[1:]] == ["Hello", LONG_ANSWER, "I need marketing advice"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, orchestrator_factory, text):
        orchestrator = orchestrator_factory()

        with pytest.raises(InvalidMessageError):
            await orchestrator.process_message(text, session_id="s1")

        assert orchestrator.sessions.get("s1") is None

    @pytest.mark.asyncio
    async def test_too_long_message_rejected(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        with pytest.raises(InvalidMessageError) as exc_info:
            await orchestrator.process_message("x" * 2001)

        assert exc_info.value.details["length"] == 2001

    @pytest.mark.asyncio
    async def test_max_length_accepted(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        reply = await orchestrator.process_message("x" * 2000)

        assert reply.content

    @pytest.mark.asyncio
    async def test_executor_crash_becomes_fallback(self, orchestrator_factory, monkeypatch, caplog):
        orchestrator = orchestrator_factory()

        async def explode(agent, text, context=None):
            raise RuntimeError("executor bug")

        monkeypatch.setattr(orchestrator.executor, "process_message", explode)

        with caplog.at_level(logging.ERROR):
            reply = await orchestrator.process_message("I need marketing advice")

        assert reply.source == ResponseSource.FALLBACK
        assert reply.content == MARKETING.fallback_rules[1].response
        assert reply.metadata["error"] == "executor bug"
        assert orchestrator.stats.total_errors == 1
        assert "executor bug" in caplog.text

    @pytest.mark.asyncio
    async def test_paused_agent_not_routed(self, orchestrator_factory):
        orchestrator = orchestrator_factory()
        orchestrator.configure_agent("marketing", {"status": "paused"})

        reply = await orchestrator.process_message("I need marketing advice")

        assert reply.agent_id == "general-conversation"

    @pytest.mark.asyncio
    async def test_reply_cannot_rewrite_history(self, orchestrator_factory):
        orchestrator = orchestrator_factory()
        reply = await orchestrator.process_message("I need marketing advice", session_id="s1")

        with pytest.raises(TypeError):
            reply.metadata["source"] = "llm"
        with pytest.raises(AttributeError):
            reply.metadata["tools_used"].append("garbage")

        stored = orchestrator.sessions.get("s1").messages[-1]
        assert stored.source == ResponseSource.FALLBACK
        assert stored.metadata["tools_used"] == ()


class TestConcurrency:
    """Requests run concurrently on the event loop."""

    @pytest.mark.asyncio
    async def test_slow_session_does_not_block_another(self, orchestrator_factory):
        slow = FakeProvider("slow", replies=[LONG_ANSWER], generate_delay=0.3)
        fast = FakeProvider("fast", replies=[LONG_ANSWER])
        orchestrator = orchestrator_factory([slow, fast])
        orchestrator.configure_agent("marketing", {"preferred_provider": "slow"})
        orchestrator.configure_agent("legal", {"preferred_provider": "fast"})
        finished = []

        async def ask(text, session_id):
            reply = await orchestrator.process_message(text, session_id=session_id)
            finished.append(session_id)
            return reply

        slow_reply, fast_reply = await asyncio.gather(
            ask("I need marketing advice", "A"),
            ask("Review my NDA", "B"),
        )

        assert finished == ["B", "A"]
        assert slow_reply.metadata["provider_id"] == "slow"
        assert fast_reply.metadata["provider_id"] == "fast"

    @pytest.mark.asyncio
    async def test_same_session_keeps_order(self, orchestrator_factory):
        provider = FakeProvider("local", replies=[LONG_ANSWER], generate_delay=0.01)
        orchestrator = orchestrator_factory([provider])
        texts = ["Hello", "I need marketing advice", "Review my NDA", "What is our runway?", "Hi again"]

        await asyncio.gather(*(orchestrator.process_message(t, session_id="s1") for t in texts))

        messages = orchestrator.sessions.get("s1").messages
        assert len(messages) == 10
        assert sum(m.role == MessageRole.USER for m in messages) == 5
        stamps = [m.timestamp for m in messages]
        assert stamps == sorted(stamps)
        assert orchestrator.stats.total_messages == 5


class TestConversationSink:
    """Forwarding to an optional sink."""

    @pytest.mark.asyncio
    async def test_sink_receives_exchange(self, orchestrator_factory):
        sink = RecordingSink()
        orchestrator = orchestrator_factory(sink=sink)

        reply = await orchestrator.process_message("Hello", session_id="s1")
        await orchestrator.drain()

        assert sink.records == [("s1", ["Hello", reply.content])]

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_affect_reply(self, orchestrator_factory, caplog):
        orchestrator = orchestrator_factory(sink=RecordingSink(fail=True))

        with caplog.at_level(logging.WARNING):
            reply = await orchestrator.process_message("Hello", session_id="s1")
            await orchestrator.drain()

        assert reply.content
        assert orchestrator.sessions.get("s1").message_count == 2
        assert "sink offline" in caplog.text


class TestConstruction:

    def test_missing_default_agent(self, tool_registry, knowledge):
        registry = ProviderRegistry()
        executor = AgentExecutor(FailoverChain(registry), tool_registry, knowledge)

        with pytest.raises(ConfigurationError):
            AgentOrchestrator(agents=AgentRegistry(), executor=executor, providers=registry)

    def test_custom_default_agent(self, agent_registry, tool_registry, knowledge):
        registry = ProviderRegistry()
        executor = AgentExecutor(FailoverChain(registry), tool_registry, knowledge)

        orchestrator = AgentOrchestrator(
            agents=agent_registry,
            executor=executor,
            providers=registry,
            config=OrchestratorConfig(default_agent_id="support"),
        )

        assert orchestrator.router.default_agent_id == "support"


class TestAgentAdministration:
    """Agent listing and configuration."""

    def test_agent_list(self, orchestrator_factory):
        agents = orchestrator_factory().get_agent_list()

        assert [a["id"] for a in agents][:2] == ["general-conversation", "marketing"]
        assert agents[1]["status"] == "active"

    def test_configure_agent(self, orchestrator_factory):
        orchestrator = orchestrator_factory([FakeProvider("groq")])

        ok = orchestrator.configure_agent("marketing", {
            "preferred_provider": "groq",
            "preferred_model": "llama-3.3-70b-versatile",
            "enable_llm": False,
        })

        config = orchestrator.get_agent_configuration("marketing")
        assert ok is True
        assert config["preferred_provider"] == "groq"
        assert config["preferred_model"] == "llama-3.3-70b-versatile"
        assert config["enable_llm"] is False

    def test_configure_with_model(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        assert orchestrator.configure_agent("legal", AgentConfigUpdate(status="maintenance"))
        assert orchestrator.agents.get("legal").status == AgentStatus.MAINTENANCE

    def test_partial_update_keeps_other_fields(self, orchestrator_factory):
        orchestrator = orchestrator_factory()
        orchestrator.configure_agent("marketing", {"preferred_provider": "groq"})

        orchestrator.configure_agent("marketing", {"status": "paused"})

        config = orchestrator.get_agent_configuration("marketing")
        assert config["preferred_provider"] == "groq"
        assert config["status"] == "paused"

    def test_configure_unknown_agent(self, orchestrator_factory):
        assert orchestrator_factory().configure_agent("ghost", {"status": "paused"}) is False

    @pytest.mark.parametrize("config", [
        {"status": "sleepy"},
        {"colour": "blue"},
        {"enable_llm": "maybe"},
    ])
    def test_configure_invalid(self, orchestrator_factory, config):
        orchestrator = orchestrator_factory()

        assert orchestrator.configure_agent("marketing", config) is False
        assert orchestrator.agents.get("marketing").status == AgentStatus.ACTIVE

    def test_unknown_configuration(self, orchestrator_factory):
        assert orchestrator_factory().get_agent_configuration("ghost") is None

    def test_all_configurations(self, orchestrator_factory):
        configs = orchestrator_factory().get_all_agent_configurations()

        assert "venture-launch" in configs
        assert configs["support"]["tools"] == []

    def test_create_agent(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        agent = orchestrator.create_agent("legal", preferred_provider="anthropic")

        assert orchestrator.agents.get("legal") is agent
        assert agent.preferred_provider == "anthropic"

    def test_create_agent_unknown_template(self, orchestrator_factory):
        with pytest.raises(TemplateNotFoundError):
            orchestrator_factory().create_agent("astrology")

    @pytest.mark.asyncio
    async def test_test_agent_leaves_sessions_alone(self, orchestrator_factory):
        orchestrator = orchestrator_factory()

        reply = await orchestrator.test_agent("financial", "What is our runway?")

        assert reply.agent_id == "financial"
        assert len(orchestrator.sessions) == 0
        assert orchestrator.stats.total_messages == 0

    @pytest.mark.asyncio
    async def test_test_unknown_agent(self, orchestrator_factory):
        with pytest.raises(AgentNotFoundError):
            await orchestrator_factory().test_agent("ghost", "hi")


class TestProvidersAndDiagnostics:
    """Provider listing, testing and system diagnostics."""

    @pytest.mark.asyncio
    async def test_get_llm_providers(self, orchestrator_factory):
        orchestrator = orchestrator_factory([
            FakeProvider("local"),
            FakeProvider("down", available=False),
        ])

        statuses = await orchestrator.get_llm_providers()

        assert [(s.id, s.available) for s in statuses] == [("local", True), ("down", False)]

    @pytest.mark.asyncio
    async def test_test_llm_provider(self, orchestrator_factory):
        orchestrator = orchestrator_factory([FakeProvider("local", replies=["ok"])])

        assert (await orchestrator.test_llm_provider("local")).success is True
        assert (await orchestrator.test_llm_provider("ghost")).success is False

    @pytest.mark.asyncio
    async def test_diagnostics_healthy(self, orchestrator_factory):
        provider = FakeProvider("local", replies=[LONG_ANSWER])
        orchestrator = orchestrator_factory([provider])
        await orchestrator.process_message("I need marketing advice", session_id="s1")

        report = await orchestrator.perform_system_diagnostics()

        assert report["status"] == "healthy"
        assert report["best_provider"] == "local"
        assert report["stats"]["available_providers"] == ["local"]
        assert report["sessions"] == {"total": 1, "active": 1, "messages": 2}
        marketing = next(a for a in report["agents"] if a["id"] == "marketing")
        assert marketing["calls"] == 1
        assert report["providers"][0]["id"] == "local"
        # cached health reused, no second probe
        assert provider.probe_calls == 1

    @pytest.mark.asyncio
    async def test_diagnostics_degraded_without_providers(self, orchestrator_factory):
        report = await orchestrator_factory().perform_system_diagnostics()

        assert report["status"] == "degraded"
        assert report["best_provider"] is None
        assert report["providers"] == []

    @pytest.mark.asyncio
    async def test_system_stats(self, orchestrator_factory):
        orchestrator = orchestrator_factory()
        await orchestrator.process_message("I need marketing advice")
        await orchestrator.process_message("Hello")

        stats = orchestrator.get_system_stats()

        assert stats["total_messages"] == 2
        assert stats["total_fallbacks"] == 2
        assert stats["agent_usage"] == {"marketing": 1, "general-conversation": 1}
        assert stats["total_sessions"] == 2
        assert stats["available_providers"] == []

    @pytest.mark.asyncio
    async def test_shutdown_closes_providers(self, orchestrator_factory):
        provider = FakeProvider("local")
        orchestrator = orchestrator_factory([provider])

        await orchestrator.shutdown()

        assert provider.closed is True
