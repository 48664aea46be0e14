"""
Shared fixtures for advisor tests.

FakeProvider is a real BaseLLMProvider subclass whose probe and generate
results are scripted, so health caching, timeouts and failover run through
the production code paths without any network.
"""

import asyncio

import pytest

from advisor.agents import AgentBuilder, AgentExecutor, AgentRegistry
from advisor.domain.entities import Completion, ProviderKind
from advisor.orchestrator import AgentOrchestrator
from advisor.providers import FailoverChain, ProviderRegistry
from advisor.providers.base import BaseLLMProvider, LLMProviderConfig
from advisor.tools import ToolRegistry, create_builtin_tools, create_default_knowledge_base


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(BaseLLMProvider):
    """Provider with scripted health and replies.

    ``available`` may be a bool or an exception to raise from the probe.
    ``replies`` items are strings (returned) or exceptions (raised); the
    last item repeats once the others are used up.
    """

    kind = ProviderKind.LOCAL

    def __init__(
        self,
        provider_id="fake",
        available=True,
        replies=None,
        clock=None,
        timeout=20.0,
        probe_timeout=5.0,
        health_ttl=45.0,
        models=None,
        probe_delay=0.0,
        generate_delay=0.0,
        finish_reason="stop",
    ):
        config = LLMProviderConfig(
            model=f"{provider_id}-model",
            models=list(models or []),
            timeout=timeout,
            probe_timeout=probe_timeout,
            health_ttl=health_ttl,
        )
        super().__init__(provider_id, f"Fake {provider_id}", config, clock=clock or FakeClock())
        self.available = available
        self.replies = list(replies or ["This is a scripted answer from the fake provider."])
        self.probe_delay = probe_delay
        self.generate_delay = generate_delay
        self.finish_reason = finish_reason
        self.probe_calls = 0
        self.generate_calls = []
        self.closed = False

    async def _probe(self) -> bool:
        self.probe_calls += 1
        if self.probe_delay:
            await asyncio.sleep(self.probe_delay)
        if isinstance(self.available, Exception):
            raise self.available
        return self.available

    async def _generate(self, messages, model, temperature, max_tokens):
        self.generate_calls.append({
            "messages": list(messages),
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.generate_delay:
            await asyncio.sleep(self.generate_delay)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return Completion(
            text=reply,
            model=model,
            provider_id=self.id,
            finish_reason=self.finish_reason,
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def knowledge():
    return create_default_knowledge_base()


@pytest.fixture
def tool_registry(knowledge):
    return ToolRegistry(create_builtin_tools(knowledge))


@pytest.fixture
def agent_registry():
    registry = AgentRegistry()
    AgentBuilder(registry).create_all()
    return registry


def make_orchestrator(providers=None, sink=None, **executor_kwargs):
    """Build an orchestrator over the built-in agents and tools."""
    registry = providers if isinstance(providers, ProviderRegistry) else ProviderRegistry(providers or [])
    knowledge = create_default_knowledge_base()
    tools = ToolRegistry(create_builtin_tools(knowledge))
    agents = AgentRegistry()
    builder = AgentBuilder(agents)
    builder.create_all()
    executor = AgentExecutor(FailoverChain(registry), tools, knowledge, **executor_kwargs)
    return AgentOrchestrator(
        agents=agents,
        executor=executor,
        providers=registry,
        builder=builder,
        sink=sink,
    )


@pytest.fixture
def orchestrator_factory():
    return make_orchestrator
