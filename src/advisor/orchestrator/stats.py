"""Per-agent and system-wide request statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class AgentStats:
    calls: int = 0
    errors: int = 0
    fallbacks: int = 0
    total_latency_ms: int = 0

    @property
    def average_latency_ms(self) -> float:
        return self.total_latency_ms / self.calls if self.calls else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "calls": self.calls,
            "errors": self.errors,
            "fallbacks": self.fallbacks,
            "average_latency_ms": round(self.average_latency_ms, 1),
        }


@dataclass
class OrchestratorStats:
    """Running totals. Updated on the event loop after each response."""

    total_messages: int = 0
    total_fallbacks: int = 0
    total_errors: int = 0
    average_response_ms: float = 0.0
    agents: dict[str, AgentStats] = field(default_factory=dict)

    def for_agent(self, agent_id: str) -> AgentStats:
        return self.agents.setdefault(agent_id, AgentStats())

    def record(
        self,
        agent_id: str,
        latency_ms: int,
        fallback: bool = False,
        error: bool = False,
    ) -> None:
        self.total_messages += 1
        self.average_response_ms += (latency_ms - self.average_response_ms) / self.total_messages

        agent = self.for_agent(agent_id)
        agent.calls += 1
        agent.total_latency_ms += latency_ms
        if fallback:
            agent.fallbacks += 1
            self.total_fallbacks += 1
        if error:
            agent.errors += 1
            self.total_errors += 1

    def agent_usage(self) -> dict[str, int]:
        return {agent_id: s.calls for agent_id, s in self.agents.items()}
