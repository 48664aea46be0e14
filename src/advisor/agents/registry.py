"""Ordered registry of live agents."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..exceptions import AgentNotFoundError
from .agent import Agent

logger = logging.getLogger(__name__)


class AgentRegistry:
    """Agents keyed by id. Iteration follows first-registration order.

    Replacing an agent keeps its original position so routing tie-breaks
    stay stable.
    """

    def __init__(self) -> None:
        self._agents: dict[str, Agent] = {}

    def register(self, agent: Agent) -> Optional[Agent]:
        """Register an agent, returning the agent it replaced, if any."""
        previous = self._agents.get(agent.id)
        self._agents[agent.id] = agent
        return previous

    def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def require(self, agent_id: str) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    def all(self) -> list[Agent]:
        return list(self._agents.values())

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)
