"""
Agent Orchestrator.

Entry point for every user message. Coordinates:
- Input validation
- Session bookkeeping
- Routing to an agent
- Delegation to the shared agent executor
- Statistics and optional conversation forwarding

Also exposes the admin operations: agent listing and configuration,
provider listing and testing, and system diagnostics.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..agents.agent import Agent
from ..agents.builder import AgentBuilder
from ..agents.executor import AgentExecutor
from ..agents.fallback import select_fallback
from ..agents.registry import AgentRegistry
from ..domain.entities import (
    AgentContext,
    Message,
    MessageRole,
    ProviderStatus,
    ProviderTestResult,
    ResponseSource,
    Session,
    utcnow,
)
from ..domain.ports import IConversationSink
from ..exceptions import ConfigurationError, InvalidMessageError
from ..providers.registry import ProviderRegistry
from ..schemas import AgentConfigUpdate
from .routing import AgentRouter
from .session_store import SessionStore
from .stats import OrchestratorStats

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorConfig:
    """Configuration for the orchestrator.

    Attributes:
        history_window: Prior messages handed to the agent
        max_message_length: Longest accepted user message, in characters
        routing_min_score: Lowest routing score that counts as a match
        default_agent_id: Agent used when routing finds no match
    """

    history_window: int = 6
    max_message_length: int = 2000
    routing_min_score: int = 10
    default_agent_id: str = "general-conversation"


class AgentOrchestrator:
    """Routes messages to agents and records the conversation.

    ``process_message`` only ever raises ``InvalidMessageError``. Anything
    that goes wrong after validation produces a fallback reply instead.

    Usage:
        orchestrator = AgentOrchestrator(
            agents=agent_registry,
            executor=agent_executor,
            providers=provider_registry,
        )

        reply = await orchestrator.process_message(
            "How big is the AI market?",
            session_id="session-123",
        )
        print(reply.agent_id, reply.source, reply.content)
    """

    def __init__(
        self,
        agents: AgentRegistry,
        executor: AgentExecutor,
        providers: ProviderRegistry,
        builder: Optional[AgentBuilder] = None,
        sessions: Optional[SessionStore] = None,
        config: Optional[OrchestratorConfig] = None,
        sink: Optional[IConversationSink] = None,
    ):
        """Initialize the orchestrator.

        Args:
            agents: Registry of routable agents
            executor: Shared agent executor
            providers: Provider registry (for diagnostics and testing)
            builder: Agent builder bound to ``agents``
            sessions: Session store (a new one by default)
            config: Orchestrator configuration
            sink: Optional write-only conversation destination

        Raises:
            ConfigurationError: If the default agent is not registered
        """
        self.agents = agents
        self.executor = executor
        self.providers = providers
        self.builder = builder or AgentBuilder(agents)
        self.sessions = sessions or SessionStore()
        self.config = config or OrchestratorConfig()
        self.sink = sink
        self.router = AgentRouter(
            min_score=self.config.routing_min_score,
            default_agent_id=self.config.default_agent_id,
        )
        self.stats = OrchestratorStats()
        self._background_tasks: set[asyncio.Task] = set()

        if self.config.default_agent_id not in self.agents:
            raise ConfigurationError(
                f"Default agent {self.config.default_agent_id} is not registered",
                setting="ADVISOR_DEFAULT_AGENT",
            )

    # ============================================
    # Message Processing
    # ============================================

    def validate_message(self, text: Any) -> str:
        if not isinstance(text, str) or not text.strip():
            raise InvalidMessageError("Message must not be empty")
        if len(text) > self.config.max_message_length:
            raise InvalidMessageError(
                f"Message exceeds {self.config.max_message_length} characters",
                length=len(text),
            )
        return text.strip()

    async def process_message(
        self,
        text: str,
        session_id: Optional[str] = None,
        user_id: str = "anonymous",
    ) -> Message:
        """Route a user message to an agent and return its reply.

        Args:
            text: User message
            session_id: Existing session id, or None to start a new session
            user_id: Caller identity recorded on new sessions

        Returns:
            The agent message as stored in the session

        Raises:
            InvalidMessageError: If the message is empty or too long
        """
        text = self.validate_message(text)
        start = time.perf_counter()

        session = self.sessions.get_or_create(session_id, user_id)
        history = self.sessions.history(session.id, self.config.history_window)
        user_message = self.sessions.append(session.id, Message.user(text))

        decision = self.router.route(text, self.agents)
        agent = self.agents.require(decision.agent_id)
        context = AgentContext(
            session_id=session.id,
            user_id=session.user_id,
            history=history,
            key_topics=tuple(session.key_topics),
            routing=decision,
        )

        failed = False
        try:
            reply = await self.executor.process_message(agent, text, context)
        except Exception as e:
            logger.exception(f"Agent {agent.id} failed while processing message: {e}")
            reply = self._error_reply(agent, text, e)
            failed = True

        reply = dataclasses.replace(
            reply, metadata={**reply.metadata, "session_id": session.id}
        )
        stored = self.sessions.append(session.id, reply)

        latency_ms = int((time.perf_counter() - start) * 1000)
        self.stats.record(
            agent.id,
            latency_ms,
            fallback=stored.source == ResponseSource.FALLBACK,
            error=failed,
        )
        logger.info(
            f"Session {session.id}: {agent.id} answered via {stored.source.value} "
            f"in {latency_ms}ms"
        )

        self._forward(session, [user_message, stored])
        return stored

    def _error_reply(self, agent: Agent, text: str, error: Exception) -> Message:
        reply = select_fallback(agent.template, text)
        return Message(
            role=MessageRole.AGENT,
            content=reply.text,
            agent_id=agent.id,
            confidence=reply.confidence,
            metadata={
                "source": ResponseSource.FALLBACK.value,
                "processing_time_ms": 0,
                "provider_id": None,
                "model": None,
                "tools_used": [],
                "provider_attempts": [],
                "error": str(error),
            },
        )

    def _forward(self, session: Session, messages: list[Message]) -> None:
        if self.sink is None:
            return
        task = asyncio.create_task(self._record(session, messages))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _record(self, session: Session, messages: list[Message]) -> None:
        try:
            await self.sink.record(session, messages)
        except Exception as e:
            logger.warning(f"Conversation sink failed for session {session.id}: {e}")

    async def drain(self) -> None:
        """Wait for pending conversation forwarding to finish."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))

    async def test_agent(self, agent_id: str, text: str) -> Message:
        """Run one agent directly, without routing or session changes.

        Raises:
            AgentNotFoundError: If the agent id is unknown
            InvalidMessageError: If the message is empty or too long
        """
        text = self.validate_message(text)
        agent = self.agents.require(agent_id)
        return await self.executor.process_message(agent, text, AgentContext())

    # ============================================
    # Agent Administration
    # ============================================

    def get_agent_list(self) -> list[dict[str, Any]]:
        return [agent.summary() for agent in self.agents]

    def get_agent_configuration(self, agent_id: str) -> Optional[dict[str, Any]]:
        agent = self.agents.get(agent_id)
        return agent.configuration() if agent else None

    def get_all_agent_configurations(self) -> dict[str, dict[str, Any]]:
        return {agent.id: agent.configuration() for agent in self.agents}

    def configure_agent(
        self,
        agent_id: str,
        config: Union[AgentConfigUpdate, Mapping[str, Any]],
    ) -> bool:
        """Apply a partial configuration to an agent.

        Args:
            agent_id: Agent to update
            config: Any of preferred_provider, preferred_model, status, enable_llm

        Returns:
            True if applied, False for an unknown agent or invalid config
        """
        agent = self.agents.get(agent_id)
        if agent is None:
            logger.warning(f"Cannot configure unknown agent {agent_id}")
            return False

        try:
            update = (
                config
                if isinstance(config, AgentConfigUpdate)
                else AgentConfigUpdate.model_validate(dict(config))
            )
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Rejected configuration for agent {agent_id}: {e}")
            return False

        changes = update.model_dump(exclude_unset=True)
        for key in ("status", "enable_llm"):
            if key in changes and changes[key] is None:
                del changes[key]

        provider = changes.get("preferred_provider")
        if provider and provider not in self.providers:
            logger.warning(
                f"Agent {agent_id} prefers unregistered provider {provider}; "
                f"priority order will be used"
            )

        for key, value in changes.items():
            setattr(agent, key, value)

        logger.info(f"Configured agent {agent_id}: {changes}")
        return True

    def create_agent(self, template_id: str, **customizations: Any) -> Agent:
        """Create (or replace) an agent from a template.

        Raises:
            TemplateNotFoundError: If the template id is unknown
        """
        return self.builder.create_agent(template_id, **customizations)

    # ============================================
    # Providers and Diagnostics
    # ============================================

    async def get_llm_providers(self) -> list[ProviderStatus]:
        """Return cached status for every provider, refreshing stale entries."""
        return await self.providers.detect()

    async def test_llm_provider(self, provider_id: str) -> ProviderTestResult:
        return await self.providers.test_provider(provider_id)

    def get_system_stats(self) -> dict[str, Any]:
        return {
            "total_messages": self.stats.total_messages,
            "total_fallbacks": self.stats.total_fallbacks,
            "total_errors": self.stats.total_errors,
            "average_response_ms": round(self.stats.average_response_ms, 1),
            "agent_usage": self.stats.agent_usage(),
            "total_sessions": len(self.sessions),
            "active_sessions": self.sessions.active_sessions(),
            "available_providers": [
                s.id for s in self.providers.cached_statuses() if s.available
            ],
        }

    async def perform_system_diagnostics(self) -> dict[str, Any]:
        """Report on sessions, agents and providers.

        Provider availability comes from the health cache, probing only
        entries whose TTL has expired.
        """
        statuses = await self.providers.detect()
        best = next((s.id for s in statuses if s.available), None)

        agents = []
        for agent in self.agents:
            agent_stats = self.stats.for_agent(agent.id)
            agents.append({
                **agent.summary(),
                "enable_llm": agent.enable_llm,
                "preferred_provider": agent.preferred_provider,
                **agent_stats.to_dict(),
            })

        return {
            "status": "healthy" if best else "degraded",
            "timestamp": utcnow().isoformat(),
            "sessions": {
                "total": len(self.sessions),
                "active": self.sessions.active_sessions(),
                "messages": self.sessions.total_messages,
            },
            "agents": agents,
            "providers": [s.to_dict() for s in statuses],
            "best_provider": best,
            "stats": self.get_system_stats(),
        }

    async def shutdown(self) -> None:
        await self.drain()
        await self.providers.aclose()
