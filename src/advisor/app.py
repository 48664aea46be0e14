"""Wire settings into a ready-to-use orchestrator."""

from __future__ import annotations

import logging
from typing import Optional

from .agents import AgentBuilder, AgentExecutor, AgentRegistry, PromptBuilder
from .config import AdvisorSettings
from .domain.ports import IConversationSink
from .orchestrator import AgentOrchestrator, OrchestratorConfig, SessionStore
from .providers import FailoverChain, ProviderRegistry, create_providers
from .tools import ToolRegistry, create_builtin_tools, create_default_knowledge_base

logger = logging.getLogger(__name__)


def build_orchestrator(
    settings: Optional[AdvisorSettings] = None,
    providers: Optional[ProviderRegistry] = None,
    sink: Optional[IConversationSink] = None,
) -> AgentOrchestrator:
    """Create the orchestrator with every built-in agent and tool.

    Args:
        settings: Advisor settings (read from the environment by default)
        providers: Provider registry to use instead of building one from settings
        sink: Optional conversation sink

    Returns:
        Configured AgentOrchestrator
    """
    settings = settings or AdvisorSettings.from_env()
    if providers is None:
        providers = create_providers(settings)

    knowledge = create_default_knowledge_base()
    tools = ToolRegistry(
        create_builtin_tools(knowledge),
        default_timeout=settings.tool_timeout_seconds,
    )

    agents = AgentRegistry()
    builder = AgentBuilder(agents)
    builder.create_all()

    executor = AgentExecutor(
        chain=FailoverChain(providers),
        tools=tools,
        knowledge=knowledge,
        prompt_builder=PromptBuilder(history_window=settings.history_window),
        knowledge_top_n=settings.knowledge_top_n,
        tool_timeout=settings.tool_timeout_seconds,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )

    orchestrator = AgentOrchestrator(
        agents=agents,
        executor=executor,
        providers=providers,
        builder=builder,
        sessions=SessionStore(),
        config=OrchestratorConfig(
            history_window=settings.history_window,
            max_message_length=settings.max_message_length,
            routing_min_score=settings.routing_min_score,
            default_agent_id=settings.default_agent_id,
        ),
        sink=sink,
    )
    logger.info(
        f"Orchestrator ready with {len(agents)} agents, {len(tools.list_tools())} tools "
        f"and providers {providers.ids()}"
    )
    return orchestrator
