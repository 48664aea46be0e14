"""
Business Advisor Agent Orchestrator.

Routes user messages to specialist agents and answers them through a
prioritized chain of LLM providers, falling back to canned replies when
no provider is reachable.

Architecture:
- Domain: Core entities and port interfaces
- Providers: LLM adapters (Ollama, OpenAI-compatible, Anthropic) and failover
- Tools: Calculators and the knowledge base
- Agents: Templates, builder, registry and the shared executor
- Orchestrator: Routing, sessions, statistics and admin operations

Key Features:
- Health-cached provider detection with bounded probes
- Deterministic keyword routing
- Tool markers and trigger-word tool augmentation
- Replies on every valid message, even with no provider available
"""

# Domain entities
from .domain.entities import (
    AgentContext,
    AgentStatus,
    Message,
    MessageRole,
    ProviderStatus,
    ResponseSource,
    Session,
)

# Agents
from .agents import Agent, AgentBuilder, AgentExecutor, AgentRegistry

# Orchestrator
from .orchestrator import AgentOrchestrator, OrchestratorConfig

# Providers
from .providers import FailoverChain, ProviderRegistry, create_providers

# Configuration and wiring
from .app import build_orchestrator
from .config import AdvisorSettings, configure_logging
from .exceptions import (
    AdvisorError,
    AgentNotFoundError,
    ConfigurationError,
    InvalidMessageError,
    ProviderError,
)

__all__ = [
    # Domain
    "AgentContext",
    "AgentStatus",
    "Message",
    "MessageRole",
    "ProviderStatus",
    "ResponseSource",
    "Session",
    # Agents
    "Agent",
    "AgentBuilder",
    "AgentExecutor",
    "AgentRegistry",
    # Orchestrator
    "AgentOrchestrator",
    "OrchestratorConfig",
    # Providers
    "FailoverChain",
    "ProviderRegistry",
    "create_providers",
    # Wiring
    "AdvisorSettings",
    "build_orchestrator",
    "configure_logging",
    # Errors
    "AdvisorError",
    "AgentNotFoundError",
    "ConfigurationError",
    "InvalidMessageError",
    "ProviderError",
]
