"""
Orchestrator module.

Routes user messages to agents, keeps sessions and statistics, and
exposes the admin operations.
"""

from .orchestrator import AgentOrchestrator, OrchestratorConfig
from .routing import AgentRouter
from .session_store import SessionStore
from .stats import AgentStats, OrchestratorStats

__all__ = [
    "AgentOrchestrator",
    "AgentRouter",
    "AgentStats",
    "OrchestratorConfig",
    "OrchestratorStats",
    "SessionStore",
]
