"""Exception hierarchy for the advisor orchestration layer.

Only ``InvalidMessageError`` is ever surfaced to callers of
``AgentOrchestrator.process_message``. Everything else is raised and caught
inside the layer: provider errors are absorbed by the failover chain, tool
errors by the tool registry, and unexpected agent errors by the orchestrator.

Exception Hierarchy:
    AdvisorError (base)
    ├── ConfigurationError (unrecoverable - fix config)
    ├── InvalidMessageError (user-visible - fix input)
    ├── ProviderError (recoverable - try next provider)
    │   ├── ProviderUnavailableError
    │   └── ProviderTimeoutError
    ├── ToolExecutionError (recoverable - omit tool output)
    ├── AgentNotFoundError
    └── TemplateNotFoundError
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================


class AdvisorError(Exception):
    """Base exception for all advisor errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "PROVIDER_TIMEOUT")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether another attempt might succeed
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration / Input Errors
# ============================================


class ConfigurationError(AdvisorError):
    """Raised when settings are missing or invalid."""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if setting:
            details["setting"] = setting
        super().__init__(
            message,
            code="CONFIG_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


class InvalidMessageError(AdvisorError):
    """Raised when a user message is empty or too long."""

    def __init__(self, message: str, length: Optional[int] = None, **kwargs):
        details = kwargs.pop("details", {})
        if length is not None:
            details["length"] = length
        super().__init__(
            message,
            code="INVALID_MESSAGE",
            details=details,
            recoverable=False,
            **kwargs,
        )


# ============================================
# Provider Errors (Recoverable via failover)
# ============================================


class ProviderError(AdvisorError):
    """Raised when a provider returns a non-success or malformed response."""

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        code: str = "PROVIDER_ERROR",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if provider_id:
            details["provider_id"] = provider_id
        kwargs.setdefault("recoverable", True)
        super().__init__(message, code=code, details=details, **kwargs)
        self.provider_id = provider_id


class ProviderUnavailableError(ProviderError):
    """Raised when a provider cannot be reached or is not configured."""

    def __init__(self, message: str, provider_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            provider_id=provider_id,
            code="PROVIDER_UNAVAILABLE",
            **kwargs,
        )


class ProviderTimeoutError(ProviderError):
    """Raised when a probe or generate call exceeds its time bound."""

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            provider_id=provider_id,
            code="PROVIDER_TIMEOUT",
            details=details,
            **kwargs,
        )


# ============================================
# Tool / Registry Errors
# ============================================


class ToolExecutionError(AdvisorError):
    """Raised inside a tool executor. Never escapes the tool registry."""

    def __init__(self, message: str, tool_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if tool_id:
            details["tool_id"] = tool_id
        super().__init__(
            message,
            code="TOOL_EXECUTION_ERROR",
            details=details,
            recoverable=True,
            **kwargs,
        )
        self.tool_id = tool_id


class AgentNotFoundError(AdvisorError):
    """Raised when an agent id is not registered."""

    def __init__(self, agent_id: str):
        super().__init__(
            f"Agent not found: {agent_id}",
            code="AGENT_NOT_FOUND",
            details={"agent_id": agent_id},
        )
        self.agent_id = agent_id


class TemplateNotFoundError(AdvisorError):
    """Raised when an agent template id is not registered."""

    def __init__(self, template_id: str):
        super().__init__(
            f"Agent template not found: {template_id}",
            code="TEMPLATE_NOT_FOUND",
            details={"template_id": template_id},
        )
        self.template_id = template_id
