"""
Tool Registry.

Holds the tools agents may invoke, matches trigger keywords in free text,
and executes tools under a time bound. Execution never raises: every
failure comes back as an unsuccessful ``ToolResult``.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Iterable, Optional

from ..domain.entities import ToolDefinition, ToolResult
from ..exceptions import ToolExecutionError

logger = logging.getLogger(__name__)


def _trigger_pattern(trigger: str) -> re.Pattern:
    # Whole words only: "market" must not fire on "marketing"
    return re.compile(rf"\b{re.escape(trigger.lower())}\b")


class ToolRegistry:
    """Registry of agent tools keyed by id, in registration order.

    Usage:
        registry = ToolRegistry(default_timeout=10.0)
        registry.register(market_analysis_tool)

        for tool in registry.match_triggers(text, agent.tools):
            result = await registry.execute(tool.id, tool.extract_arguments(text))
    """

    def __init__(
        self,
        tools: Optional[Iterable[ToolDefinition]] = None,
        default_timeout: float = 10.0,
    ):
        """Initialize the tool registry.

        Args:
            tools: Tools to register up front
            default_timeout: Seconds allowed for one tool execution
        """
        self.default_timeout = default_timeout
        self._tools: dict[str, ToolDefinition] = {}
        self._patterns: dict[str, list[re.Pattern]] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        if tool.id in self._tools:
            logger.warning(f"Replacing registered tool {tool.id}")
        self._tools[tool.id] = tool
        self._patterns[tool.id] = [_trigger_pattern(t) for t in tool.triggers]
        logger.debug(f"Registered tool {tool.id}")

    def get(self, tool_id: str) -> Optional[ToolDefinition]:
        return self._tools.get(tool_id)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def tools_for(self, tool_ids: Iterable[str]) -> list[ToolDefinition]:
        """Return registered tools among ``tool_ids``, in the given order."""
        return [self._tools[t] for t in tool_ids if t in self._tools]

    def match_triggers(
        self, text: str, allowed_ids: Optional[Iterable[str]] = None
    ) -> list[ToolDefinition]:
        """Return tools whose triggers appear in ``text``.

        Args:
            text: Free-text user message
            allowed_ids: Restrict matches to these tool ids

        Returns:
            Matching tools in registration order
        """
        allowed = set(allowed_ids) if allowed_ids is not None else None
        lowered = text.lower()
        matches = []
        for tool_id, tool in self._tools.items():
            if allowed is not None and tool_id not in allowed:
                continue
            if any(p.search(lowered) for p in self._patterns[tool_id]):
                matches.append(tool)
        return matches

    async def execute(
        self,
        tool_id: str,
        arguments: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> ToolResult:
        """Execute a tool, bounded by ``timeout`` seconds.

        Returns:
            ToolResult with success=False on unknown tool, error or timeout
        """
        tool = self._tools.get(tool_id)
        if tool is None:
            return ToolResult(tool_id, success=False, error=f"Tool {tool_id} not found")

        timeout = self.default_timeout if timeout is None else timeout
        start = time.perf_counter()

        try:
            data = await asyncio.wait_for(tool.executor(arguments or {}), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Tool {tool_id} timed out after {timeout}s")
            return ToolResult(
                tool_id,
                success=False,
                error=f"Timed out after {timeout}s",
                latency_ms=int((time.perf_counter() - start) * 1000),
            )
        except ToolExecutionError as e:
            logger.warning(f"Tool {tool_id} failed: {e.message}")
            return ToolResult(
                tool_id,
                success=False,
                error=e.message,
                latency_ms=int((time.perf_counter() - start) * 1000),
            )
        except Exception as e:
            logger.exception(f"Unexpected error in tool {tool_id}: {e}")
            return ToolResult(
                tool_id,
                success=False,
                error=str(e),
                latency_ms=int((time.perf_counter() - start) * 1000),
            )

        return ToolResult(
            tool_id,
            success=True,
            data=data,
            latency_ms=int((time.perf_counter() - start) * 1000),
        )

    def format_result(self, result: ToolResult) -> Optional[str]:
        """Render a successful result for inclusion in a reply."""
        if not result.success:
            return None
        tool = self._tools.get(result.tool_id)
        if tool is None or tool.format_result is None:
            return str(result.data)
        try:
            return tool.format_result(result.data)
        except Exception as e:
            logger.warning(f"Could not format result of {result.tool_id}: {e}")
            return None
