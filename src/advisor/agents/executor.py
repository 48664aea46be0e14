"""
Agent Executor.

The single shared behaviour for every agent: build the prompt, walk the
provider chain, fall back to a canned reply when no provider answers,
then merge tool output into the reply.

Per request:
    Routed -> AttemptingLLM -> Succeeded | ExhaustedProviders
           -> ToolAugmentation -> Returned
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Optional

from ..domain.entities import (
    AgentContext,
    ChainSuccess,
    Completion,
    Message,
    MessageRole,
    ProviderAttempt,
    ResponseSource,
)
from ..providers.chain import FailoverChain
from ..tools.knowledge import KnowledgeBase
from ..tools.registry import ToolRegistry
from .agent import Agent
from .fallback import select_fallback
from .prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

TOOL_MARKER_RE = re.compile(r"\[TOOL:([A-Za-z0-9_\-]+):(\{.*?\})\]", re.DOTALL)
LEFTOVER_MARKER_RE = re.compile(r"\[TOOL:[^\]\n]*\]?")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

BASE_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 1.0
SLOW_RESPONSE_MS = 10_000


def score_completion(completion: Completion) -> float:
    """Confidence for an LLM answer, from its length and how it finished."""
    confidence = BASE_CONFIDENCE
    length = len(completion.text)
    if length < 50:
        confidence -= 0.2
    elif length > 500:
        confidence += 0.1
    if completion.finish_reason == "length":
        confidence -= 0.1
    if completion.latency_ms > SLOW_RESPONSE_MS:
        confidence -= 0.1
    return round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence)), 2)


class AgentExecutor:
    """Runs any agent against a message.

    Agents hold no request state, so one executor serves every agent and
    every concurrent request.

    Usage:
        executor = AgentExecutor(chain, tool_registry, knowledge_base)
        reply = await executor.process_message(agent, "How big is the AI market?")
    """

    def __init__(
        self,
        chain: FailoverChain,
        tools: ToolRegistry,
        knowledge: KnowledgeBase,
        prompt_builder: Optional[PromptBuilder] = None,
        knowledge_top_n: int = 3,
        tool_timeout: float = 10.0,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        """Initialize the executor.

        Args:
            chain: Failover chain over the registered providers
            tools: Tool registry
            knowledge: Knowledge base for prompt enrichment
            prompt_builder: Prompt builder (default history window 6)
            knowledge_top_n: Knowledge entries included per prompt
            tool_timeout: Seconds allowed per tool execution
            temperature: Sampling temperature, provider default if None
            max_tokens: Token limit, provider default if None
        """
        self.chain = chain
        self.tools = tools
        self.knowledge = knowledge
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.knowledge_top_n = knowledge_top_n
        self.tool_timeout = tool_timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def process_message(
        self,
        agent: Agent,
        text: str,
        context: Optional[AgentContext] = None,
    ) -> Message:
        """Produce an agent reply. Provider and tool failures never raise.

        Args:
            agent: Agent to answer as
            text: User message
            context: History and routing details

        Returns:
            Agent message with confidence and source metadata
        """
        start = time.perf_counter()
        context = context or AgentContext()

        completion: Optional[Completion] = None
        attempts: list[ProviderAttempt] = []

        if agent.enable_llm:
            prompt = self.prompt_builder.build(
                agent,
                text,
                context,
                knowledge=self.knowledge.search(text, limit=self.knowledge_top_n),
                tools=self.tools.tools_for(agent.tools),
            )
            result = await self.chain.run(
                prompt,
                preferred_provider=agent.preferred_provider,
                preferred_model=agent.preferred_model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            attempts = result.attempts
            if isinstance(result, ChainSuccess):
                completion = result.completion

        tools_used: list[str] = []
        content = ""
        if completion is not None:
            source = ResponseSource.LLM
            confidence = score_completion(completion)
            content, tools_used = await self._resolve_tool_markers(agent, completion.text)

        # No provider answered, or the answer was only failed tool markers
        if not content:
            completion = None
            reply = select_fallback(agent.template, text)
            source = ResponseSource.FALLBACK
            confidence = reply.confidence
            content = reply.text
            logger.info(
                f"Agent {agent.id} using fallback reply "
                f"(llm={'on' if agent.enable_llm else 'off'}, attempts={len(attempts)})"
            )

        outputs, triggered = await self._run_triggered_tools(agent, text, skip=tools_used)
        if outputs:
            content = content.rstrip() + "\n\n" + "\n\n".join(outputs)
        tools_used.extend(triggered)

        if tools_used and source == ResponseSource.LLM:
            source = ResponseSource.TOOL_AUGMENTED

        metadata = {
            "source": source.value,
            "processing_time_ms": int((time.perf_counter() - start) * 1000),
            "provider_id": completion.provider_id if completion else None,
            "model": completion.model if completion else None,
            "tools_used": tools_used,
            "provider_attempts": [a.to_dict() for a in attempts],
        }
        if context.routing is not None:
            metadata["routing_score"] = context.routing.score

        return Message(
            role=MessageRole.AGENT,
            content=content,
            agent_id=agent.id,
            confidence=confidence,
            metadata=metadata,
        )

    async def _resolve_tool_markers(
        self, agent: Agent, content: str
    ) -> tuple[str, list[str]]:
        """Replace [TOOL:id:{json}] markers with tool output.

        Markers for tools the agent doesn't own, malformed markers and failed
        tools are removed without a trace.
        """
        if "[TOOL:" not in content:
            return content, []

        pieces: list[str] = []
        used: list[str] = []
        cursor = 0
        for match in TOOL_MARKER_RE.finditer(content):
            pieces.append(content[cursor:match.start()])
            cursor = match.end()

            tool_id, raw_args = match.group(1), match.group(2)
            if tool_id not in agent.tools:
                logger.warning(f"Agent {agent.id} referenced unavailable tool {tool_id}")
                continue
            try:
                arguments = json.loads(raw_args)
            except json.JSONDecodeError as e:
                logger.warning(f"Malformed arguments for tool {tool_id}: {e}")
                continue
            if not isinstance(arguments, dict):
                continue

            result = await self.tools.execute(tool_id, arguments, timeout=self.tool_timeout)
            formatted = self.tools.format_result(result)
            if formatted:
                pieces.append(formatted)
                if tool_id not in used:
                    used.append(tool_id)
            else:
                logger.info(f"Omitting output of tool {tool_id}: {result.error}")

        pieces.append(content[cursor:])
        resolved = LEFTOVER_MARKER_RE.sub("", "".join(pieces))
        resolved = _BLANK_LINES_RE.sub("\n\n", resolved).strip()
        return resolved, used

    async def _run_triggered_tools(
        self, agent: Agent, text: str, skip: list[str]
    ) -> tuple[list[str], list[str]]:
        """Run agent tools whose trigger words appear in the user's text."""
        outputs: list[str] = []
        used: list[str] = []

        for tool in self.tools.match_triggers(text, allowed_ids=agent.tools):
            if tool.id in skip:
                continue

            try:
                arguments = tool.extract_arguments(text) if tool.extract_arguments else {}
            except Exception as e:
                logger.warning(f"Could not extract arguments for {tool.id}: {e}")
                continue

            result = await self.tools.execute(tool.id, arguments, timeout=self.tool_timeout)
            formatted = self.tools.format_result(result)
            if formatted:
                outputs.append(formatted)
                used.append(tool.id)
            else:
                logger.info(f"Omitting output of tool {tool.id}: {result.error}")

        return outputs, used
