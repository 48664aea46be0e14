"""
Prompt Builder for agents.

Encapsulates prompt construction:
- Specialty framing from the agent template
- Available tools and the marker syntax to call them
- Relevant knowledge entries
- Key topics and recent history
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.entities import (
    AgentContext,
    KnowledgeEntry,
    MessageRole,
    PromptMessage,
    PromptRole,
    ToolDefinition,
)
from .agent import Agent

logger = logging.getLogger(__name__)

TOOL_MARKER_HELP = (
    "To use a tool, write [TOOL:<tool-id>:<json arguments>] on its own line, "
    'for example [TOOL:market-analysis:{"industry": "saas"}].'
)


class PromptBuilder:
    """Builds the message list sent to a provider.

    Usage:
        builder = PromptBuilder(history_window=6)
        messages = builder.build(agent, text, context, knowledge, tools)
    """

    def __init__(self, history_window: int = 6, knowledge_chars: int = 600):
        """Initialize the prompt builder.

        Args:
            history_window: Maximum prior messages included
            knowledge_chars: Truncation length for each knowledge entry
        """
        self.history_window = history_window
        self.knowledge_chars = knowledge_chars

    def build_system_prompt(
        self,
        agent: Agent,
        knowledge: Optional[list[KnowledgeEntry]] = None,
        tools: Optional[list[ToolDefinition]] = None,
        key_topics: tuple[str, ...] = (),
    ) -> str:
        prompt = agent.template.system_prompt

        if agent.specialties:
            prompt += "\n\nYour specialties: " + ", ".join(agent.specialties) + "."

        if tools:
            prompt += "\n\nAvailable tools:\n"
            for tool in tools:
                prompt += f"- {tool.id}: {tool.description}\n"
            prompt += TOOL_MARKER_HELP

        if knowledge:
            prompt += "\n\nRelevant knowledge:\n"
            for entry in knowledge:
                prompt += f"- {entry.topic}: {entry.content[:self.knowledge_chars]}\n"

        if key_topics:
            prompt += "\n\nTopics discussed so far: " + ", ".join(key_topics) + "."

        return prompt

    def build(
        self,
        agent: Agent,
        text: str,
        context: AgentContext,
        knowledge: Optional[list[KnowledgeEntry]] = None,
        tools: Optional[list[ToolDefinition]] = None,
    ) -> list[PromptMessage]:
        """Build the full prompt for one request.

        Args:
            agent: Agent answering the request
            text: The new user message
            context: History and session details
            knowledge: Knowledge entries to include
            tools: Tools the agent may call

        Returns:
            System message, history turns, then the new user message
        """
        messages = [
            PromptMessage(
                PromptRole.SYSTEM,
                self.build_system_prompt(agent, knowledge, tools, context.key_topics),
            )
        ]

        history = context.history[-self.history_window:] if self.history_window else ()
        for msg in history:
            role = PromptRole.USER if msg.role == MessageRole.USER else PromptRole.ASSISTANT
            messages.append(PromptMessage(role, msg.content))

        messages.append(PromptMessage(PromptRole.USER, text))
        logger.debug(
            f"Built prompt for {agent.id}: {len(history)} history messages, "
            f"{len(knowledge or [])} knowledge entries"
        )
        return messages
