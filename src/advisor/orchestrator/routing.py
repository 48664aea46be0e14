"""
Agent Router.

Scores every active agent against a message and picks the best one.
Routing is a pure function of the text and the registry's contents, so
the same message always goes to the same agent.

Scoring:
    +25  per specialty phrase contained in the message
    +10  per specialty word (longer than 3 chars) present as a message word,
         for specialties not already matched as a whole phrase
    +20  per trigger keyword found on word boundaries
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from ..agents.agent import Agent
from ..domain.entities import RoutingDecision

logger = logging.getLogger(__name__)

SPECIALTY_PHRASE_SCORE = 25
SPECIALTY_WORD_SCORE = 10
TRIGGER_SCORE = 20

DEFAULTED_CONFIDENCE = 0.3
MAX_ROUTED_CONFIDENCE = 0.95

_WORD_RE = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")


def tokenize(text: str) -> set[str]:
    return set(_WORD_RE.findall(text.lower()))


def _contains_phrase(lowered: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase.lower())}\b", lowered) is not None


class AgentRouter:
    """Chooses an agent for each message.

    Ties on score go to the higher ``priority``, then to the agent
    registered first. When no agent reaches ``min_score`` the default
    agent is chosen, whatever its status.
    """

    def __init__(self, min_score: int = 10, default_agent_id: str = "general-conversation"):
        """Initialize the router.

        Args:
            min_score: Lowest score that counts as a match
            default_agent_id: Agent used when nothing matches
        """
        self.min_score = min_score
        self.default_agent_id = default_agent_id

    def score(self, agent: Agent, text: str) -> tuple[int, list[str]]:
        """Return the agent's score for ``text`` and the terms that matched."""
        lowered = text.lower()
        tokens = tokenize(text)
        total = 0
        matched: list[str] = []

        for specialty in agent.specialties:
            if _contains_phrase(lowered, specialty):
                total += SPECIALTY_PHRASE_SCORE
                matched.append(specialty.lower())
                continue
            for word in tokenize(specialty):
                if len(word) > 3 and word in tokens:
                    total += SPECIALTY_WORD_SCORE
                    matched.append(word)

        for trigger in agent.trigger_keywords:
            if _contains_phrase(lowered, trigger):
                total += TRIGGER_SCORE
                matched.append(trigger.lower())

        return total, matched

    def route(self, text: str, agents: Iterable[Agent]) -> RoutingDecision:
        """Pick the agent for ``text`` among ``agents`` (in registration order)."""
        best_key = None
        best: RoutingDecision | None = None

        for index, agent in enumerate(agents):
            if not agent.is_active:
                continue
            score, matched = self.score(agent, text)
            if score < self.min_score:
                continue
            key = (score, agent.priority, -index)
            if best_key is None or key > best_key:
                best_key = key
                best = RoutingDecision(
                    agent_id=agent.id,
                    score=score,
                    confidence=min(0.5 + score / 100, MAX_ROUTED_CONFIDENCE),
                    matched_terms=tuple(matched),
                )

        if best is None:
            logger.debug(f"No agent matched, routing to default {self.default_agent_id}")
            return RoutingDecision(
                agent_id=self.default_agent_id,
                score=0,
                confidence=DEFAULTED_CONFIDENCE,
                defaulted=True,
            )

        logger.debug(
            f"Routed to {best.agent_id} (score={best.score}, terms={list(best.matched_terms)})"
        )
        return best
