"""Deterministic replies used when no provider answers."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .templates import AgentTemplate

KEYWORD_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.5


@dataclass(frozen=True)
class FallbackReply:
    text: str
    confidence: float
    matched_keyword: str = ""


def _contains(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword.lower())}\b", text) is not None


def select_fallback(template: AgentTemplate, text: str) -> FallbackReply:
    """Pick the first fallback rule whose keyword appears in ``text``.

    Same template and same text always produce the same reply.
    """
    lowered = text.lower()
    for rule in template.fallback_rules:
        for keyword in rule.keywords:
            if _contains(lowered, keyword):
                return FallbackReply(rule.response, KEYWORD_CONFIDENCE, keyword)
    return FallbackReply(template.default_fallback, DEFAULT_CONFIDENCE)
