"""
Static knowledge base with keyword relevance search.

Used to enrich agent prompts with short reference documents and exposed
to agents as the ``knowledge-search`` tool.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..domain.entities import KnowledgeEntry

logger = logging.getLogger(__name__)

TOPIC_WEIGHT = 10
CONTENT_WEIGHT = 5
TAG_WEIGHT = 3

STOP_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
    "her", "was", "one", "our", "out", "has", "have", "how", "what", "when",
    "where", "which", "who", "why", "with", "this", "that", "from", "they",
    "will", "would", "could", "should", "about", "into", "your", "need",
    "want", "some", "any", "does", "tell", "give", "help", "me", "my",
})

_WORD_RE = re.compile(r"[a-z0-9][a-z0-9\-]*")


def extract_keywords(text: str) -> list[str]:
    """Lowercase, tokenize, and drop short and stop words (order kept)."""
    seen: list[str] = []
    for word in _WORD_RE.findall(text.lower()):
        if len(word) > 2 and word not in STOP_WORDS and word not in seen:
            seen.append(word)
    return seen


@dataclass
class ScoredEntry:
    entry: KnowledgeEntry
    score: int


class KnowledgeBase:
    """In-memory knowledge entries keyed by id, in insertion order."""

    def __init__(self, entries: Optional[Iterable[KnowledgeEntry]] = None):
        self._entries: dict[str, KnowledgeEntry] = {}
        for entry in entries or ():
            self.add(entry)

    def add(self, entry: KnowledgeEntry) -> None:
        self._entries[entry.id] = entry

    def get(self, entry_id: str) -> Optional[KnowledgeEntry]:
        return self._entries.get(entry_id)

    def __len__(self) -> int:
        return len(self._entries)

    def categories(self) -> list[str]:
        result: list[str] = []
        for entry in self._entries.values():
            if entry.category not in result:
                result.append(entry.category)
        return result

    def score(self, entry: KnowledgeEntry, keywords: list[str]) -> int:
        topic = entry.topic.lower()
        content = entry.content.lower()
        tags = [t.lower() for t in entry.tags]

        total = 0
        for keyword in keywords:
            if keyword in topic:
                total += TOPIC_WEIGHT
            if keyword in content:
                total += CONTENT_WEIGHT
            total += TAG_WEIGHT * sum(1 for tag in tags if keyword in tag)
        return total

    def search_scored(
        self,
        query: str,
        limit: int = 3,
        category: Optional[str] = None,
    ) -> list[ScoredEntry]:
        keywords = extract_keywords(query)
        if not keywords or limit <= 0:
            return []

        scored = []
        for entry in self._entries.values():
            if category and entry.category != category:
                continue
            score = self.score(entry, keywords)
            if score > 0:
                scored.append(ScoredEntry(entry, score))

        # sorted() is stable, so equal scores keep insertion order
        scored = sorted(scored, key=lambda s: s.score, reverse=True)
        return scored[:limit]

    def search(
        self,
        query: str,
        limit: int = 3,
        category: Optional[str] = None,
    ) -> list[KnowledgeEntry]:
        """Return up to ``limit`` entries relevant to ``query``.

        An empty list is a valid answer. This method never raises.
        """
        results = [s.entry for s in self.search_scored(query, limit, category)]
        logger.debug(f"Knowledge search {query!r} matched {len(results)} entries")
        return results


DEFAULT_KNOWLEDGE = (
    KnowledgeEntry(
        id="investment-criteria",
        topic="Investment Criteria",
        content=(
            "Early-stage investments in AI, blockchain, and emerging technologies. "
            "Investment range: $100K - $2M. Stage: pre-seed to Series A. "
            "Sectors: AI/ML, blockchain, fintech, SaaS, healthtech. "
            "Key criteria: strong technical team with domain expertise, scalable "
            "technology, clear market opportunity ($1B+ TAM), defensible moat, "
            "early traction or validation. Process: screening (2 weeks), due "
            "diligence (4-6 weeks), committee review (1 week), term sheet and "
            "closing (2-3 weeks)."
        ),
        tags=("criteria", "process", "requirements", "investment"),
        category="investment",
    ),
    KnowledgeEntry(
        id="ai-market-trends-2024",
        topic="AI Market Trends 2024",
        content=(
            "Generative AI enterprise adoption: 60% of enterprises implementing "
            "GenAI, average first-year ROI 15-25%. AI infrastructure spending "
            "above $50B, edge AI deployment growing 40% YoY. Regulation: EU AI "
            "Act, US federal guidelines. Vertical AI: healthcare $45B, financial "
            "$35B, manufacturing $28B. AI job postings up 300%."
        ),
        tags=("ai", "trends", "2024", "market"),
        category="market-research",
    ),
    KnowledgeEntry(
        id="startup-funding-stages",
        topic="Startup Funding Stages Guide",
        content=(
            "Pre-seed ($50K - $500K): validate product-market fit, build MVP, "
            "angels and micro-VCs, 10-20% equity. Seed ($500K - $3M): traction "
            "and initial revenue, 15-25% equity. Series A ($3M - $15M): strong "
            "revenue growth, scale go-to-market, 20-30% equity. Series B ($15M - "
            "$50M): proven business model, expansion, 15-25% equity. Metrics: "
            "seed $10K+ MRR, Series A $100K+ MRR, Series B $1M+ MRR."
        ),
        tags=("funding", "stages", "investment", "startup"),
        category="funding",
    ),
    KnowledgeEntry(
        id="growth-marketing-playbook",
        topic="Growth Marketing Playbook",
        content=(
            "Define the ideal customer profile before spending on acquisition. "
            "Track CAC, LTV and payback period per channel. Early-stage B2B "
            "growth usually comes from founder-led sales, content marketing "
            "and SEO, and targeted outbound. Optimize the funnel from the "
            "bottom up: conversion first, then traffic."
        ),
        tags=("marketing", "growth", "acquisition", "funnel"),
        category="marketing",
    ),
)


def create_default_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase(DEFAULT_KNOWLEDGE)
