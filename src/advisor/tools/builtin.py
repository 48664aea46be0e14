"""
Built-in advisory tools.

All tools work from small static datasets and have no side effects:
- market-analysis: market size and growth for an industry
- valuation-estimator: revenue-multiple valuation range
- funding-calculator: burn rate, runway and raise size
- knowledge-search: keyword search over the knowledge base
"""

from __future__ import annotations

import re
from typing import Any, Optional

from ..domain.entities import ToolDefinition
from ..exceptions import ToolExecutionError
from .knowledge import KnowledgeBase

# ============================================
# Static Data
# ============================================

# size in billions USD unless unit says otherwise, growth as CAGR
MARKET_DATA: dict[str, dict[str, Any]] = {
    "ai": {"size": 207, "growth": 0.20, "unit": "B"},
    "fintech": {"size": 162, "growth": 0.16, "unit": "B"},
    "healthcare": {"size": 125, "growth": 0.12, "unit": "B"},
    "gaming": {"size": 185, "growth": 0.09, "unit": "B"},
    "blockchain": {"size": 19, "growth": 0.58, "unit": "B"},
    "saas": {"size": 195, "growth": 0.18, "unit": "B"},
    "ecommerce": {"size": 4.9, "growth": 0.11, "unit": "T"},
    "cybersecurity": {"size": 155, "growth": 0.13, "unit": "B"},
    "edtech": {"size": 89, "growth": 0.15, "unit": "B"},
    "cleantech": {"size": 1.4, "growth": 0.25, "unit": "T"},
}

VALUATION_MULTIPLES: dict[str, float] = {
    "ai": 10,
    "fintech": 12,
    "healthcare": 8,
    "gaming": 7,
    "blockchain": 15,
    "saas": 11,
    "ecommerce": 6,
    "cybersecurity": 9,
    "edtech": 8,
    "cleantech": 13,
    "default": 8,
}

STAGE_MULTIPLIERS: dict[str, float] = {
    "seed": 0.6,
    "series-a": 1.0,
    "series-b": 1.2,
    "series-c": 1.4,
    "growth": 1.1,
    "late-stage": 1.3,
}

FUNDING_STAGES: dict[str, dict[str, str]] = {
    "pre-seed": {
        "description": "Initial funding to validate idea and build MVP",
        "typical_range": "$50K - $500K",
        "time_to_raise": "2-4 months",
    },
    "seed": {
        "description": "Product-market fit and initial traction funding",
        "typical_range": "$500K - $3M",
        "time_to_raise": "3-6 months",
    },
    "series-a": {
        "description": "Scale proven business model with significant growth",
        "typical_range": "$3M - $15M",
        "time_to_raise": "4-8 months",
    },
    "series-b": {
        "description": "Aggressive expansion and market leadership",
        "typical_range": "$15M - $50M",
        "time_to_raise": "6-12 months",
    },
}

INDUSTRY_ALIASES: dict[str, tuple[str, ...]] = {
    "ai": ("ai", "artificial intelligence", "machine learning", "ml"),
    "fintech": ("fintech", "financial technology", "payments"),
    "healthcare": ("healthcare", "healthtech", "health tech", "medical"),
    "gaming": ("gaming", "games", "video game"),
    "blockchain": ("blockchain", "crypto", "web3"),
    "saas": ("saas", "software as a service", "b2b software"),
    "ecommerce": ("ecommerce", "e-commerce", "online retail"),
    "cybersecurity": ("cybersecurity", "cyber security", "infosec"),
    "edtech": ("edtech", "education technology", "education"),
    "cleantech": ("cleantech", "climate tech", "clean energy", "renewable"),
}

# ============================================
# Argument Extraction
# ============================================

_AMOUNT = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
_MONEY_RE = re.compile(
    r"\$\s*" + _AMOUNT + r"\s*(k|m|mm|b|thousand|million|billion)?\b"
    r"|" + _AMOUNT + r"\s*(k|m|mm|b|thousand|million|billion)\b",
    re.IGNORECASE,
)
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
_STAGE_RE = re.compile(
    r"\b(pre[\s-]?seed|seed|series[\s-]?([abc])|late[\s-]?stage|growth[\s-]stage)\b",
    re.IGNORECASE,
)
_TEAM_RE = re.compile(
    r"\bteam of (\d+)\b|\b(\d+)\s*(?:people|employees|engineers|person|members|hires)\b",
    re.IGNORECASE,
)
_MONTHS_RE = re.compile(r"\b(\d+)\s*months?\b", re.IGNORECASE)

_UNIT_TO_MILLIONS = {
    None: 1e-6,
    "k": 1e-3,
    "thousand": 1e-3,
    "m": 1.0,
    "mm": 1.0,
    "million": 1.0,
    "b": 1e3,
    "billion": 1e3,
}


def detect_industry(text: str) -> Optional[str]:
    lowered = text.lower()
    for industry, aliases in INDUSTRY_ALIASES.items():
        for alias in aliases:
            if re.search(rf"\b{re.escape(alias)}\b", lowered):
                return industry
    return None


def detect_stage(text: str) -> Optional[str]:
    match = _STAGE_RE.search(text)
    if not match:
        return None
    raw = match.group(1).lower()
    if match.group(2):
        return f"series-{match.group(2).lower()}"
    if raw.startswith("pre"):
        return "pre-seed"
    if raw.startswith("late"):
        return "late-stage"
    if raw.startswith("growth"):
        return "growth"
    return "seed"


def parse_amount_millions(text: str) -> Optional[float]:
    """Return the first money amount in ``text``, in millions of USD."""
    match = _MONEY_RE.search(text)
    if not match:
        return None
    number = match.group(1) or match.group(3)
    unit = (match.group(2) or match.group(4) or "").lower() or None
    return float(number.replace(",", "")) * _UNIT_TO_MILLIONS[unit]


def parse_percent(text: str) -> Optional[float]:
    match = _PERCENT_RE.search(text)
    return float(match.group(1)) / 100 if match else None


def extract_market_arguments(text: str) -> dict[str, Any]:
    args: dict[str, Any] = {}
    industry = detect_industry(text)
    if industry:
        args["industry"] = industry
    return args


def extract_valuation_arguments(text: str) -> dict[str, Any]:
    args = extract_market_arguments(text)
    revenue = parse_amount_millions(text)
    if revenue is not None:
        args["revenue"] = revenue
    growth = parse_percent(text)
    if growth is not None:
        args["growth"] = growth
    stage = detect_stage(text)
    if stage:
        args["stage"] = stage
    return args


def extract_funding_arguments(text: str) -> dict[str, Any]:
    args: dict[str, Any] = {}
    team = _TEAM_RE.search(text)
    if team:
        args["team_size"] = int(team.group(1) or team.group(2))
    months = _MONTHS_RE.search(text)
    if months:
        args["timeline_months"] = int(months.group(1))
    stage = detect_stage(text)
    if stage:
        args["stage"] = stage
    return args


# ============================================
# Market Analysis
# ============================================


def _market_insights(industry: str, data: dict[str, Any]) -> list[str]:
    insights = []
    if data["growth"] > 0.2:
        insights.append("High growth sector with significant investment opportunities")
    if data["unit"] == "T" or data["size"] > 100:
        insights.append("Large market size indicates strong demand and competition")
    if industry == "ai":
        insights.append("AI market is expanding rapidly on enterprise adoption")
    elif industry == "blockchain":
        insights.append("Blockchain shows the highest growth rate from a smaller base")
    elif industry == "fintech":
        insights.append("Fintech benefits from digital transformation trends")
    return insights


async def analyze_market(args: dict[str, Any]) -> dict[str, Any]:
    industry = str(args.get("industry", "")).lower()
    if not industry:
        raise ToolExecutionError("An industry is required", tool_id="market-analysis")

    data = MARKET_DATA.get(industry)
    if data is None:
        raise ToolExecutionError(
            f"No market data for industry '{industry}'. "
            f"Available industries: {', '.join(MARKET_DATA)}",
            tool_id="market-analysis",
        )

    growth = data["growth"]
    if growth > 0.2:
        trend = "High Growth"
    elif growth > 0.1:
        trend = "Moderate Growth"
    else:
        trend = "Stable"

    return {
        "industry": industry,
        "region": args.get("region", "global"),
        "current_size": data["size"],
        "unit": data["unit"],
        "growth_rate": growth,
        "projected_size_5y": round(data["size"] * (1 + growth) ** 5, 1),
        "market_trend": trend,
        "key_insights": _market_insights(industry, data),
    }


def format_market(data: dict[str, Any]) -> str:
    unit = data["unit"]
    lines = [
        f"Market analysis ({data['industry']}): current size "
        f"${data['current_size']}{unit}, growing {data['growth_rate']:.0%} per year, "
        f"projected ${data['projected_size_5y']}{unit} in 5 years ({data['market_trend']})."
    ]
    lines.extend(f"- {insight}" for insight in data["key_insights"])
    return "\n".join(lines)


# ============================================
# Valuation Estimator
# ============================================


async def estimate_valuation(args: dict[str, Any]) -> dict[str, Any]:
    if args.get("revenue") is None:
        raise ToolExecutionError(
            "Annual revenue is required for a valuation estimate",
            tool_id="valuation-estimator",
        )

    industry = str(args.get("industry") or "default").lower()
    revenue = float(args["revenue"])
    growth = float(args.get("growth", 0.0))
    stage = str(args.get("stage") or "series-a").lower()

    multiple = VALUATION_MULTIPLES.get(industry, VALUATION_MULTIPLES["default"])
    stage_multiplier = STAGE_MULTIPLIERS.get(stage, 1.0)
    final_multiple = multiple * (1 + growth) * stage_multiplier
    base = revenue * final_multiple

    return {
        "industry": industry,
        "revenue": revenue,
        "growth": growth,
        "stage": stage,
        "base_valuation": round(base, 2),
        "low": round(base * 0.8, 2),
        "high": round(base * 1.2, 2),
        "industry_multiple": multiple,
        "stage_multiplier": stage_multiplier,
        "final_multiple": round(final_multiple, 2),
    }


def format_valuation(data: dict[str, Any]) -> str:
    return (
        f"Valuation estimate ({data['industry']}, {data['stage']}): "
        f"${data['low']:,.1f}M - ${data['high']:,.1f}M, "
        f"based on a {data['final_multiple']:.1f}x revenue multiple."
    )


# ============================================
# Funding Calculator
# ============================================


async def calculate_funding(args: dict[str, Any]) -> dict[str, Any]:
    team_size = int(args.get("team_size", 5))
    avg_salary = float(args.get("avg_salary", 80_000))
    operational = float(args.get("operational_costs", 60_000))
    marketing = float(args.get("marketing_budget", 120_000))
    months = int(args.get("timeline_months", 18))
    stage = str(args.get("stage") or "seed").lower()

    if team_size <= 0 or months <= 0:
        raise ToolExecutionError(
            "Team size and timeline must be positive", tool_id="funding-calculator"
        )

    monthly_burn = (team_size * avg_salary + operational + marketing) / 12
    total_needed = monthly_burn * months

    return {
        "stage": stage,
        "team_size": team_size,
        "monthly_burn": round(monthly_burn, 2),
        "annual_burn": round(monthly_burn * 12, 2),
        "runway_months": months,
        "total_needed": round(total_needed, 2),
        "safety_buffer": round(total_needed * 0.2, 2),
        "recommended_raise": round(total_needed * 1.2, 2),
        "stage_guidance": FUNDING_STAGES.get(stage),
    }


def format_funding(data: dict[str, Any]) -> str:
    text = (
        f"Funding estimate: monthly burn ${data['monthly_burn']:,.0f}, "
        f"${data['total_needed']:,.0f} needed for {data['runway_months']} months "
        f"of runway. Recommended raise ${data['recommended_raise']:,.0f} "
        f"including a 20% buffer."
    )
    guidance = data.get("stage_guidance")
    if guidance:
        text += f" Typical {data['stage']} round: {guidance['typical_range']}."
    return text


# ============================================
# Knowledge Search
# ============================================


def _knowledge_executor(knowledge: KnowledgeBase):
    async def search_knowledge(args: dict[str, Any]) -> list[dict[str, Any]]:
        query = str(args.get("query", ""))
        entries = knowledge.search(
            query,
            limit=int(args.get("limit", 3)),
            category=args.get("category"),
        )
        return [
            {"id": e.id, "topic": e.topic, "content": e.content, "category": e.category}
            for e in entries
        ]

    return search_knowledge


def format_knowledge(results: list[dict[str, Any]]) -> Optional[str]:
    if not results:
        return None
    lines = ["Relevant knowledge:"]
    for item in results:
        summary = item["content"][:200].rstrip()
        lines.append(f"- {item['topic']}: {summary}")
    return "\n".join(lines)


# ============================================
# Tool Definitions
# ============================================


def create_builtin_tools(knowledge: KnowledgeBase) -> list[ToolDefinition]:
    """Return the built-in tools, bound to ``knowledge`` for search."""
    return [
        ToolDefinition(
            id="market-analysis",
            name="Market Analysis",
            description="Returns estimated market size and growth for an industry.",
            executor=analyze_market,
            parameters={
                "type": "object",
                "properties": {
                    "industry": {"type": "string", "enum": list(MARKET_DATA)},
                    "region": {"type": "string", "default": "global"},
                },
                "required": ["industry"],
            },
            triggers=("market size", "market analysis", "market research", "tam", "market"),
            extract_arguments=extract_market_arguments,
            format_result=format_market,
        ),
        ToolDefinition(
            id="valuation-estimator",
            name="Valuation Estimator",
            description="Estimates valuation from revenue, growth and industry multiples.",
            executor=estimate_valuation,
            parameters={
                "type": "object",
                "properties": {
                    "industry": {"type": "string"},
                    "revenue": {"type": "number", "description": "Annual revenue, millions USD"},
                    "growth": {"type": "number", "description": "YoY growth (0.2 = 20%)"},
                    "stage": {"type": "string", "default": "series-a"},
                },
                "required": ["revenue"],
            },
            triggers=("valuation", "valuate", "worth", "valued"),
            extract_arguments=extract_valuation_arguments,
            format_result=format_valuation,
        ),
        ToolDefinition(
            id="funding-calculator",
            name="Funding Calculator",
            description="Calculates burn rate, runway and a recommended raise.",
            executor=calculate_funding,
            parameters={
                "type": "object",
                "properties": {
                    "team_size": {"type": "integer", "default": 5},
                    "avg_salary": {"type": "number", "default": 80000},
                    "operational_costs": {"type": "number", "default": 60000},
                    "marketing_budget": {"type": "number", "default": 120000},
                    "timeline_months": {"type": "integer", "default": 18},
                    "stage": {"type": "string", "default": "seed"},
                },
            },
            triggers=("burn rate", "runway", "how much funding", "how much to raise", "fundraise"),
            extract_arguments=extract_funding_arguments,
            format_result=format_funding,
        ),
        ToolDefinition(
            id="knowledge-search",
            name="Knowledge Search",
            description="Searches reference documents by keyword.",
            executor=_knowledge_executor(knowledge),
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string"},
                    "category": {"type": "string"},
                    "limit": {"type": "integer", "default": 3},
                },
                "required": ["query"],
            },
            triggers=("investment criteria", "funding stages"),
            extract_arguments=lambda text: {"query": text},
            format_result=format_knowledge,
        ),
    ]
