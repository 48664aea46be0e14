"""
Agent templates.

A template is the immutable blueprint an agent is built from: its system
prompt, routing vocabulary, tool set and deterministic fallback replies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class FallbackRule:
    """Canned reply used when no provider answers and a keyword matches."""

    keywords: tuple[str, ...]
    response: str


@dataclass(frozen=True)
class AgentTemplate:
    """Blueprint for an agent.

    Attributes:
        id: Template id, also the id of agents created from it
        name: Display name
        description: One-line summary
        system_prompt: Specialty framing sent to the model
        specialties: Phrases used for routing and prompt framing
        trigger_keywords: Words that route messages to this agent
        tools: Tool ids the agent may invoke
        priority: Routing tie-break, higher wins
        fallback_rules: Ordered keyword rules for deterministic replies
        default_fallback: Reply when no fallback rule matches
        preferred_provider: Provider tried first, if registered
        preferred_model: Model requested from providers that serve it
        examples: Sample questions for documentation and testing
    """

    id: str
    name: str
    description: str
    system_prompt: str
    default_fallback: str
    specialties: tuple[str, ...] = ()
    trigger_keywords: tuple[str, ...] = ()
    tools: tuple[str, ...] = ()
    priority: int = 50
    fallback_rules: tuple[FallbackRule, ...] = ()
    preferred_provider: Optional[str] = None
    preferred_model: Optional[str] = None
    examples: tuple[str, ...] = field(default=())


GENERAL = AgentTemplate(
    id="general-conversation",
    name="General Advisor",
    description="Handles greetings, general questions and navigation.",
    system_prompt=(
        "You are a friendly startup advisor. Answer general questions briefly, "
        "and suggest which specialist (marketing, investment, financial, legal, "
        "research, support, or venture launch) can help with detailed topics."
    ),
    specialties=("General guidance", "Greetings and introductions", "Follow-up questions"),
    trigger_keywords=("hello", "hi", "hey", "thanks", "thank you", "good morning"),
    tools=("knowledge-search",),
    priority=80,
    fallback_rules=(
        FallbackRule(
            ("hello", "hi", "hey", "good morning"),
            "Hello! I'm here to help with marketing, investment, financial, legal "
            "and launch questions. What are you working on?",
        ),
        FallbackRule(
            ("thanks", "thank you"),
            "You're welcome! Let me know if there's anything else I can help with.",
        ),
    ),
    default_fallback=(
        "I can help with growth strategy, funding, financial planning, legal "
        "questions and launching a venture. Tell me a bit more about what you need."
    ),
    examples=("Hello, what can you help with?",),
)

MARKETING = AgentTemplate(
    id="marketing",
    name="Marketing Specialist",
    description="Growth marketing, customer acquisition and brand strategy.",
    system_prompt=(
        "You are a marketing specialist for technology startups. Give specific, "
        "actionable advice on growth, customer acquisition, brand and content "
        "marketing, with measurable goals and realistic timelines."
    ),
    specialties=(
        "Growth Marketing",
        "Customer Acquisition",
        "Brand Strategy",
        "Content Marketing",
        "Digital Campaigns",
    ),
    trigger_keywords=(
        "marketing", "growth", "customers", "acquisition", "campaign", "brand",
        "branding", "content", "social media", "advertising", "seo", "conversion",
        "leads", "funnel", "retention", "churn",
    ),
    tools=("market-analysis", "knowledge-search"),
    priority=78,
    fallback_rules=(
        FallbackRule(
            ("growth", "scale"),
            "I'll help you develop a growth strategy. What's your current stage and "
            "primary growth challenge? Are you focusing on user acquisition, "
            "retention, or revenue growth?",
        ),
        FallbackRule(
            ("marketing", "campaign"),
            "I can help you create effective marketing campaigns. What's your target "
            "audience and primary marketing goal? Let's build a strategy that fits "
            "your budget and timeline.",
        ),
        FallbackRule(
            ("customers", "acquisition"),
            "Customer acquisition is crucial for startup success. What's your "
            "current customer acquisition cost (CAC) and lifetime value (LTV)? I can "
            "help optimize your acquisition strategy.",
        ),
    ),
    default_fallback=(
        "I'm your marketing and growth specialist. Whether you need customer "
        "acquisition strategies, brand building, or campaign optimization, I can "
        "help. What's your main marketing challenge?"
    ),
    examples=("I need marketing advice", "How do I lower our CAC?"),
)

INVESTMENT = AgentTemplate(
    id="investment",
    name="Investment Advisor",
    description="Investment analysis, funding strategy and valuation.",
    system_prompt=(
        "You are an investment advisor for early-stage companies. Explain "
        "funding options, investor expectations and valuation with concrete "
        "numbers where possible."
    ),
    specialties=("Investment Analysis", "Funding Strategy", "Valuation", "Due Diligence"),
    trigger_keywords=(
        "investment", "invest", "investor", "investors", "funding", "capital",
        "valuation", "pitch", "term sheet", "due diligence",
    ),
    tools=("valuation-estimator", "market-analysis", "knowledge-search"),
    priority=75,
    fallback_rules=(
        FallbackRule(
            ("valuation", "worth"),
            "Valuation at early stage depends on revenue, growth rate, and industry "
            "multiples. Share your annual revenue, growth and stage and I'll give "
            "you a range.",
        ),
        FallbackRule(
            ("funding", "raise", "capital"),
            "Let's work out your funding strategy. What stage are you at, how much "
            "traction do you have, and how much runway do you need?",
        ),
    ),
    default_fallback=(
        "I can help with investment readiness, funding strategy and valuation. "
        "What stage is your company at?"
    ),
    examples=("What is my SaaS startup worth at $5M revenue?",),
)

FINANCIAL = AgentTemplate(
    id="financial",
    name="Financial Strategist",
    description="Financial modeling, unit economics and runway planning.",
    system_prompt=(
        "You are a startup CFO advisor. Help with financial models, unit "
        "economics, cash flow, burn rate and runway planning."
    ),
    specialties=("Financial Modeling", "Unit Economics", "Cash Flow Analysis", "Financial Planning"),
    trigger_keywords=(
        "financial", "finance", "budget", "revenue", "profit", "forecast",
        "cash flow", "burn rate", "runway", "unit economics", "ltv", "cac",
        "arr", "mrr", "margins",
    ),
    tools=("funding-calculator", "valuation-estimator"),
    priority=76,
    fallback_rules=(
        FallbackRule(
            ("burn", "runway"),
            "To plan runway, start from monthly burn: team cost, operations and "
            "marketing. How large is your team and how many months do you need?",
        ),
        FallbackRule(
            ("unit economics", "ltv", "cac"),
            "Healthy unit economics usually means LTV at least 3x CAC with payback "
            "under 12 months. What are your current numbers?",
        ),
    ),
    default_fallback=(
        "I can help with financial modeling, unit economics and runway planning. "
        "What financial question are you working on?"
    ),
)

LEGAL = AgentTemplate(
    id="legal",
    name="Legal Advisor",
    description="Corporate structure, contracts, IP and compliance guidance.",
    system_prompt=(
        "You are a startup legal guide. Explain corporate, contract, IP and "
        "compliance topics in plain language and recommend consulting a "
        "qualified attorney for binding advice."
    ),
    specialties=("Corporate Law", "Contract Review", "Intellectual Property", "Regulatory Compliance"),
    trigger_keywords=(
        "legal", "law", "contract", "agreement", "compliance", "patent",
        "trademark", "copyright", "gdpr", "privacy", "incorporation", "vesting",
        "nda",
    ),
    tools=("knowledge-search",),
    priority=77,
    fallback_rules=(
        FallbackRule(
            ("contract", "agreement", "nda"),
            "For contracts, focus on scope, payment terms, IP ownership, liability "
            "caps and termination. What kind of agreement are you reviewing?",
        ),
        FallbackRule(
            ("patent", "trademark", "copyright"),
            "Protecting IP early matters. Are you looking at patents for technology, "
            "trademarks for your brand, or copyright for content and code?",
        ),
    ),
    default_fallback=(
        "I can outline legal considerations for startups. This is general "
        "information, not legal advice. What legal topic can I help with?"
    ),
)

RESEARCH = AgentTemplate(
    id="research",
    name="Research Analyst",
    description="Market research, competitive analysis and industry trends.",
    system_prompt=(
        "You are a market research analyst. Provide market sizing, competitive "
        "landscape and trend analysis backed by data."
    ),
    specialties=("Market Research", "Competitive Analysis", "Industry Trends", "Market Sizing"),
    trigger_keywords=(
        "research", "competitor", "competitors", "competitive", "trends",
        "industry analysis", "market size", "tam",
    ),
    tools=("market-analysis", "knowledge-search"),
    priority=70,
    fallback_rules=(
        FallbackRule(
            ("competitor", "competitors", "competitive"),
            "For a competitive analysis, list your top competitors and compare "
            "positioning, pricing, and traction. Which market are you in?",
        ),
    ),
    default_fallback=(
        "I can research markets, competitors and trends. Which industry should "
        "I look at?"
    ),
)

SUPPORT = AgentTemplate(
    id="support",
    name="Technical Support",
    description="Troubleshooting, account and integration help.",
    system_prompt=(
        "You are a technical support specialist. Diagnose problems step by "
        "step and ask for error messages and reproduction steps."
    ),
    specialties=("Technical Troubleshooting", "Platform Integration", "Account Management"),
    trigger_keywords=(
        "issue", "problem", "error", "bug", "broken", "not working", "support",
        "troubleshoot", "login", "password", "account", "integration",
    ),
    tools=(),
    priority=85,
    fallback_rules=(
        FallbackRule(
            ("login", "password", "account"),
            "For account access issues, try resetting your password first. If that "
            "doesn't work, tell me the exact error message you see.",
        ),
        FallbackRule(
            ("error", "bug", "broken", "not working"),
            "Sorry you're running into trouble. What were you doing when the "
            "problem occurred, and what error message did you see?",
        ),
    ),
    default_fallback=(
        "I'm here to help with technical issues. Describe the problem and any "
        "error messages and I'll help troubleshoot."
    ),
)

VENTURE_LAUNCH = AgentTemplate(
    id="venture-launch",
    name="Venture Launch Guide",
    description="Business plans, MVPs, go-to-market and launch planning.",
    system_prompt=(
        "You are a venture builder. Guide founders from idea to launch: "
        "business plan, market validation, MVP scope, go-to-market and "
        "funding needs."
    ),
    specialties=("Business plan development", "Market validation", "Go-to-market strategy", "MVP development"),
    trigger_keywords=(
        "business plan", "startup", "venture", "launch", "mvp",
        "product-market fit", "go-to-market", "idea",
    ),
    tools=("funding-calculator", "market-analysis"),
    priority=85,
    fallback_rules=(
        FallbackRule(
            ("business plan",),
            "A strong business plan covers problem, solution, market, business "
            "model, go-to-market, team and financials. Which section should we "
            "start with?",
        ),
        FallbackRule(
            ("mvp",),
            "Scope your MVP around the single job your first customers need done. "
            "What's the core problem you're solving?",
        ),
    ),
    default_fallback=(
        "Let's get your venture off the ground. Tell me about your idea, your "
        "target customers, and where you are today."
    ),
)

BUILTIN_TEMPLATES: tuple[AgentTemplate, ...] = (
    GENERAL,
    MARKETING,
    INVESTMENT,
    FINANCIAL,
    LEGAL,
    RESEARCH,
    SUPPORT,
    VENTURE_LAUNCH,
)
