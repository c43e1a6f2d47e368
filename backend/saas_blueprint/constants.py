"""Centralized constants shared by the idea-processing pipeline, models and routes.

This module is the SINGLE SOURCE OF TRUTH for enum vocabularies, record
field limits and the fixed persistence heuristics. Reused by:
  - Stage parsers (enum defaults)
  - SQLAlchemy models (@validates limits)
  - Persistence adapters (truncation, heuristics)
  - Request schemas (length limits)
"""

from __future__ import annotations

# ── Stage result vocabularies ───────────────────────────────────────────

BUSINESS_MODEL_TYPES: tuple[str, ...] = ("B2B", "B2C", "B2B2C", "Marketplace", "Platform")
REVENUE_MODELS: tuple[str, ...] = ("Subscription", "Freemium", "Usage-Based", "One-Time", "Hybrid")
COMPETITION_LEVELS: tuple[str, ...] = ("Low", "Medium", "High")
EFFORT_SIZES: tuple[str, ...] = ("S", "M", "L", "XL")

DEFAULT_BUSINESS_MODEL_TYPE = "B2B"
DEFAULT_REVENUE_MODEL = "Subscription"
DEFAULT_COMPETITION_LEVEL = "Medium"
DEFAULT_EFFORT = "M"
DEFAULT_FEATURE_PRIORITY = 5
DEFAULT_MARKET_SATURATION = 50

NOT_DETERMINED = "Not determined"
NOT_SPECIFIED = "Not specified"
NOT_ESTIMATED = "Not estimated"

# ── Record vocabularies ─────────────────────────────────────────────────

PROJECT_STATUSES: tuple[str, ...] = ("planning", "active", "completed", "archived")
FEATURE_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "critical")
FEATURE_CATEGORIES: tuple[str, ...] = ("mvp", "growth", "future", "nice-to-have")
RISK_TYPES: tuple[str, ...] = ("market", "technical", "financial", "competitive")
RISK_SEVERITIES: tuple[str, ...] = ("low", "medium", "high")
TECH_DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
TECH_COSTS: tuple[str, ...] = ("free", "low", "medium", "high")

# ── Idea submission limits (min, max) ───────────────────────────────────

IDEA_DESCRIPTION_LENGTH = (50, 2000)
IDEA_TARGET_AUDIENCE_LENGTH = (10, 500)
IDEA_PROBLEM_STATEMENT_LENGTH = (20, 1000)
IDEA_DESIRED_FEATURE_LENGTH = (5, 200)
IDEA_TECH_PREFERENCE_LENGTH = (2, 50)
MAX_DESIRED_FEATURES = 20
MAX_TECH_PREFERENCES = 15

PROJECT_NAME_LENGTH = (1, 100)

# ── Persisted record limits ─────────────────────────────────────────────

MAX_DIFFERENTIATION_OPPORTUNITIES = 10
MAX_DIFFERENTIATION_LENGTH = 300
MAX_RISKS = 15
MAX_RISK_DESCRIPTION_LENGTH = 500

MAX_FEATURE_NAME_LENGTH = 100
MAX_FEATURE_DESCRIPTION_LENGTH = 1000
MAX_USER_PERSONA_LENGTH = 100

MAX_TECH_NAME_LENGTH = 50
MAX_TECH_DESCRIPTION_LENGTH = 300
MAX_TECH_PRO_CON_LENGTH = 100
MAX_RATIONALE_LENGTH = 1000
MAX_RATIONALE_ALTERNATIVES = 5
MAX_RATIONALE_ITEM_LENGTH = 100

# ── Fixed persistence heuristics ────────────────────────────────────────
# Not derived from the AI response. Override by patching these names.

DEFAULT_RISK_SEVERITY = "medium"
DEFAULT_USER_PERSONA = "Primary User"

# component -> (difficulty, cost, popularity)
TECH_OPTION_HEURISTICS: dict[str, tuple[str, str, int]] = {
    "frontend": ("intermediate", "free", 85),
    "backend": ("intermediate", "free", 80),
    "database": ("intermediate", "free", 75),
    "infrastructure": ("advanced", "medium", 90),
    "third_party_services": ("beginner", "medium", 70),
}

RATIONALE_FACTORS: list[str] = [
    "Cost effectiveness",
    "Development speed",
    "Scalability",
    "Team expertise",
]

# Feature tier -> persisted category
FEATURE_TIER_CATEGORIES: dict[str, str] = {
    "mvp_features": "mvp",
    "growth_features": "growth",
    "advanced_features": "future",
}

# ── Pipeline step labels (ordered) ──────────────────────────────────────

STEP_IDEA_SAVED = "idea_saved"
STEP_BUSINESS_ANALYSIS = "business_analysis"
STEP_MARKET_VALIDATION = "market_validation"
STEP_FEATURE_GENERATION = "feature_generation"
STEP_TECH_STACK = "tech_stack_recommendation"
STEP_RESULTS_PARSED = "results_parsed"
STEP_RESULTS_SAVED = "results_saved"
