"""Stage parsers — raw completion text → typed stage result.

Contract shared by all four parsers:
  parse_x(raw_text) -> (result, used_fallback)

  - Text that holds no JSON object, or an object with none of the stage's
    top-level keys, yields the stage's fixed fallback (used_fallback=True).
  - A JSON-shaped response degrades field by field: every missing, falsy
    or mistyped field takes its default; enum fields outside the allowed
    set take the named default member.
  - 0–100 scores are clamped and rounded; feature priority is clamped to 1–10.

Parsers never raise.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Optional

from ...constants import (
    BUSINESS_MODEL_TYPES,
    COMPETITION_LEVELS,
    DEFAULT_BUSINESS_MODEL_TYPE,
    DEFAULT_COMPETITION_LEVEL,
    DEFAULT_EFFORT,
    DEFAULT_FEATURE_PRIORITY,
    DEFAULT_MARKET_SATURATION,
    DEFAULT_REVENUE_MODEL,
    EFFORT_SIZES,
    NOT_DETERMINED,
    NOT_ESTIMATED,
    NOT_SPECIFIED,
    REVENUE_MODELS,
)
from ...schemas.results_schema import (
    BusinessAnalysisResult,
    CompetitiveLandscape,
    EstimatedCosts,
    FeatureGenerationResult,
    FeatureRoadmap,
    MarketSize,
    MarketValidationResult,
    ProcessedFeature,
    RiskAssessment,
    TargetAudienceAnalysis,
    TechStackComponent,
    TechStackResult,
)
from ...services.openai_client import parse_json_object
from .scoring import clamp, clamp_score, round_half_up

logger = logging.getLogger(__name__)

BUSINESS_ANALYSIS_KEYS = (
    "businessModelType",
    "revenueModel",
    "viabilityScore",
    "scalabilityScore",
    "competitiveLandscape",
    "confidenceScore",
)
MARKET_VALIDATION_KEYS = ("marketSize", "targetAudienceAnalysis", "riskAssessment", "validationScore")
FEATURE_GENERATION_KEYS = ("mvpFeatures", "growthFeatures", "advancedFeatures", "featureRoadmap")
TECH_STACK_KEYS = (
    "frontend",
    "backend",
    "database",
    "infrastructure",
    "thirdPartyServices",
    "estimatedCosts",
)


# ── Field coercion ───────────────────────────────────────────────────────

def _obj(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _text(value: Any, default: str = "") -> str:
    if isinstance(value, bool) or not value:
        return default
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or default
    return default


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not value:
        return default
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            return default
    else:
        return default
    # NaN, Infinity and overflowing literals (1e999) carry no usable value
    return number if math.isfinite(number) else default


def _score(value: Any, default: float = 0) -> int:
    return clamp_score(_number(value, default))


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        text = _text(item)
        if text:
            items.append(text)
    return items


def _choice(value: Any, allowed: Iterable[str], default: str) -> str:
    text = _text(value)
    for option in allowed:
        if text.lower() == option.lower():
            return option
    return default


def _load(raw_text: str, keys: tuple[str, ...], stage: str) -> Optional[dict]:
    parsed = parse_json_object(raw_text)
    if parsed is None or not any(key in parsed for key in keys):
        logger.warning("⚠️  [PARSER] Failed to parse %s JSON, using fallback", stage)
        return None
    return parsed


# ── Fallbacks ────────────────────────────────────────────────────────────

def fallback_business_analysis() -> BusinessAnalysisResult:
    return BusinessAnalysisResult(
        business_model_type="B2B",
        revenue_model="Subscription",
        viability_score=50,
        scalability_score=50,
        competitive_landscape=CompetitiveLandscape(
            competition_level="Medium",
            market_saturation=50,
            differentiation=["AI-powered features", "User-friendly interface"],
        ),
        confidence_score=50,
    )


def fallback_market_validation() -> MarketValidationResult:
    unavailable = "Market size analysis unavailable"
    return MarketValidationResult(
        market_size=MarketSize(tam=unavailable, sam=unavailable, som=unavailable),
        target_audience_analysis=TargetAudienceAnalysis(
            primary_segment="Business professionals",
            secondary_segments=[],
            pain_points=["Inefficient processes", "Manual work"],
            willingness_to_pay="Price sensitivity analysis needed",
            acquisition_channels=["Digital marketing", "Referrals"],
        ),
        risk_assessment=RiskAssessment(
            market_risks=["Market competition"],
            technical_risks=["Technical complexity"],
            financial_risks=["Funding requirements"],
            competitive_risks=["Established competitors"],
        ),
        validation_score=50,
    )


def fallback_feature_generation() -> FeatureGenerationResult:
    return FeatureGenerationResult(
        mvp_features=[
            ProcessedFeature(
                name="Core Functionality",
                description="Basic platform features",
                user_story="As a user, I want core functionality so that I can solve my problem",
                priority=10,
                effort="L",
                dependencies=[],
                success_metrics=["User adoption", "Feature usage"],
            )
        ],
        growth_features=[],
        advanced_features=[],
        feature_roadmap=FeatureRoadmap(phase1=["Core Functionality"], phase2=[], phase3=[]),
    )


def fallback_tech_stack() -> TechStackResult:
    return TechStackResult(
        frontend=TechStackComponent(
            primary="React",
            alternatives=["Vue.js", "Angular"],
            reasoning="Popular and well-supported framework",
            pros=["Large community", "Extensive ecosystem"],
            cons=["Learning curve", "Complexity"],
        ),
        backend=TechStackComponent(
            primary="Node.js",
            alternatives=["Python", "Java"],
            reasoning="JavaScript consistency",
            pros=["Fast development", "Large ecosystem"],
            cons=["Single-threaded limitations"],
        ),
        database=TechStackComponent(
            primary="PostgreSQL",
            alternatives=["MongoDB", "MySQL"],
            reasoning="Reliable and feature-rich",
            pros=["ACID compliance", "Advanced features"],
            cons=["Complexity", "Resource usage"],
        ),
        infrastructure=TechStackComponent(
            primary="AWS",
            alternatives=["Google Cloud", "Azure"],
            reasoning="Comprehensive service offering",
            pros=["Scalability", "Reliability"],
            cons=["Cost complexity", "Learning curve"],
        ),
        third_party_services=TechStackComponent(
            primary="Auth0",
            alternatives=["Firebase Auth", "AWS Cognito"],
            reasoning="Easy to implement and secure",
            pros=["Security", "Easy integration"],
            cons=["Cost at scale", "Vendor lock-in"],
        ),
        estimated_costs=EstimatedCosts(
            development="$50,000 - $150,000 for MVP",
            monthly="$500 - $2,000 monthly operations",
            scaling="$5,000 - $20,000 at scale",
        ),
    )


# ── Parsers ──────────────────────────────────────────────────────────────

def parse_business_analysis(raw_text: str) -> tuple[BusinessAnalysisResult, bool]:
    parsed = _load(raw_text, BUSINESS_ANALYSIS_KEYS, "business analysis")
    if parsed is None:
        return fallback_business_analysis(), True

    landscape = _obj(parsed.get("competitiveLandscape"))
    return BusinessAnalysisResult(
        business_model_type=_choice(parsed.get("businessModelType"), BUSINESS_MODEL_TYPES, DEFAULT_BUSINESS_MODEL_TYPE),
        revenue_model=_choice(parsed.get("revenueModel"), REVENUE_MODELS, DEFAULT_REVENUE_MODEL),
        viability_score=_score(parsed.get("viabilityScore")),
        scalability_score=_score(parsed.get("scalabilityScore")),
        competitive_landscape=CompetitiveLandscape(
            competition_level=_choice(landscape.get("competitionLevel"), COMPETITION_LEVELS, DEFAULT_COMPETITION_LEVEL),
            market_saturation=_score(landscape.get("marketSaturation"), DEFAULT_MARKET_SATURATION),
            differentiation=_str_list(landscape.get("differentiation")),
        ),
        confidence_score=_score(parsed.get("confidenceScore")),
    ), False


def parse_market_validation(raw_text: str) -> tuple[MarketValidationResult, bool]:
    parsed = _load(raw_text, MARKET_VALIDATION_KEYS, "market validation")
    if parsed is None:
        return fallback_market_validation(), True

    size = _obj(parsed.get("marketSize"))
    audience = _obj(parsed.get("targetAudienceAnalysis"))
    risks = _obj(parsed.get("riskAssessment"))
    return MarketValidationResult(
        market_size=MarketSize(
            tam=_text(size.get("tam"), NOT_DETERMINED),
            sam=_text(size.get("sam"), NOT_DETERMINED),
            som=_text(size.get("som"), NOT_DETERMINED),
        ),
        target_audience_analysis=TargetAudienceAnalysis(
            primary_segment=_text(audience.get("primarySegment"), NOT_SPECIFIED),
            secondary_segments=_str_list(audience.get("secondarySegments")),
            pain_points=_str_list(audience.get("painPoints")),
            willingness_to_pay=_text(audience.get("willingnessToPay"), NOT_DETERMINED),
            acquisition_channels=_str_list(audience.get("acquisitionChannels")),
        ),
        risk_assessment=RiskAssessment(
            market_risks=_str_list(risks.get("marketRisks")),
            technical_risks=_str_list(risks.get("technicalRisks")),
            financial_risks=_str_list(risks.get("financialRisks")),
            competitive_risks=_str_list(risks.get("competitiveRisks")),
        ),
        validation_score=_score(parsed.get("validationScore")),
    ), False


def _parse_feature(item: Any) -> Optional[ProcessedFeature]:
    item = _obj(item)
    name = _text(item.get("name"))
    if not name:
        return None
    priority = round_half_up(clamp(_number(item.get("priority"), DEFAULT_FEATURE_PRIORITY), 1, 10))
    return ProcessedFeature(
        name=name,
        description=_text(item.get("description")),
        user_story=_text(item.get("userStory")),
        priority=priority,
        effort=_choice(item.get("effort"), EFFORT_SIZES, DEFAULT_EFFORT),
        dependencies=_str_list(item.get("dependencies")),
        success_metrics=_str_list(item.get("successMetrics")),
    )


def _parse_features(value: Any) -> list[ProcessedFeature]:
    if not isinstance(value, list):
        return []
    features = (_parse_feature(item) for item in value)
    return [feature for feature in features if feature is not None]


def parse_feature_generation(raw_text: str) -> tuple[FeatureGenerationResult, bool]:
    parsed = _load(raw_text, FEATURE_GENERATION_KEYS, "feature generation")
    if parsed is None:
        return fallback_feature_generation(), True

    roadmap = _obj(parsed.get("featureRoadmap"))
    return FeatureGenerationResult(
        mvp_features=_parse_features(parsed.get("mvpFeatures")),
        growth_features=_parse_features(parsed.get("growthFeatures")),
        advanced_features=_parse_features(parsed.get("advancedFeatures")),
        feature_roadmap=FeatureRoadmap(
            phase1=_str_list(roadmap.get("phase1")),
            phase2=_str_list(roadmap.get("phase2")),
            phase3=_str_list(roadmap.get("phase3")),
        ),
    ), False


def parse_tech_component(component: Any) -> TechStackComponent:
    component = _obj(component)
    return TechStackComponent(
        primary=_text(component.get("primary")),
        alternatives=_str_list(component.get("alternatives")),
        reasoning=_text(component.get("reasoning")),
        pros=_str_list(component.get("pros")),
        cons=_str_list(component.get("cons")),
    )


def parse_tech_stack(raw_text: str) -> tuple[TechStackResult, bool]:
    parsed = _load(raw_text, TECH_STACK_KEYS, "tech stack")
    if parsed is None:
        return fallback_tech_stack(), True

    costs = _obj(parsed.get("estimatedCosts"))
    return TechStackResult(
        frontend=parse_tech_component(parsed.get("frontend")),
        backend=parse_tech_component(parsed.get("backend")),
        database=parse_tech_component(parsed.get("database")),
        infrastructure=parse_tech_component(parsed.get("infrastructure")),
        third_party_services=parse_tech_component(parsed.get("thirdPartyServices")),
        estimated_costs=EstimatedCosts(
            development=_text(costs.get("development"), NOT_ESTIMATED),
            monthly=_text(costs.get("monthly"), NOT_ESTIMATED),
            scaling=_text(costs.get("scaling"), NOT_ESTIMATED),
        ),
    ), False
