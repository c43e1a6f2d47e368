"""Persistence adapters — parsed stage results → stored records.

Each adapter shapes its input to the record limits (truncating strings,
capping lists) and flushes. Committing is left to the caller so the three
writes of one pipeline run land together.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from ... import constants
from ...models.feature import Feature
from ...models.idea_validation import IdeaValidation
from ...models.saas_idea import SaasIdea
from ...models.tech_stack import TechStackRecommendation
from ...schemas.results_schema import (
    BusinessAnalysisResult,
    FeatureGenerationResult,
    MarketValidationResult,
    TechStackComponent,
    TechStackResult,
)
from .scoring import map_priority_to_enum, priority_to_complexity

logger = logging.getLogger(__name__)

TECH_COMPONENTS = ("frontend", "backend", "database", "infrastructure", "third_party_services")


def _truncate(value: str, limit: int) -> str:
    return (value or "")[:limit]


def _truncate_all(items: Iterable[str], limit: int) -> List[str]:
    return [_truncate(item, limit) for item in items]


# ── Validation ──────────────────────────────────────────────────────────

def build_risks(market: MarketValidationResult) -> List[dict]:
    """Flatten the four risk categories into typed risk records."""
    assessment = market.risk_assessment
    by_type = (
        ("market", assessment.market_risks),
        ("technical", assessment.technical_risks),
        ("financial", assessment.financial_risks),
        ("competitive", assessment.competitive_risks),
    )
    risks = [
        {
            "type": risk_type,
            "description": _truncate(description, constants.MAX_RISK_DESCRIPTION_LENGTH),
            "severity": constants.DEFAULT_RISK_SEVERITY,
        }
        for risk_type, descriptions in by_type
        for description in descriptions
    ]
    return risks[: constants.MAX_RISKS]


def save_validation(
    db: Session,
    idea_id: str,
    business: BusinessAnalysisResult,
    market: MarketValidationResult,
) -> IdeaValidation:
    """Upsert the validation record for *idea_id*."""
    validation = db.query(IdeaValidation).filter(IdeaValidation.idea_id == idea_id).first()
    if validation is None:
        validation = IdeaValidation(idea_id=idea_id)
        db.add(validation)

    differentiation = business.competitive_landscape.differentiation
    validation.market_potential = market.validation_score
    validation.confidence_score = business.confidence_score
    validation.similar_products = []
    validation.differentiation_opportunities = _truncate_all(
        differentiation[: constants.MAX_DIFFERENTIATION_OPPORTUNITIES],
        constants.MAX_DIFFERENTIATION_LENGTH,
    )
    validation.risks = build_risks(market)
    validation.improvement_suggestions = []

    db.flush()
    logger.info("💾 [PERSIST] Validation saved for idea=%s", idea_id)
    return validation


# ── Features ────────────────────────────────────────────────────────────

def save_features(db: Session, idea_id: str, features: FeatureGenerationResult) -> List[Feature]:
    """Replace the project's feature set with the generated one."""
    idea = db.query(SaasIdea).filter(SaasIdea.id == idea_id).first()
    if idea is None:
        raise LookupError(f"Idea {idea_id} not found")
    project_id = idea.project_id

    removed = db.query(Feature).filter(Feature.project_id == project_id).delete(synchronize_session=False)

    records: List[Feature] = []
    for tier, category in constants.FEATURE_TIER_CATEGORIES.items():
        for feature in getattr(features, tier):
            records.append(
                Feature(
                    project_id=project_id,
                    name=_truncate(feature.name, constants.MAX_FEATURE_NAME_LENGTH),
                    description=_truncate(feature.description, constants.MAX_FEATURE_DESCRIPTION_LENGTH),
                    priority=map_priority_to_enum(feature.priority),
                    complexity=priority_to_complexity(feature.priority),
                    category=category,
                    user_persona=_truncate(constants.DEFAULT_USER_PERSONA, constants.MAX_USER_PERSONA_LENGTH),
                )
            )
    db.add_all(records)
    db.flush()

    logger.info(
        "💾 [PERSIST] Features replaced for project=%s (removed=%d, added=%d)",
        project_id,
        removed,
        len(records),
    )
    return records


# ── Tech stack ──────────────────────────────────────────────────────────

def build_tech_option(component: str, result: TechStackComponent) -> dict:
    difficulty, cost, popularity = constants.TECH_OPTION_HEURISTICS[component]
    return {
        "name": _truncate(result.primary, constants.MAX_TECH_NAME_LENGTH),
        "description": _truncate(result.reasoning, constants.MAX_TECH_DESCRIPTION_LENGTH),
        "pros": _truncate_all(result.pros, constants.MAX_TECH_PRO_CON_LENGTH),
        "cons": _truncate_all(result.cons, constants.MAX_TECH_PRO_CON_LENGTH),
        "difficulty": difficulty,
        "cost": cost,
        "popularity": popularity,
    }


def build_rationale(tech: TechStackResult) -> dict:
    costs = tech.estimated_costs
    alternatives = tech.frontend.alternatives + tech.backend.alternatives + tech.database.alternatives
    return {
        "reasoning": _truncate(
            f"Development: {costs.development}, Monthly: {costs.monthly}",
            constants.MAX_RATIONALE_LENGTH,
        ),
        "factors": list(constants.RATIONALE_FACTORS),
        "alternatives": _truncate_all(
            alternatives[: constants.MAX_RATIONALE_ALTERNATIVES],
            constants.MAX_RATIONALE_ITEM_LENGTH,
        ),
    }


def save_tech_stack(db: Session, project_id: str, tech: TechStackResult) -> TechStackRecommendation:
    """Upsert the tech-stack recommendation for *project_id*."""
    recommendation = (
        db.query(TechStackRecommendation)
        .filter(TechStackRecommendation.project_id == project_id)
        .first()
    )
    if recommendation is None:
        recommendation = TechStackRecommendation(project_id=project_id)
        db.add(recommendation)

    for component in TECH_COMPONENTS:
        recommendation.set_options(component, [build_tech_option(component, getattr(tech, component))])
    recommendation.set_options("alternative_options", [])
    recommendation.rationale = build_rationale(tech)

    db.flush()
    logger.info("💾 [PERSIST] Tech stack saved for project=%s", project_id)
    return recommendation
