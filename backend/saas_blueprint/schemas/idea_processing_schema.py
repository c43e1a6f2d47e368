"""Pydantic schemas for the idea-processing pipeline and its API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator

from ..constants import (
    IDEA_DESCRIPTION_LENGTH,
    IDEA_DESIRED_FEATURE_LENGTH,
    IDEA_PROBLEM_STATEMENT_LENGTH,
    IDEA_TARGET_AUDIENCE_LENGTH,
    IDEA_TECH_PREFERENCE_LENGTH,
    MAX_DESIRED_FEATURES,
    MAX_TECH_PREFERENCES,
    PROJECT_NAME_LENGTH,
)
from .results_schema import (
    BusinessAnalysisResult,
    CamelModel,
    FeatureGenerationResult,
    MarketValidationResult,
    TechStackResult,
)


# ── Pipeline input ───────────────────────────────────────────────────────

class IdeaProcessingRequest(CamelModel):
    """Plain pipeline input. Record-level limits are enforced on persist."""

    project_id: str
    description: str
    target_audience: str
    problem_statement: str
    desired_features: Optional[List[str]] = None
    technical_preferences: Optional[List[str]] = None


def _check_item_lengths(items: List[str], max_length: int, label: str) -> List[str]:
    items = [item.strip() for item in items if item.strip()]
    for item in items:
        if len(item) > max_length:
            raise ValueError(f"Each {label} cannot exceed {max_length} characters")
    return items


class IdeaSubmissionInput(CamelModel):
    """Request body for POST /projects/{project_id}/ideas/process-sync."""

    description: str = Field(
        ...,
        min_length=IDEA_DESCRIPTION_LENGTH[0],
        max_length=IDEA_DESCRIPTION_LENGTH[1],
        description="What the product does and how it works.",
    )
    target_audience: str = Field(
        ...,
        min_length=IDEA_TARGET_AUDIENCE_LENGTH[0],
        max_length=IDEA_TARGET_AUDIENCE_LENGTH[1],
    )
    problem_statement: str = Field(
        ...,
        min_length=IDEA_PROBLEM_STATEMENT_LENGTH[0],
        max_length=IDEA_PROBLEM_STATEMENT_LENGTH[1],
    )
    desired_features: List[str] = Field(default_factory=list, max_length=MAX_DESIRED_FEATURES)
    technical_preferences: List[str] = Field(default_factory=list, max_length=MAX_TECH_PREFERENCES)

    @field_validator("description", "target_audience", "problem_statement", mode="before")
    @classmethod
    def strip_text(cls, v):
        # strip before the length limits apply
        return v.strip() if isinstance(v, str) else v

    @field_validator("desired_features")
    @classmethod
    def check_desired_features(cls, v: List[str]) -> List[str]:
        return _check_item_lengths(v, IDEA_DESIRED_FEATURE_LENGTH[1], "desired feature")

    @field_validator("technical_preferences")
    @classmethod
    def check_technical_preferences(cls, v: List[str]) -> List[str]:
        return _check_item_lengths(v, IDEA_TECH_PREFERENCE_LENGTH[1], "technical preference")

    def to_request(self, project_id: str) -> IdeaProcessingRequest:
        return IdeaProcessingRequest(
            project_id=project_id,
            description=self.description,
            target_audience=self.target_audience,
            problem_statement=self.problem_statement,
            desired_features=self.desired_features,
            technical_preferences=self.technical_preferences,
        )


# ── Pipeline output ──────────────────────────────────────────────────────

class ProcessingMetrics(CamelModel):
    total_processing_time: int = Field(..., description="Wall-clock milliseconds")
    ai_cost: float = Field(..., description="Summed completion cost (USD)")
    tokens_used: int
    steps_completed: List[str]
    confidence_score: int = Field(..., description="Overall 0-100")
    fallback_stages: List[str] = Field(
        default_factory=list, description="Stages whose output was replaced by the fallback"
    )
    stage_timings: Dict[str, int] = Field(
        default_factory=dict, description="Completion latency per stage (ms)"
    )


class ProcessedIdeaResult(CamelModel):
    idea_id: str
    business_analysis: BusinessAnalysisResult
    market_validation: MarketValidationResult
    features: FeatureGenerationResult
    tech_stack: TechStackResult
    processing_metrics: ProcessingMetrics


class ProcessIdeaResponse(CamelModel):
    success: bool = True
    message: str
    data: ProcessedIdeaResult


# ── Stored records ───────────────────────────────────────────────────────

class ProjectCreateInput(CamelModel):
    name: str = Field(..., min_length=PROJECT_NAME_LENGTH[0], max_length=PROJECT_NAME_LENGTH[1])
    description: Optional[str] = Field(default=None, max_length=2000)


class ProjectRecord(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    status: Literal["planning", "active", "completed", "archived"]
    created_at: datetime


class IdeaRecord(CamelModel):
    idea_id: str
    project_id: str
    description: str
    target_audience: str
    problem_statement: str
    desired_features: List[str]
    technical_preferences: List[str]
    created_at: datetime
    updated_at: datetime


class RiskRecord(CamelModel):
    type: Literal["market", "technical", "financial", "competitive"]
    description: str
    severity: Literal["low", "medium", "high"]
    mitigation: Optional[str] = None


class ValidationRecord(CamelModel):
    validation_id: str
    idea_id: str
    market_potential: int
    similar_products: List[dict]
    differentiation_opportunities: List[str]
    risks: List[RiskRecord]
    confidence_score: int
    improvement_suggestions: List[str]
    updated_at: datetime


class FeatureRecord(CamelModel):
    feature_id: str
    project_id: str
    name: str
    description: str
    priority: Literal["low", "medium", "high", "critical"]
    complexity: int
    category: Literal["mvp", "growth", "future", "nice-to-have"]
    user_persona: str


class FeatureListResponse(CamelModel):
    features: List[FeatureRecord] = Field(default_factory=list)
    count: int = 0


class TechOption(CamelModel):
    name: str
    description: str
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    difficulty: Literal["beginner", "intermediate", "advanced"]
    cost: Literal["free", "low", "medium", "high"]
    popularity: int


class Rationale(CamelModel):
    reasoning: str
    factors: List[str] = Field(default_factory=list)
    alternatives: List[str] = Field(default_factory=list)


class TechStackRecord(CamelModel):
    recommendation_id: str
    project_id: str
    frontend: List[TechOption]
    backend: List[TechOption]
    database: List[TechOption]
    infrastructure: List[TechOption]
    third_party_services: List[TechOption]
    rationale: Rationale
    alternative_options: List[TechOption]
    updated_at: datetime
