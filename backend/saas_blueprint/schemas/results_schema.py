"""Stage result shapes — the structured output of each pipeline stage.

Attributes are snake_case; serialised payloads use the camelCase keys the
completion prompts ask for (``businessModelType``, ``mvpFeatures``...), so a
well-formed model response and our own JSON output share one vocabulary.
"""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Stage 1: business analysis ───────────────────────────────────────────

class CompetitiveLandscape(CamelModel):
    competition_level: Literal["Low", "Medium", "High"]
    market_saturation: int = Field(..., ge=0, le=100)
    differentiation: List[str] = Field(default_factory=list)


class BusinessAnalysisResult(CamelModel):
    business_model_type: Literal["B2B", "B2C", "B2B2C", "Marketplace", "Platform"]
    revenue_model: Literal["Subscription", "Freemium", "Usage-Based", "One-Time", "Hybrid"]
    viability_score: int = Field(..., ge=0, le=100)
    scalability_score: int = Field(..., ge=0, le=100)
    competitive_landscape: CompetitiveLandscape
    confidence_score: int = Field(..., ge=0, le=100)


# ── Stage 2: market validation ───────────────────────────────────────────

class MarketSize(CamelModel):
    tam: str
    sam: str
    som: str


class TargetAudienceAnalysis(CamelModel):
    primary_segment: str
    secondary_segments: List[str] = Field(default_factory=list)
    pain_points: List[str] = Field(default_factory=list)
    willingness_to_pay: str
    acquisition_channels: List[str] = Field(default_factory=list)


class RiskAssessment(CamelModel):
    market_risks: List[str] = Field(default_factory=list)
    technical_risks: List[str] = Field(default_factory=list)
    financial_risks: List[str] = Field(default_factory=list)
    competitive_risks: List[str] = Field(default_factory=list)


class MarketValidationResult(CamelModel):
    market_size: MarketSize
    target_audience_analysis: TargetAudienceAnalysis
    risk_assessment: RiskAssessment
    validation_score: int = Field(..., ge=0, le=100)


# ── Stage 3: feature generation ──────────────────────────────────────────

class ProcessedFeature(CamelModel):
    name: str
    description: str
    user_story: str
    priority: int = Field(..., ge=1, le=10)
    effort: Literal["S", "M", "L", "XL"]
    dependencies: List[str] = Field(default_factory=list)
    success_metrics: List[str] = Field(default_factory=list)


class FeatureRoadmap(CamelModel):
    phase1: List[str] = Field(default_factory=list, description="MVP (0-3 months)")
    phase2: List[str] = Field(default_factory=list, description="Growth (3-12 months)")
    phase3: List[str] = Field(default_factory=list, description="Advanced (12+ months)")


class FeatureGenerationResult(CamelModel):
    mvp_features: List[ProcessedFeature] = Field(default_factory=list)
    growth_features: List[ProcessedFeature] = Field(default_factory=list)
    advanced_features: List[ProcessedFeature] = Field(default_factory=list)
    feature_roadmap: FeatureRoadmap = Field(default_factory=FeatureRoadmap)


# ── Stage 4: tech stack ──────────────────────────────────────────────────

class TechStackComponent(CamelModel):
    primary: str
    alternatives: List[str] = Field(default_factory=list)
    reasoning: str
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class EstimatedCosts(CamelModel):
    development: str
    monthly: str
    scaling: str


class TechStackResult(CamelModel):
    frontend: TechStackComponent
    backend: TechStackComponent
    database: TechStackComponent
    infrastructure: TechStackComponent
    third_party_services: TechStackComponent
    estimated_costs: EstimatedCosts
