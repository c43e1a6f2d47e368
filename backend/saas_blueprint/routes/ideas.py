"""
Idea Router

Runs the idea-processing pipeline for a project and serves its stored
results (idea, validation, features, tech stack).
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..agents.idea_processing import IdeaProcessingError, IdeaProcessingService, InvalidProjectIdError
from ..constants import FEATURE_CATEGORIES, FEATURE_PRIORITIES
from ..database import get_db
from ..models.feature import Feature
from ..models.idea_validation import IdeaValidation
from ..models.tech_stack import TechStackRecommendation
from ..schemas.idea_processing_schema import (
    FeatureListResponse,
    FeatureRecord,
    IdeaRecord,
    IdeaSubmissionInput,
    ProcessIdeaResponse,
    TechStackRecord,
    ValidationRecord,
)
from ..services.idea_service import get_idea_for_project
from ..services.openai_client import OpenAIClient
from .projects import get_project_or_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["Ideas"],
    responses={
        500: {"description": "Internal server error during idea processing"}
    },
)

_processor: Optional[IdeaProcessingService] = None


def get_idea_processor() -> IdeaProcessingService:
    """Process-wide pipeline service (shares the client's rate and cost guards)."""
    global _processor
    if _processor is None:
        _processor = IdeaProcessingService(OpenAIClient())
    return _processor


@router.post(
    "/{project_id}/ideas/process-sync",
    response_model=ProcessIdeaResponse,
    status_code=status.HTTP_200_OK,
    summary="Process a SaaS Idea",
    response_description="Business analysis, market validation, features, tech stack and metrics",
)
async def process_idea_sync(
    project_id: str,
    payload: IdeaSubmissionInput,
    db: Session = Depends(get_db),
    processor: IdeaProcessingService = Depends(get_idea_processor),
) -> ProcessIdeaResponse:
    """Run the four AI stages for the project's idea and persist the results."""
    project = get_project_or_error(db, project_id)
    start_time = time.perf_counter()
    logger.info("[TIMING] process_sync_endpoint: START project=%s", project.id)

    try:
        result = await processor.process_idea(db, payload.to_request(project.id))
    except InvalidProjectIdError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except IdeaProcessingError as exc:
        duration = (time.perf_counter() - start_time) * 1000
        logger.error("[TIMING] process_sync_endpoint: ERROR after %.0fms: %s", duration, str(exc)[:100])
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    duration = (time.perf_counter() - start_time) * 1000
    logger.info("[TIMING] process_sync_endpoint: END duration=%.0fms", duration)
    return ProcessIdeaResponse(success=True, message="Idea processed successfully", data=result)


@router.get(
    "/{project_id}/idea",
    response_model=IdeaRecord,
    summary="Get the Project's Idea",
)
def read_idea(project_id: str, db: Session = Depends(get_db)) -> IdeaRecord:
    project = get_project_or_error(db, project_id)
    idea = get_idea_for_project(db, project.id)
    if idea is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No idea submitted for this project")
    return IdeaRecord(
        idea_id=idea.id,
        project_id=idea.project_id,
        description=idea.description,
        target_audience=idea.target_audience,
        problem_statement=idea.problem_statement,
        desired_features=idea.desired_features,
        technical_preferences=idea.technical_preferences,
        created_at=idea.created_at,
        updated_at=idea.updated_at,
    )


@router.get(
    "/{project_id}/idea/validation",
    response_model=ValidationRecord,
    summary="Get the Idea's Market Validation",
)
def read_validation(project_id: str, db: Session = Depends(get_db)) -> ValidationRecord:
    project = get_project_or_error(db, project_id)
    idea = get_idea_for_project(db, project.id)
    validation = None
    if idea is not None:
        validation = db.query(IdeaValidation).filter(IdeaValidation.idea_id == idea.id).first()
    if validation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Idea has not been validated yet")
    return ValidationRecord(
        validation_id=validation.id,
        idea_id=validation.idea_id,
        market_potential=validation.market_potential,
        similar_products=validation.similar_products,
        differentiation_opportunities=validation.differentiation_opportunities,
        risks=validation.risks,
        confidence_score=validation.confidence_score,
        improvement_suggestions=validation.improvement_suggestions,
        updated_at=validation.updated_at,
    )


def _feature_sort_key(feature: Feature):
    # mvp first, then most urgent priority first
    return (
        FEATURE_CATEGORIES.index(feature.category),
        -FEATURE_PRIORITIES.index(feature.priority),
    )


@router.get(
    "/{project_id}/features",
    response_model=FeatureListResponse,
    summary="List the Project's Features",
)
def list_features(
    project_id: str,
    category: Optional[str] = Query(default=None, description="mvp | growth | future | nice-to-have"),
    db: Session = Depends(get_db),
) -> FeatureListResponse:
    project = get_project_or_error(db, project_id)
    if category is not None and category not in FEATURE_CATEGORIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category must be one of: {', '.join(FEATURE_CATEGORIES)}",
        )

    query = db.query(Feature).filter(Feature.project_id == project.id)
    if category is not None:
        query = query.filter(Feature.category == category)
    features = sorted(query.all(), key=_feature_sort_key)

    return FeatureListResponse(
        features=[
            FeatureRecord(
                feature_id=feature.id,
                project_id=feature.project_id,
                name=feature.name,
                description=feature.description,
                priority=feature.priority,
                complexity=feature.complexity,
                category=feature.category,
                user_persona=feature.user_persona,
            )
            for feature in features
        ],
        count=len(features),
    )


@router.get(
    "/{project_id}/tech-stack",
    response_model=TechStackRecord,
    summary="Get the Recommended Tech Stack",
)
def read_tech_stack(project_id: str, db: Session = Depends(get_db)) -> TechStackRecord:
    project = get_project_or_error(db, project_id)
    recommendation = (
        db.query(TechStackRecommendation)
        .filter(TechStackRecommendation.project_id == project.id)
        .first()
    )
    if recommendation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No tech stack recommendation yet")
    return TechStackRecord(
        recommendation_id=recommendation.id,
        project_id=recommendation.project_id,
        frontend=recommendation.get_options("frontend"),
        backend=recommendation.get_options("backend"),
        database=recommendation.get_options("database"),
        infrastructure=recommendation.get_options("infrastructure"),
        third_party_services=recommendation.get_options("third_party_services"),
        rationale=recommendation.rationale,
        alternative_options=recommendation.get_options("alternative_options"),
        updated_at=recommendation.updated_at,
    )
