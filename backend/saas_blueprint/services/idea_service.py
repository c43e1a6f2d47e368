import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..models.saas_idea import SaasIdea
from ..schemas.idea_processing_schema import IdeaProcessingRequest

logger = logging.getLogger(__name__)


def get_idea_for_project(db: Session, project_id: str):
    return db.query(SaasIdea).filter(SaasIdea.project_id == project_id.lower()).first()


def upsert_idea(db: Session, request: IdeaProcessingRequest) -> SaasIdea:
    """Create or overwrite the single idea record of a project and return it.

    An existing record keeps its id; only the submitted fields change.
    Committed immediately, so the idea outlives a later pipeline failure.
    """
    project_id = request.project_id.lower()
    idea = get_idea_for_project(db, project_id)
    created = idea is None
    if created:
        idea = SaasIdea(project_id=project_id)
        db.add(idea)
    else:
        idea.updated_at = datetime.utcnow()

    idea.description = request.description
    idea.target_audience = request.target_audience
    idea.problem_statement = request.problem_statement
    idea.desired_features = request.desired_features or []
    idea.technical_preferences = request.technical_preferences or []

    db.commit()
    db.refresh(idea)
    logger.info("💡 [IDEAS] Idea %s for project=%s id=%s", "created" if created else "updated", project_id, idea.id)
    return idea
