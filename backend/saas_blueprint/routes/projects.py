from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.project import Project, is_valid_object_id
from ..schemas.idea_processing_schema import ProjectCreateInput, ProjectRecord

router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
)


def to_project_record(project: Project) -> ProjectRecord:
    return ProjectRecord(
        id=project.id,
        name=project.name,
        description=project.description,
        status=project.status,
        created_at=project.created_at,
    )


def get_project_or_error(db: Session, project_id: str) -> Project:
    """Resolve a project id from the path; 400 when malformed, 404 when unknown."""
    if not is_valid_object_id(project_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid project ID: {project_id}",
        )
    project = db.get(Project, project_id.lower())
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found",
        )
    return project


@router.post(
    "",
    response_model=ProjectRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create a Project",
)
def create_project(payload: ProjectCreateInput, db: Session = Depends(get_db)) -> ProjectRecord:
    try:
        project = Project(name=payload.name, description=payload.description, status="planning")
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    db.add(project)
    db.commit()
    db.refresh(project)
    return to_project_record(project)


@router.get(
    "/{project_id}",
    response_model=ProjectRecord,
    summary="Get a Project",
)
def read_project(project_id: str, db: Session = Depends(get_db)) -> ProjectRecord:
    return to_project_record(get_project_or_error(db, project_id))
