import json
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from ..constants import TECH_COSTS, TECH_DIFFICULTIES
from ..database import Base
from .project import HexId, new_object_id

# Maximum options stored per component
COMPONENT_LIMITS: dict[str, int] = {
    "frontend": 5,
    "backend": 5,
    "database": 3,
    "infrastructure": 5,
    "third_party_services": 10,
    "alternative_options": 5,
}


def _check_options(component: str, options) -> list[dict]:
    options = list(options or [])
    limit = COMPONENT_LIMITS[component]
    if len(options) > limit:
        raise ValueError(f"Cannot have more than {limit} {component.replace('_', ' ')} options")
    for option in options:
        if option.get("difficulty") not in TECH_DIFFICULTIES:
            raise ValueError(f"Difficulty must be one of: {', '.join(TECH_DIFFICULTIES)}")
        if option.get("cost") not in TECH_COSTS:
            raise ValueError(f"Cost must be one of: {', '.join(TECH_COSTS)}")
        popularity = option.get("popularity")
        if not isinstance(popularity, int) or not 1 <= popularity <= 100:
            raise ValueError("Popularity must be between 1 and 100")
    return options


class TechStackRecommendation(Base):
    """Recommended stack. One per project, upserted by project_id."""

    __tablename__ = "tech_stack_recommendations"

    id = Column(HexId(), primary_key=True, default=new_object_id)
    project_id = Column(HexId(), ForeignKey("projects.id"), nullable=False, unique=True)

    frontend_json = Column(Text, nullable=False, default="[]")
    backend_json = Column(Text, nullable=False, default="[]")
    database_json = Column(Text, nullable=False, default="[]")
    infrastructure_json = Column(Text, nullable=False, default="[]")
    third_party_services_json = Column(Text, nullable=False, default="[]")
    alternative_options_json = Column(Text, nullable=False, default="[]")
    rationale_json = Column(Text, nullable=False, default="{}")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", backref="tech_stack")

    def get_options(self, component: str) -> list[dict]:
        return json.loads(getattr(self, f"{component}_json") or "[]")

    def set_options(self, component: str, options) -> None:
        setattr(self, f"{component}_json", json.dumps(_check_options(component, options)))

    @property
    def rationale(self) -> dict:
        return json.loads(self.rationale_json or "{}")

    @rationale.setter
    def rationale(self, value: dict) -> None:
        if not value.get("reasoning"):
            raise ValueError("Rationale reasoning is required")
        self.rationale_json = json.dumps(value)
