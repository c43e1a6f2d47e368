import json
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship, validates

from ..constants import (
    IDEA_DESCRIPTION_LENGTH,
    IDEA_DESIRED_FEATURE_LENGTH,
    IDEA_PROBLEM_STATEMENT_LENGTH,
    IDEA_TARGET_AUDIENCE_LENGTH,
    IDEA_TECH_PREFERENCE_LENGTH,
    MAX_DESIRED_FEATURES,
    MAX_TECH_PREFERENCES,
)
from ..database import Base
from .project import HexId, new_object_id


def _check_length(label: str, value: str, bounds: tuple[int, int]) -> str:
    value = (value or "").strip()
    low, high = bounds
    if len(value) < low:
        raise ValueError(f"{label} must be at least {low} characters long")
    if len(value) > high:
        raise ValueError(f"{label} cannot exceed {high} characters")
    return value


def _check_items(label: str, items, max_items: int, max_length: int) -> list[str]:
    # Short tags ("AI", "Go") are accepted; only the upper bounds are enforced.
    items = [str(item).strip() for item in (items or []) if str(item).strip()]
    if len(items) > max_items:
        raise ValueError(f"Cannot have more than {max_items} {label}")
    for item in items:
        if len(item) > max_length:
            raise ValueError(f"Each of the {label} cannot exceed {max_length} characters")
    return items


class SaasIdea(Base):
    """Raw idea submission. Exactly one per project (see idea_service.upsert_idea)."""

    __tablename__ = "saas_ideas"

    id = Column(HexId(), primary_key=True, default=new_object_id)
    project_id = Column(HexId(), ForeignKey("projects.id"), nullable=False, unique=True)

    description = Column(Text, nullable=False)
    target_audience = Column(Text, nullable=False)
    problem_statement = Column(Text, nullable=False)
    desired_features_json = Column(Text, nullable=False, default="[]")
    technical_preferences_json = Column(Text, nullable=False, default="[]")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", backref="idea")

    @validates("description")
    def _validate_description(self, key, value):
        return _check_length("Idea description", value, IDEA_DESCRIPTION_LENGTH)

    @validates("target_audience")
    def _validate_target_audience(self, key, value):
        return _check_length("Target audience", value, IDEA_TARGET_AUDIENCE_LENGTH)

    @validates("problem_statement")
    def _validate_problem_statement(self, key, value):
        return _check_length("Problem statement", value, IDEA_PROBLEM_STATEMENT_LENGTH)

    @property
    def desired_features(self) -> list[str]:
        return json.loads(self.desired_features_json or "[]")

    @desired_features.setter
    def desired_features(self, items) -> None:
        checked = _check_items("desired features", items, MAX_DESIRED_FEATURES, IDEA_DESIRED_FEATURE_LENGTH[1])
        self.desired_features_json = json.dumps(checked)

    @property
    def technical_preferences(self) -> list[str]:
        return json.loads(self.technical_preferences_json or "[]")

    @technical_preferences.setter
    def technical_preferences(self, items) -> None:
        checked = _check_items("technical preferences", items, MAX_TECH_PREFERENCES, IDEA_TECH_PREFERENCE_LENGTH[1])
        self.technical_preferences_json = json.dumps(checked)
