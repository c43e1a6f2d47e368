from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship, validates

from ..constants import FEATURE_CATEGORIES, FEATURE_PRIORITIES
from ..database import Base
from .project import HexId, new_object_id


class Feature(Base):
    """Single roadmap feature. The pipeline replaces a project's whole set per run."""

    __tablename__ = "features"

    id = Column(HexId(), primary_key=True, default=new_object_id)
    project_id = Column(HexId(), ForeignKey("projects.id"), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(String(16), nullable=False)  # low | medium | high | critical
    complexity = Column(Integer, nullable=False)  # 1-10
    category = Column(String(16), nullable=False)  # mvp | growth | future | nice-to-have
    user_persona = Column(String(100), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", backref="features")

    @validates("priority")
    def _validate_priority(self, key, value):
        if value not in FEATURE_PRIORITIES:
            raise ValueError(f"Priority must be one of: {', '.join(FEATURE_PRIORITIES)}")
        return value

    @validates("category")
    def _validate_category(self, key, value):
        if value not in FEATURE_CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(FEATURE_CATEGORIES)}")
        return value

    @validates("complexity")
    def _validate_complexity(self, key, value):
        if not isinstance(value, int) or not 1 <= value <= 10:
            raise ValueError("Complexity must be an integer between 1 and 10")
        return value
