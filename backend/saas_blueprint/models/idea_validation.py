import json
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship, validates

from ..constants import MAX_DIFFERENTIATION_OPPORTUNITIES, MAX_RISKS, RISK_SEVERITIES, RISK_TYPES
from ..database import Base
from .project import HexId, new_object_id


def _check_score(label: str, value) -> int:
    if value is None or not 0 <= value <= 100:
        raise ValueError(f"{label} must be between 0 and 100")
    return value


class IdeaValidation(Base):
    """Market validation record. One per idea, upserted by idea_id."""

    __tablename__ = "idea_validations"

    id = Column(HexId(), primary_key=True, default=new_object_id)
    idea_id = Column(HexId(), ForeignKey("saas_ideas.id"), nullable=False, unique=True)

    market_potential = Column(Integer, nullable=False)
    confidence_score = Column(Integer, nullable=False)

    similar_products_json = Column(Text, nullable=False, default="[]")
    differentiation_json = Column(Text, nullable=False, default="[]")
    risks_json = Column(Text, nullable=False, default="[]")
    improvement_suggestions_json = Column(Text, nullable=False, default="[]")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    idea = relationship("SaasIdea", backref="validation")

    @validates("market_potential")
    def _validate_market_potential(self, key, value):
        return _check_score("Market potential", value)

    @validates("confidence_score")
    def _validate_confidence_score(self, key, value):
        return _check_score("Confidence score", value)

    @property
    def similar_products(self) -> list[dict]:
        return json.loads(self.similar_products_json or "[]")

    @similar_products.setter
    def similar_products(self, items) -> None:
        self.similar_products_json = json.dumps(list(items or []))

    @property
    def differentiation_opportunities(self) -> list[str]:
        return json.loads(self.differentiation_json or "[]")

    @differentiation_opportunities.setter
    def differentiation_opportunities(self, items) -> None:
        items = list(items or [])
        if len(items) > MAX_DIFFERENTIATION_OPPORTUNITIES:
            raise ValueError(
                f"Cannot have more than {MAX_DIFFERENTIATION_OPPORTUNITIES} differentiation opportunities"
            )
        self.differentiation_json = json.dumps(items)

    @property
    def risks(self) -> list[dict]:
        return json.loads(self.risks_json or "[]")

    @risks.setter
    def risks(self, items) -> None:
        items = list(items or [])
        if len(items) > MAX_RISKS:
            raise ValueError(f"Cannot have more than {MAX_RISKS} risks")
        for risk in items:
            if risk.get("type") not in RISK_TYPES:
                raise ValueError(f"Risk type must be one of: {', '.join(RISK_TYPES)}")
            if risk.get("severity") not in RISK_SEVERITIES:
                raise ValueError(f"Risk severity must be one of: {', '.join(RISK_SEVERITIES)}")
        self.risks_json = json.dumps(items)

    @property
    def improvement_suggestions(self) -> list[str]:
        return json.loads(self.improvement_suggestions_json or "[]")

    @improvement_suggestions.setter
    def improvement_suggestions(self, items) -> None:
        self.improvement_suggestions_json = json.dumps(list(items or []))
