import re
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import validates
from sqlalchemy.types import TypeDecorator, CHAR

from ..constants import PROJECT_NAME_LENGTH, PROJECT_STATUSES
from ..database import Base

OBJECT_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


def new_object_id() -> str:
    """Return a fresh 24-character lowercase hex identifier."""
    return uuid.uuid4().hex[:24]


def is_valid_object_id(value: object) -> bool:
    """True when *value* is a 24-character hex string."""
    return isinstance(value, str) and OBJECT_ID_PATTERN.fullmatch(value) is not None


class HexId(TypeDecorator):
    """24-character hex identifier.

    Stored as CHAR(24) and normalised to lowercase on the way in, so
    lookups are case-insensitive on every backend including SQLite.
    """

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(CHAR(24))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value).lower()
        return value

    def process_result_value(self, value, dialect):
        return value


class Project(Base):
    __tablename__ = "projects"

    id = Column(HexId(), primary_key=True, default=new_object_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="planning")  # planning | active | completed | archived

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @validates("name")
    def _validate_name(self, key, value):
        value = (value or "").strip()
        low, high = PROJECT_NAME_LENGTH
        if not low <= len(value) <= high:
            raise ValueError(f"Project name must be between {low} and {high} characters")
        return value

    @validates("status")
    def _validate_status(self, key, value):
        if value not in PROJECT_STATUSES:
            raise ValueError(f"Project status must be one of: {', '.join(PROJECT_STATUSES)}")
        return value
