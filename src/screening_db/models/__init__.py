"""ORM models for screening_db."""

from screening_db.models.base import Base
from screening_db.models.draft import ScreeningDraft
from screening_db.models.enums import ScreeningType, UserRole
from screening_db.models.patient import (
    Diagnosis,
    Patient,
    ScreeningImage,
    ScreeningResponse,
)
from screening_db.models.user import User

__all__ = [
    "Base",
    "Diagnosis",
    "Patient",
    "ScreeningDraft",
    "ScreeningImage",
    "ScreeningResponse",
    "ScreeningType",
    "User",
    "UserRole",
]
