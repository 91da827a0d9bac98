"""Read models for persisted patients, users and their derived views.

These are intentionally decoupled from the ORM classes in ``screening_db``
so API consumers never see database internals.  ``from_attributes`` lets
them be built straight from ORM rows (or any object with the same
attributes, such as the in-memory rows used in tests).
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from screening_db.models.enums import ScreeningType, UserRole

RiskLevel = Literal["low", "medium", "high"]
ScreeningStatus = Literal["pending", "completed", "reviewed"]


class ResponseRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_id: str
    category: str
    # Question text as it was displayed at submission time
    question: str
    answer: str
    duration: Optional[str] = None
    position: int = 0


class ImageRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    category: Optional[str] = None
    created_at: Optional[datetime] = None


class DiagnosisRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    result: str
    confidence: Optional[float] = None
    details: Optional[dict] = None
    created_at: datetime


class PatientRecord(BaseModel):
    """A submitted screening with all of its children."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    screening_number: str
    name: str
    age: str
    gender: str
    phone: str
    address: str = ""
    health_assistant: str = ""
    screening_type: ScreeningType
    created_at: datetime
    created_by: Optional[uuid.UUID] = None
    created_by_email: Optional[str] = None
    created_by_name: Optional[str] = None
    responses: list[ResponseRecord] = []
    images: list[ImageRecord] = []
    diagnoses: list[DiagnosisRecord] = []


class RiskAssessment(BaseModel):
    """Derived status and risk label; recomputed on every read."""

    model_config = ConfigDict(frozen=True)

    status: ScreeningStatus
    risk: Optional[RiskLevel] = None
    # Medtech keyword score, when responses exist
    score: Optional[int] = None
    # Oroscan confidence of the latest diagnosis, when one exists
    confidence: Optional[float] = None


class ResponseGroup(BaseModel):
    category: str
    responses: list[ResponseRecord]


class PatientSummary(BaseModel):
    """One row of a patient list."""

    id: str
    screening_number: str
    name: str
    age: str
    gender: str
    phone: str
    health_assistant: str
    screening_type: ScreeningType
    created_at: datetime
    created_by_email: Optional[str] = None
    response_count: int
    image_count: int
    assessment: RiskAssessment


class PatientDetail(BaseModel):
    """Full patient view with grouped responses and the latest diagnosis."""

    patient: PatientRecord
    assessment: RiskAssessment
    response_groups: list[ResponseGroup]
    latest_diagnosis: Optional[DiagnosisRecord] = None


class UserInfo(BaseModel):
    """Public view of a console user."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: UserRole
    created_at: datetime
    patient_count: int = 0

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# --- Admin edit payloads ---

class ResponseEdit(BaseModel):
    """Change one stored response.  An empty duration clears it."""

    response_id: int
    answer: Optional[str] = None
    duration: Optional[str] = None


class PatientUpdate(BaseModel):
    """Partial admin edit of a patient record; ``None`` means unchanged."""

    name: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    health_assistant: Optional[str] = None
    responses: list[ResponseEdit] = []
    delete_image_ids: list[int] = []

    def identity_changes(self) -> dict[str, str]:
        fields = ("name", "age", "gender", "phone", "address", "health_assistant")
        return {
            name: getattr(self, name)
            for name in fields
            if getattr(self, name) is not None
        }
