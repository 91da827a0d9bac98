"""Builders for persisted-patient read models used across tests.

Records are built directly as pydantic models, the same shape the
registry produces from ORM rows, so risk, dashboard and export code can be
exercised without a database.
"""

import itertools
import uuid
from datetime import datetime, timezone

from screening_core.models.record import (
    DiagnosisRecord,
    ImageRecord,
    PatientRecord,
    ResponseRecord,
    UserInfo,
)
from screening_db.models.enums import ScreeningType, UserRole

_ids = itertools.count(1)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def response(question, answer, *, qid=None, category="general", duration=None):
    n = next(_ids)
    return ResponseRecord(
        id=n,
        question_id=qid or f"q{n}",
        category=category,
        question=question,
        answer=answer,
        duration=duration,
        position=n,
    )


def image(url="https://cdn.example/img.jpg", category="device-upload"):
    return ImageRecord(id=next(_ids), url=url, category=category, created_at=NOW)


def diagnosis(confidence, *, result="lesion", created_at=NOW):
    return DiagnosisRecord(
        id=next(_ids), result=result, confidence=confidence, created_at=created_at,
    )


def patient(
    screening_type=ScreeningType.MEDTECH,
    *,
    number=None,
    name="Asha",
    responses=(),
    images=(),
    diagnoses=(),
    created_at=NOW,
    created_by=None,
    created_by_email=None,
    created_by_name=None,
    health_assistant="Ravi",
    gender="female",
):
    number = number or str(10000 + next(_ids))
    return PatientRecord(
        id=number,
        screening_number=number,
        name=name,
        age="34",
        gender=gender,
        phone="9990001111",
        address="12 Lake Road",
        health_assistant=health_assistant,
        screening_type=screening_type,
        created_at=created_at,
        created_by=created_by,
        created_by_email=created_by_email,
        created_by_name=created_by_name,
        responses=list(responses),
        images=list(images),
        diagnoses=list(diagnoses),
    )


def user(email="nurse@clinic.example", *, role=UserRole.USER, created_at=NOW):
    return UserInfo(
        id=uuid.uuid4(), email=email, name=None, role=role, created_at=created_at,
    )
