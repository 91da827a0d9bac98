"""Risk classifier: derives a status and risk label from a patient's data.

Pure functions with no side effects: the same inputs always produce the
same :class:`RiskAssessment`.  Assessments are recomputed on every read and
never stored, so they always reflect the current responses after an edit.

Every caller (dashboards, admin lists, patient detail) goes through
:func:`assess` or the per-program functions below; the Medtech keyword
score lives in exactly one place, :func:`medtech_risk_score`.
"""

from typing import Iterable, Protocol, Sequence

from screening_core.constants import (
    MEDTECH_LOW_MAX_SCORE,
    MEDTECH_MEDIUM_MAX_SCORE,
    MEDTECH_RISK_RULES,
    OROSCAN_HIGH_CONFIDENCE,
    OROSCAN_MEDIUM_CONFIDENCE,
)
from screening_core.models.record import (
    DiagnosisRecord,
    PatientRecord,
    RiskAssessment,
    RiskLevel,
)
from screening_db.models.enums import ScreeningType


class ScoredResponse(Protocol):
    """Anything with question text and an answer (records, export rows)."""

    question: str
    answer: str


# ------------------------------------------------------------------
# Medtech
# ------------------------------------------------------------------

def medtech_risk_score(responses: Iterable[ScoredResponse]) -> int:
    """Sum the keyword rule deltas over all responses.

    Matching is case-insensitive on both the question text and the answer;
    a single response can trigger several rules.
    """
    score = 0
    for response in responses:
        text = (response.question or "").lower()
        answer = (response.answer or "").strip().lower()
        for keyword, expected, delta in MEDTECH_RISK_RULES:
            if keyword in text and answer == expected:
                score += delta
    return score


def classify_medtech_score(score: int) -> RiskLevel:
    """Map a keyword score to a risk level (<=2 low, <=5 medium, else high)."""
    if score <= MEDTECH_LOW_MAX_SCORE:
        return "low"
    if score <= MEDTECH_MEDIUM_MAX_SCORE:
        return "medium"
    return "high"


def assess_medtech(responses: Sequence[ScoredResponse]) -> RiskAssessment:
    """Pending with no responses; otherwise completed with a scored risk."""
    if not responses:
        return RiskAssessment(status="pending")
    score = medtech_risk_score(responses)
    return RiskAssessment(
        status="completed",
        risk=classify_medtech_score(score),
        score=score,
    )


# ------------------------------------------------------------------
# Oroscan
# ------------------------------------------------------------------

def classify_confidence(confidence: float) -> RiskLevel:
    """Map a diagnosis confidence to a risk level (>=0.7 high, >=0.4 medium)."""
    if confidence >= OROSCAN_HIGH_CONFIDENCE:
        return "high"
    if confidence >= OROSCAN_MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def latest_diagnosis(diagnoses: Sequence[DiagnosisRecord]) -> DiagnosisRecord | None:
    if not diagnoses:
        return None
    return max(diagnoses, key=lambda d: (d.created_at, d.id))


def assess_oroscan(
    image_count: int, diagnoses: Sequence[DiagnosisRecord]
) -> RiskAssessment:
    """Reviewed once diagnosed, completed once imaged, otherwise pending.

    Risk comes from the most recent diagnosis only; a diagnosis without a
    confidence value leaves the risk unknown.
    """
    latest = latest_diagnosis(diagnoses)
    if latest is None:
        status = "completed" if image_count > 0 else "pending"
        return RiskAssessment(status=status)
    if latest.confidence is None:
        return RiskAssessment(status="reviewed")
    return RiskAssessment(
        status="reviewed",
        risk=classify_confidence(latest.confidence),
        confidence=latest.confidence,
    )


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------

def assess(record: PatientRecord) -> RiskAssessment:
    """Assessment of a stored patient, dispatched on its screening type."""
    if record.screening_type == ScreeningType.OROSCAN:
        return assess_oroscan(len(record.images), record.diagnoses)
    return assess_medtech(record.responses)
