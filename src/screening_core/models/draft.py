"""Draft and flow-state models: the immutable state threaded through the reducer.

Every model here is frozen: a transition never mutates a state in place, it
builds a new one with ``model_copy(update=...)``.  This lets the reducer
return the *identical* object when an action is refused, which is what
callers compare against to detect a no-op.

The whole ``FlowState`` is JSON-serialisable so the draft store can persist
it between requests and rebuild it with ``FlowState.model_validate``.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from screening_core.constants import PATIENT_INFO_STEP, REQUIRED_IDENTITY_FIELDS
from screening_db.models.enums import ScreeningType


def _new_token() -> str:
    return uuid.uuid4().hex


class PatientIdentity(BaseModel):
    """Demographic fields collected on the first step.

    Values are kept as the strings the user typed; no numeric or format
    validation is applied to age or phone.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    age: str = ""
    gender: str = ""
    phone: str = ""
    health_assistant: str = ""
    address: str = ""

    def missing_fields(self) -> list[str]:
        """Required fields that are still empty (whitespace counts as empty)."""
        return [
            name for name in REQUIRED_IDENTITY_FIELDS
            if not getattr(self, name).strip()
        ]


class QuestionResponse(BaseModel):
    """One answer, keyed by catalog qid.  ``duration`` is None unless set."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    answer: str
    duration: Optional[str] = None


class ImageAttachment(BaseModel):
    """An image reference (URL or data URI) tagged with its capture category."""

    model_config = ConfigDict(frozen=True)

    category: str
    data: str


class PatientDraft(BaseModel):
    """Everything entered for one screening, not yet submitted.

    ``submission_token`` is generated once per draft and sent with the
    submission so a retried or doubled submit resolves to the same patient.
    """

    model_config = ConfigDict(frozen=True)

    identity: PatientIdentity = Field(default_factory=PatientIdentity)
    screening_type: Optional[ScreeningType] = None
    responses: tuple[QuestionResponse, ...] = ()
    images: tuple[ImageAttachment, ...] = ()
    submission_token: str = Field(default_factory=_new_token)

    def get_response(self, qid: str) -> QuestionResponse | None:
        for response in self.responses:
            if response.question_id == qid:
                return response
        return None

    def answered_qids(self) -> set[str]:
        return {r.question_id for r in self.responses}


class SubmissionResult(BaseModel):
    """What the flow keeps after a successful submission."""

    model_config = ConfigDict(frozen=True)

    patient_id: str
    screening_number: str
    screening_type: ScreeningType


class FlowState(BaseModel):
    """Complete state of one screening flow.

    ``preselected`` records that the caller fixed the screening type up
    front, which removes the type-selection step from the sequence.
    ``error`` holds the last submission failure message, cleared by any
    later successful transition.
    """

    model_config = ConfigDict(frozen=True)

    step: str = PATIENT_INFO_STEP
    draft: PatientDraft = Field(default_factory=PatientDraft)
    preselected: bool = False
    result: Optional[SubmissionResult] = None
    error: Optional[str] = None
