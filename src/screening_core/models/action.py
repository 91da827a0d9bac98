"""Flow action models: the inputs to ``ScreeningFlow.reduce``.

The discriminated ``FlowAction`` union uses the ``action`` field as its
discriminator so Pydantic can deserialise request bodies directly into the
correct type.

``ClientAction`` is the subset an API caller may send.  Submission outcomes
and pre-selection are produced by the controller itself.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from screening_db.models.enums import ScreeningType


class UpdateIdentity(BaseModel):
    """Partial identity update; ``None`` leaves a field untouched."""

    action: Literal["update_identity"] = "update_identity"
    name: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    health_assistant: Optional[str] = None
    address: Optional[str] = None


class Next(BaseModel):
    """Advance to the next step if the current one is complete."""

    action: Literal["next"] = "next"


class Back(BaseModel):
    """Return to the previous step of the active sequence."""

    action: Literal["back"] = "back"


class SelectType(BaseModel):
    """Choose the screening program on the type-selection step."""

    action: Literal["select_type"] = "select_type"
    screening_type: ScreeningType


class Preselect(BaseModel):
    """Fix the screening program before the flow starts."""

    action: Literal["preselect"] = "preselect"
    screening_type: ScreeningType


class Answer(BaseModel):
    """Record an answer for one question of the current step."""

    action: Literal["answer"] = "answer"
    question_id: str
    answer: str
    duration: Optional[str] = None


class AttachImage(BaseModel):
    """Attach an image on an image step; category defaults to the step's."""

    action: Literal["attach_image"] = "attach_image"
    data: str
    category: Optional[str] = None


class RemoveImage(BaseModel):
    """Remove the attachment at ``index`` (0-based)."""

    action: Literal["remove_image"] = "remove_image"
    index: int


class SubmissionSucceeded(BaseModel):
    action: Literal["submission_succeeded"] = "submission_succeeded"
    patient_id: str
    screening_number: str


class SubmissionFailed(BaseModel):
    action: Literal["submission_failed"] = "submission_failed"
    error: str


class NewScreening(BaseModel):
    """Start over from the success page with an empty draft."""

    action: Literal["new_screening"] = "new_screening"


FlowAction = Annotated[
    Union[
        UpdateIdentity,
        Next,
        Back,
        SelectType,
        Preselect,
        Answer,
        AttachImage,
        RemoveImage,
        SubmissionSucceeded,
        SubmissionFailed,
        NewScreening,
    ],
    Field(discriminator="action"),
]

# Discriminated on "action" by the API body parameter
ClientAction = Union[UpdateIdentity, Next, SelectType, Answer, AttachImage, RemoveImage]
