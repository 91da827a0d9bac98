"""Step view models: the contract between the flow controller and API callers.

These models describe what the UI needs to render the current page of a
screening flow.  They are built from a ``FlowState`` plus the catalog and
are never persisted.
"""

from typing import Optional

from pydantic import BaseModel

from screening_core.models.draft import (
    ImageAttachment,
    PatientIdentity,
    SubmissionResult,
)


class QuestionView(BaseModel):
    """Flattened question with the draft's current answer filled in."""

    qid: str
    category: str
    question: str
    question_type: str
    optional: bool
    # [{id, label}]; empty for number questions
    options: list[dict]
    accepts_duration: bool = False
    duration_options: list[dict] | None = None
    # Picture path or prefix for image_select questions
    image: str | None = None
    answer: str | None = None
    duration: str | None = None


class FlowStepView(BaseModel):
    """Render model for the current step.

    ``missing`` lists identity fields or qids that block ``next``.
    ``step_index`` is 1-based within ``total_steps`` (success excluded).
    """

    draft_id: str
    step: str
    title: str
    step_index: int
    total_steps: int
    screening_type: Optional[str] = None
    identity: PatientIdentity
    questions: list[QuestionView] = []
    images: list[ImageAttachment] = []
    image_category: str | None = None
    missing: list[str] = []
    can_go_back: bool
    can_submit: bool
    error: str | None = None
    result: SubmissionResult | None = None
