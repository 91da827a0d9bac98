"""FlowController: loads, advances, persists and submits screening drafts.

Stateless controller pattern: each call loads the draft's ``FlowState``
from the draft store, runs it through :class:`ScreeningFlow`, persists the
result and returns a :class:`FlowStepView`.  No in-memory state is kept
between calls.

The controller accepts an ``AsyncSession`` from the caller so that the
caller (typically a FastAPI endpoint) controls transaction boundaries.

Submission:
    1. only from the last step of the chosen program, with nothing missing
    2. a free 5-digit screening number is drawn (bounded retries)
    3. one call to ``PatientRepository.submit_screening`` with the draft's
       submission token, which makes a repeated submit return the same
       patient instead of creating a second one
    4. steps 2 and 3 run inside a savepoint, so a failure rolls back only
       that attempt
    5. success moves the flow to ``success`` and discards the draft;
       failure keeps step and draft and records a user-facing error
"""

from __future__ import annotations

import logging
import random
import uuid

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.catalog import QuestionCatalog
from screening_core.constants import (
    PATIENT_INFO_STEP,
    SCREENING_NUMBER_ATTEMPTS,
    SCREENING_NUMBER_MAX,
    SCREENING_NUMBER_MIN,
    SELECT_TYPE_STEP,
    SUCCESS_STEP,
)
from screening_core.flow import ScreeningFlow
from screening_core.models.action import (
    Back,
    FlowAction,
    NewScreening,
    Preselect,
    SubmissionFailed,
    SubmissionSucceeded,
)
from screening_core.models.draft import FlowState
from screening_core.models.step import FlowStepView, QuestionView
from screening_db.models.enums import ScreeningType
from screening_db.repository import DraftRepository, PatientRepository

logger = logging.getLogger(__name__)

# Shown to the user when the store rejects a submission; details are logged
SUBMISSION_FAILED_MESSAGE = "Failed to save the screening. Please try again."

_SHARED_STEP_TITLES: dict[str, str] = {
    PATIENT_INFO_STEP: "Patient Information",
    SELECT_TYPE_STEP: "Select Screening Type",
    SUCCESS_STEP: "Screening Submitted",
}


def generate_screening_number() -> str:
    """Random 5-digit decimal string."""
    return str(random.randint(SCREENING_NUMBER_MIN, SCREENING_NUMBER_MAX))


class FlowController:
    """Drives screening drafts through the flow and into the patient store.

    Args:
        catalog: a loaded :class:`QuestionCatalog` instance
    """

    def __init__(self, catalog: QuestionCatalog) -> None:
        self._catalog = catalog
        self._flow = ScreeningFlow(catalog)
        self._drafts = DraftRepository()
        self._patients = PatientRepository()

    @property
    def flow(self) -> ScreeningFlow:
        return self._flow

    # ==================================================================
    # Draft lifecycle
    # ==================================================================

    async def start(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        draft_id: str,
        screening_type: ScreeningType | None = None,
    ) -> FlowStepView:
        """Open (or resume) a draft, optionally with a pre-selected program.

        A stored draft of a different program is discarded when a program
        is pre-selected; a stored draft of the same program is resumed.
        A finished flow is replaced by a fresh one when a program is given.
        """
        state = await self._load_state(db, user_id, draft_id)
        if screening_type is not None:
            if state.step == SUCCESS_STEP:
                state = FlowState()
            state = self._flow.reduce(state, Preselect(screening_type=screening_type))
        await self._save_state(db, user_id, draft_id, state)
        logger.info(
            "Draft started: user=%s draft=%s step=%s type=%s",
            user_id, draft_id, state.step,
            screening_type.value if screening_type else None,
        )
        return self._to_step_view(draft_id, state)

    async def get_current_step(
        self, db: AsyncSession, *, user_id: str, draft_id: str
    ) -> FlowStepView:
        """Current step of a draft; a missing draft is a fresh one."""
        state = await self._load_state(db, user_id, draft_id)
        return self._to_step_view(draft_id, state)

    async def dispatch(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        draft_id: str,
        action: FlowAction,
    ) -> FlowStepView:
        """Apply one action.  A refused ``next`` returns the unchanged step.

        Raises:
            ValueError: the action is not valid in the current state
        """
        state = await self._load_state(db, user_id, draft_id)
        new_state = self._flow.reduce(state, action)
        if new_state is state:
            logger.debug(
                "Action %s refused on step %s: missing %s",
                action.action, state.step, self._flow.missing(state),
            )
        else:
            await self._save_state(db, user_id, draft_id, new_state)
        return self._to_step_view(draft_id, new_state)

    async def step_back(
        self, db: AsyncSession, *, user_id: str, draft_id: str
    ) -> FlowStepView:
        """Go to the previous step without discarding any answers.

        Raises:
            ValueError: already at the first step, or already submitted
        """
        return await self.dispatch(db, user_id=user_id, draft_id=draft_id, action=Back())

    async def new_screening(
        self, db: AsyncSession, *, user_id: str, draft_id: str
    ) -> FlowStepView:
        """Reset a submitted flow to an empty draft on ``patient-info``."""
        return await self.dispatch(
            db, user_id=user_id, draft_id=draft_id, action=NewScreening(),
        )

    async def abandon(self, db: AsyncSession, *, user_id: str, draft_id: str) -> None:
        """Drop a stored draft.

        Raises:
            ValueError: no stored draft with this id
        """
        deleted = await self._drafts.delete(db, user_id, draft_id)
        if not deleted:
            raise ValueError(f"Draft not found: user={user_id} draft={draft_id}")
        logger.info("Draft abandoned: user=%s draft=%s", user_id, draft_id)

    # ==================================================================
    # Submission
    # ==================================================================

    async def submit(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        draft_id: str,
        created_by: uuid.UUID | None = None,
    ) -> FlowStepView:
        """Submit the draft to the patient store.

        Submitting an already-submitted flow returns its success view
        again.  An incomplete draft is refused without raising; the view's
        ``missing`` lists what is still needed.

        Raises:
            ValueError: not on the last step of the program
        """
        state = await self._load_state(db, user_id, draft_id)
        if state.step == SUCCESS_STEP:
            return self._to_step_view(draft_id, state)
        if not self._flow.is_final_step(state):
            raise ValueError(
                f"Submission is only valid during the last step, "
                f"current step is {state.step}"
            )
        if self._flow.missing_for_submission(state):
            return self._to_step_view(draft_id, state)

        draft = state.draft
        try:
            # A failed statement must not abort the outer transaction,
            # otherwise the failure state below could not be saved
            async with db.begin_nested():
                number = await self._allocate_screening_number(db)
                patient = await self._patients.submit_screening(
                    db,
                    screening_number=number,
                    submission_token=draft.submission_token,
                    screening_type=draft.screening_type,
                    identity=draft.identity.model_dump(),
                    responses=self._response_payload(state),
                    images=[
                        {"url": image.data, "category": image.category}
                        for image in draft.images
                    ],
                    created_by=created_by,
                )
        except Exception:
            logger.exception(
                "Submission failed: user=%s draft=%s token=%s",
                user_id, draft_id, draft.submission_token,
            )
            new_state = self._flow.reduce(
                state, SubmissionFailed(error=SUBMISSION_FAILED_MESSAGE),
            )
        else:
            logger.info(
                "Screening submitted: user=%s draft=%s patient=%s type=%s",
                user_id, draft_id, patient.id, draft.screening_type.value,
            )
            new_state = self._flow.reduce(
                state,
                SubmissionSucceeded(
                    patient_id=patient.id,
                    screening_number=patient.screening_number,
                ),
            )

        await self._save_state(db, user_id, draft_id, new_state)
        return self._to_step_view(draft_id, new_state)

    async def _allocate_screening_number(self, db: AsyncSession) -> str:
        """Draw random numbers until one is unused.

        Raises:
            RuntimeError: every attempt collided
        """
        for _ in range(SCREENING_NUMBER_ATTEMPTS):
            number = generate_screening_number()
            if not await self._patients.screening_number_exists(db, number):
                return number
            logger.warning("Screening number collision: %s", number)
        raise RuntimeError(
            f"No free screening number after {SCREENING_NUMBER_ATTEMPTS} attempts"
        )

    def _response_payload(self, state: FlowState) -> list[dict]:
        """Responses in answer order, each with its category and question text."""
        payload = []
        for response in state.draft.responses:
            question = self._catalog.get_question(response.question_id)
            payload.append({
                "question_id": response.question_id,
                "category": question.category,
                "question": question.question,
                "answer": response.answer,
                # Never persist an empty-string duration
                "duration": response.duration or None,
            })
        return payload

    # ==================================================================
    # Draft store
    # ==================================================================

    async def _load_state(
        self, db: AsyncSession, user_id: str, draft_id: str
    ) -> FlowState:
        """Stored state, or a fresh one when nothing usable is stored."""
        row = await self._drafts.get(db, user_id, draft_id)
        if row is None or not row.state:
            return FlowState()
        try:
            return FlowState.model_validate(row.state)
        except ValidationError:
            logger.warning(
                "Unreadable draft state, starting over: user=%s draft=%s",
                user_id, draft_id,
            )
            return FlowState()

    async def _save_state(
        self, db: AsyncSession, user_id: str, draft_id: str, state: FlowState
    ) -> None:
        await self._drafts.save(
            db,
            user_id=user_id,
            draft_id=draft_id,
            state=state.model_dump(mode="json"),
        )

    # ==================================================================
    # View building
    # ==================================================================

    def _to_step_view(self, draft_id: str, state: FlowState) -> FlowStepView:
        sequence = self._flow.sequence(state)
        if state.step in sequence:
            step_index = sequence.index(state.step) + 1
        else:
            step_index = len(sequence)

        if state.step in _SHARED_STEP_TITLES:
            title = _SHARED_STEP_TITLES[state.step]
            catalog_step = None
        else:
            catalog_step = self._catalog.get_step(state.step)
            title = catalog_step.title

        if self._flow.is_final_step(state):
            missing = self._flow.missing_for_submission(state)
        else:
            missing = self._flow.missing(state)

        questions: list[QuestionView] = []
        image_category = None
        if catalog_step is not None and catalog_step.kind == "questions":
            questions = [
                self._to_question_view(q, state) for q in catalog_step.questions
            ]
        elif catalog_step is not None:
            image_category = catalog_step.image_category

        screening_type = self._flow.active_type(state)
        return FlowStepView(
            draft_id=draft_id,
            step=state.step,
            title=title,
            step_index=step_index,
            total_steps=len(sequence),
            screening_type=screening_type.value if screening_type else None,
            identity=state.draft.identity,
            questions=questions,
            images=list(state.draft.images),
            image_category=image_category,
            missing=missing,
            can_go_back=state.step not in (PATIENT_INFO_STEP, SUCCESS_STEP),
            can_submit=self._flow.can_submit(state),
            error=state.error,
            result=state.result,
        )

    def _to_question_view(self, question, state: FlowState) -> QuestionView:
        response = state.draft.get_response(question.qid)
        duration_options = None
        if question.accepts_duration:
            program = self._catalog.program(state.draft.screening_type)
            duration_options = [o.model_dump() for o in program.duration_options]
        return QuestionView(
            qid=question.qid,
            category=question.category,
            question=question.question,
            question_type=question.question_type,
            optional=question.optional,
            options=[o.model_dump() for o in getattr(question, "options", [])],
            accepts_duration=question.accepts_duration,
            duration_options=duration_options,
            image=getattr(question, "image", None),
            answer=response.answer if response else None,
            duration=response.duration if response else None,
        )
