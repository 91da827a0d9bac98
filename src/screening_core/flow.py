"""ScreeningFlow: the pure state machine behind a screening intake.

``reduce(state, action) -> state`` is the whole flow: it never touches the
database or the clock, so it can be driven and tested without any I/O.  The
``FlowController`` wraps it with loading, persistence and submission.

Step sequence::

    patient-info -> select-type -> <program steps from the catalog> -> success

``select-type`` is dropped when the caller pre-selected the program.

Two kinds of refusal:

  - An incomplete step (missing identity field, unanswered required
    question, too few images) makes ``next`` return the *same* state
    object.  The missing items are exposed through :meth:`missing`.
  - Misuse (unknown qid, invalid option, back on the first step, acting on
    a submitted flow) raises ``ValueError`` with a descriptive message.
"""

from __future__ import annotations

import logging

from screening_core.catalog import QuestionCatalog
from screening_core.constants import (
    AFFIRMATIVE_ANSWER,
    PATIENT_INFO_STEP,
    SELECT_TYPE_STEP,
    SUCCESS_STEP,
)
from screening_core.models.action import (
    Answer,
    AttachImage,
    Back,
    FlowAction,
    NewScreening,
    Next,
    Preselect,
    RemoveImage,
    SelectType,
    SubmissionFailed,
    SubmissionSucceeded,
    UpdateIdentity,
)
from screening_core.models.draft import (
    FlowState,
    ImageAttachment,
    PatientDraft,
    QuestionResponse,
    SubmissionResult,
)
from screening_core.models.question import CatalogStep, Question
from screening_db.models.enums import ScreeningType

logger = logging.getLogger(__name__)


def resolve_duration(
    catalog: QuestionCatalog,
    question: Question,
    *,
    answer: str,
    duration: str | None,
    duration_given: bool,
    previous: str | None = None,
) -> str | None:
    """Duration to store with *answer*; never an empty string.

    A negative answer always clears it.  An affirmative answer without
    a duration field (``duration_given`` false) keeps *previous*.  Shared
    by the intake flow and admin edits of stored responses.

    Raises:
        ValueError: a duration on a question that takes none, or a
            duration that is not one of the program's options
    """
    given = duration.strip() if duration else None
    if not question.accepts_duration:
        if given:
            raise ValueError(f"Question {question.qid} does not accept a duration")
        return None
    if answer != AFFIRMATIVE_ANSWER:
        return None
    if not duration_given:
        return previous
    if not given:
        return None

    allowed = catalog.duration_options_for(question.qid)
    if allowed and given not in allowed:
        raise ValueError(f"Invalid duration {given!r} for question {question.qid}")
    return given


class ScreeningFlow:
    """Reducer over :class:`FlowState` driven by the question catalog.

    Args:
        catalog: a loaded :class:`QuestionCatalog` instance
    """

    def __init__(self, catalog: QuestionCatalog) -> None:
        self._catalog = catalog

    # ==================================================================
    # Sequence helpers
    # ==================================================================

    def active_type(self, state: FlowState) -> ScreeningType | None:
        """Program of the flow; after success, the program just submitted."""
        if state.draft.screening_type is not None:
            return state.draft.screening_type
        if state.result is not None:
            return state.result.screening_type
        return None

    def sequence(self, state: FlowState) -> list[str]:
        """Ordered step ids of the active flow, ``success`` excluded."""
        steps = [PATIENT_INFO_STEP]
        if not state.preselected:
            steps.append(SELECT_TYPE_STEP)
        screening_type = self.active_type(state)
        if screening_type is not None:
            steps.extend(self._catalog.step_ids(screening_type))
        return steps

    def program_steps(self, state: FlowState) -> list[str]:
        screening_type = state.draft.screening_type
        if screening_type is None:
            return []
        return self._catalog.step_ids(screening_type)

    def is_final_step(self, state: FlowState) -> bool:
        """True on the last step of the chosen program."""
        steps = self.program_steps(state)
        return bool(steps) and state.step == steps[-1]

    def previous_step(self, state: FlowState) -> str | None:
        steps = self.sequence(state)
        if state.step not in steps:
            return None
        idx = steps.index(state.step)
        return steps[idx - 1] if idx > 0 else None

    def next_step(self, state: FlowState) -> str | None:
        steps = self.sequence(state)
        if state.step not in steps:
            return None
        idx = steps.index(state.step)
        return steps[idx + 1] if idx + 1 < len(steps) else None

    # ==================================================================
    # Completeness
    # ==================================================================

    def missing(self, state: FlowState, step: str | None = None) -> list[str]:
        """Items that block leaving *step* (defaults to the current step).

        Identity field names on ``patient-info``, ``screening_type`` on
        ``select-type``, required qids on question steps and ``images`` on
        an image step below its minimum count.
        """
        step = step or state.step
        draft = state.draft

        if step == PATIENT_INFO_STEP:
            return draft.identity.missing_fields()
        if step == SELECT_TYPE_STEP:
            return [] if draft.screening_type is not None else ["screening_type"]
        if step == SUCCESS_STEP:
            return []

        catalog_step = self._catalog.get_step(step)
        if catalog_step.kind == "images":
            return ["images"] if len(draft.images) < catalog_step.min_images else []

        answered = draft.answered_qids()
        return [
            q.qid for q in catalog_step.questions
            if not q.optional and q.qid not in answered
        ]

    def missing_for_submission(self, state: FlowState) -> list[str]:
        """Everything still blocking submission, across all steps."""
        missing = list(state.draft.identity.missing_fields())
        if state.draft.screening_type is None:
            return missing + ["screening_type"]
        for step in self.program_steps(state):
            missing.extend(self.missing(state, step))
        return missing

    def can_submit(self, state: FlowState) -> bool:
        return self.is_final_step(state) and not self.missing_for_submission(state)

    # ==================================================================
    # Reducer
    # ==================================================================

    def reduce(self, state: FlowState, action: FlowAction) -> FlowState:
        """Apply *action* to *state* and return the resulting state.

        Returns *state* itself (same object) when ``next`` is refused
        because the current step is incomplete.

        Raises:
            ValueError: the action is not valid in the current state
        """
        if state.step == SUCCESS_STEP and not isinstance(action, NewScreening):
            if isinstance(action, Back):
                raise ValueError("Cannot step back: screening already submitted")
            raise ValueError(
                f"Action {action.action!r} is only valid during an unsubmitted "
                "screening; start a new screening first"
            )

        handler = getattr(self, f"_on_{action.action}")
        return handler(state, action)

    # --- Identity -----------------------------------------------------

    def _on_update_identity(self, state: FlowState, action: UpdateIdentity) -> FlowState:
        if state.step != PATIENT_INFO_STEP:
            raise ValueError(
                f"Identity updates are only valid during {PATIENT_INFO_STEP}, "
                f"current step is {state.step}"
            )
        changes = action.model_dump(exclude={"action"}, exclude_none=True)
        identity = state.draft.identity.model_copy(update=changes)
        draft = state.draft.model_copy(update={"identity": identity})
        return state.model_copy(update={"draft": draft, "error": None})

    # --- Navigation ---------------------------------------------------

    def _on_next(self, state: FlowState, action: Next) -> FlowState:
        if self.missing(state):
            # Incomplete step: refuse without building a new state
            return state
        target = self.next_step(state)
        if target is None:
            raise ValueError(
                f"Cannot advance past {state.step}: submit the screening instead"
            )
        return state.model_copy(update={"step": target, "error": None})

    def _on_back(self, state: FlowState, action: Back) -> FlowState:
        target = self.previous_step(state)
        if target is None:
            raise ValueError("Cannot step back: already at the first step")
        return state.model_copy(update={"step": target, "error": None})

    # --- Program choice -----------------------------------------------

    def _on_select_type(self, state: FlowState, action: SelectType) -> FlowState:
        if state.step != SELECT_TYPE_STEP:
            raise ValueError(
                f"Screening type selection is only valid during {SELECT_TYPE_STEP}, "
                f"current step is {state.step}"
            )
        draft = self._with_type(state.draft, action.screening_type)
        first = self._catalog.step_ids(action.screening_type)[0]
        return state.model_copy(update={"draft": draft, "step": first, "error": None})

    def _on_preselect(self, state: FlowState, action: Preselect) -> FlowState:
        current = state.draft.screening_type
        if current is not None and current != action.screening_type:
            # Saved draft belongs to the other program: drop it entirely
            logger.info(
                "Discarding %s draft for preselected %s screening",
                current.value, action.screening_type.value,
            )
            return FlowState(
                preselected=True,
                draft=PatientDraft(screening_type=action.screening_type),
            )

        draft = state.draft
        if current is None:
            draft = draft.model_copy(update={"screening_type": action.screening_type})
        step = state.step
        if step == SELECT_TYPE_STEP:
            step = self._catalog.step_ids(action.screening_type)[0]
        return state.model_copy(
            update={"draft": draft, "step": step, "preselected": True}
        )

    @staticmethod
    def _with_type(draft: PatientDraft, screening_type: ScreeningType) -> PatientDraft:
        """Set the program; switching programs drops responses and images."""
        if draft.screening_type == screening_type:
            return draft
        return draft.model_copy(
            update={"screening_type": screening_type, "responses": (), "images": ()}
        )

    # --- Answers ------------------------------------------------------

    def _on_answer(self, state: FlowState, action: Answer) -> FlowState:
        if not self._catalog.has_question(action.question_id):
            raise ValueError(f"Unknown question: {action.question_id}")
        if self._catalog.step_of(action.question_id) != state.step:
            raise ValueError(
                f"Question {action.question_id} is not on step {state.step}"
            )

        question = self._catalog.get_question(action.question_id)
        if not question.is_valid_answer(action.answer):
            raise ValueError(
                f"Invalid answer {action.answer!r} for question {action.question_id}"
            )

        previous = state.draft.get_response(action.question_id)
        duration = self._resolve_duration(question, action, previous)
        response = QuestionResponse(
            question_id=action.question_id,
            answer=action.answer,
            duration=duration,
        )

        # Replace in place so responses keep their first-answered order
        responses = list(state.draft.responses)
        if previous is None:
            responses.append(response)
        else:
            responses[responses.index(previous)] = response

        draft = state.draft.model_copy(update={"responses": tuple(responses)})
        return state.model_copy(update={"draft": draft, "error": None})

    def _resolve_duration(
        self, question: Question, action: Answer, previous: QuestionResponse | None,
    ) -> str | None:
        return resolve_duration(
            self._catalog,
            question,
            answer=action.answer,
            duration=action.duration,
            duration_given="duration" in action.model_fields_set,
            previous=previous.duration if previous is not None else None,
        )

    # --- Images -------------------------------------------------------

    def _image_step(self, state: FlowState) -> CatalogStep:
        if state.step in (PATIENT_INFO_STEP, SELECT_TYPE_STEP):
            step = None
        else:
            step = self._catalog.get_step(state.step)
        if step is None or step.kind != "images":
            raise ValueError(
                f"Images are only valid during an image capture step, "
                f"current step is {state.step}"
            )
        return step

    def _on_attach_image(self, state: FlowState, action: AttachImage) -> FlowState:
        step = self._image_step(state)
        if not action.data.strip():
            raise ValueError("Invalid image: empty data")
        image = ImageAttachment(
            category=action.category or step.image_category,
            data=action.data,
        )
        draft = state.draft.model_copy(update={"images": state.draft.images + (image,)})
        return state.model_copy(update={"draft": draft, "error": None})

    def _on_remove_image(self, state: FlowState, action: RemoveImage) -> FlowState:
        self._image_step(state)
        images = list(state.draft.images)
        if not 0 <= action.index < len(images):
            raise ValueError(f"Image not found: index={action.index}")
        del images[action.index]
        draft = state.draft.model_copy(update={"images": tuple(images)})
        return state.model_copy(update={"draft": draft, "error": None})

    # --- Submission outcome -------------------------------------------

    def _on_submission_succeeded(
        self, state: FlowState, action: SubmissionSucceeded
    ) -> FlowState:
        if not self.is_final_step(state):
            raise ValueError(
                f"Submission is only valid during the last step, "
                f"current step is {state.step}"
            )
        result = SubmissionResult(
            patient_id=action.patient_id,
            screening_number=action.screening_number,
            screening_type=state.draft.screening_type,
        )
        # The submitted draft is discarded; only the result survives
        return FlowState(step=SUCCESS_STEP, result=result)

    def _on_submission_failed(self, state: FlowState, action: SubmissionFailed) -> FlowState:
        return state.model_copy(update={"error": action.error})

    # --- Reset --------------------------------------------------------

    def _on_new_screening(self, state: FlowState, action: NewScreening) -> FlowState:
        if state.step != SUCCESS_STEP:
            raise ValueError(
                f"New screening is only valid during {SUCCESS_STEP}, "
                f"current step is {state.step}"
            )
        return FlowState()
