"""Screening flow endpoints: start, inspect, act on and submit drafts.

Every endpoint needs a registered caller (``X-User-ID``).  A draft is
identified by the (caller, draft_id) pair; the client picks the draft id,
typically one per browser tab.

Validation problems (missing identity fields or answers) are not errors:
the returned step view lists them in ``missing`` and the step does not
change.  Misuse, such as answering a question of another step, is a 400.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.controller import FlowController
from screening_core.models.action import ClientAction
from screening_core.models.record import UserInfo
from screening_core.models.step import FlowStepView
from screening_db.models.enums import ScreeningType

from screening_server.dependencies import get_controller, get_current_user, get_db

router = APIRouter(prefix="/flows", tags=["flows"])

ActionBody = Annotated[ClientAction, Body(discriminator="action")]


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class StartFlowRequest(BaseModel):
    """Body for POST /flows.  ``screening_type`` skips type selection."""
    draft_id: str
    screening_type: ScreeningType | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("")
async def start_flow(
    body: StartFlowRequest,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> FlowStepView:
    """Open a draft, resuming it if it already exists."""
    return await controller.start(
        db,
        user_id=str(user.id),
        draft_id=body.draft_id,
        screening_type=body.screening_type,
    )


@router.get("/{draft_id}")
async def get_flow(
    draft_id: str,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> FlowStepView:
    return await controller.get_current_step(
        db, user_id=str(user.id), draft_id=draft_id,
    )


@router.post("/{draft_id}/actions")
async def apply_action(
    draft_id: str,
    body: ActionBody,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> FlowStepView:
    """Apply one client action (identity, next, select type, answer, images)."""
    return await controller.dispatch(
        db, user_id=str(user.id), draft_id=draft_id, action=body,
    )


@router.post("/{draft_id}/back")
async def step_back(
    draft_id: str,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> FlowStepView:
    return await controller.step_back(
        db, user_id=str(user.id), draft_id=draft_id,
    )


@router.post("/{draft_id}/submit")
async def submit_flow(
    draft_id: str,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> FlowStepView:
    """Submit the draft from the program's last step.

    A failed save is reported in the view's ``error`` with the draft kept,
    so the same request can simply be retried.
    """
    return await controller.submit(
        db, user_id=str(user.id), draft_id=draft_id, created_by=user.id,
    )


@router.post("/{draft_id}/new")
async def new_screening(
    draft_id: str,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> FlowStepView:
    """Start another screening after a successful submission."""
    return await controller.new_screening(
        db, user_id=str(user.id), draft_id=draft_id,
    )


@router.delete("/{draft_id}", status_code=204)
async def abandon_flow(
    draft_id: str,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    controller: FlowController = Depends(get_controller),
) -> None:
    await controller.abandon(db, user_id=str(user.id), draft_id=draft_id)
