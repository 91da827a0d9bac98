"""Health-assistant dashboard endpoints.

A caller only sees the patients they registered themselves; admins can
also open any patient's detail.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.dashboard import ProgramDashboard
from screening_core.models.record import PatientDetail, PatientSummary, UserInfo
from screening_core.registry import PatientRegistry
from screening_db.models.enums import ScreeningType

from screening_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from screening_server.dependencies import get_current_user, get_db, get_registry

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/{screening_type}")
async def program_dashboard(
    screening_type: ScreeningType,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> ProgramDashboard:
    """Stats, six-month trend, risk split and recent patients of one program."""
    return await registry.program_dashboard(
        db, user=user, screening_type=screening_type,
    )


@router.get("/dashboard/{screening_type}/patients")
async def list_my_patients(
    screening_type: ScreeningType,
    search: str | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> list[PatientSummary]:
    return await registry.list_patients(
        db,
        screening_type=screening_type,
        created_by=user.id,
        search=search,
        limit=limit,
        offset=offset,
    )


@router.get("/patients/{patient_id}")
async def get_patient(
    patient_id: str,
    user: UserInfo = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> PatientDetail:
    """Patient detail with grouped responses (404 if not the caller's)."""
    return await registry.get_patient_detail(db, patient_id, viewer=user)
