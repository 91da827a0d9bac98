"""Admin console endpoints: users, patient records, statistics and exports.

Open to registered users with the admin role, and to service callers that
send ``X-Admin-Key`` matching ``ADMIN_API_KEY``.  See
:func:`screening_server.dependencies.require_admin`.
"""

from datetime import datetime, timezone
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.export import ExportFile, ExportFormat
from screening_core.models.dashboard import AdminStats
from screening_core.models.record import (
    DiagnosisRecord,
    PatientDetail,
    PatientSummary,
    PatientUpdate,
    UserInfo,
)
from screening_core.registry import PatientRegistry
from screening_db.models.enums import ScreeningType, UserRole
from screening_db.repository import DraftRepository

from screening_server.config import (
    DEFAULT_DRAFT_TTL_DAYS,
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
)
from screening_server.dependencies import get_db, get_registry, require_admin

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)],
)

_drafts = DraftRepository()


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class CreateUserRequest(BaseModel):
    email: str = Field(min_length=3)
    name: str | None = None
    role: UserRole = UserRole.USER


class DiagnosisRequest(BaseModel):
    """Body for POST /admin/patients/{id}/diagnoses."""
    result: str
    confidence: float | None = Field(None, ge=0.0, le=1.0)
    details: dict | None = None


class CleanupResult(BaseModel):
    affected_rows: int
    action: str


def _file_response(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": (
                f"attachment; filename*=UTF-8''{quote(export.filename)}"
            ),
        },
    )


# ------------------------------------------------------------------
# Statistics
# ------------------------------------------------------------------

@router.get("/stats")
async def admin_stats(
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> AdminStats:
    return await registry.admin_stats(db)


# ------------------------------------------------------------------
# Users
# ------------------------------------------------------------------

@router.get("/users")
async def list_users(
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> list[UserInfo]:
    """All console users, newest first, with their patient counts."""
    return await registry.list_users(db)


@router.post("/users", status_code=201)
async def create_user(
    body: CreateUserRequest,
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> UserInfo:
    """Register a user.  409 if the e-mail is taken."""
    return await registry.create_user(
        db, email=body.email, name=body.name, role=body.role,
    )


# ------------------------------------------------------------------
# Patients
# ------------------------------------------------------------------

@router.get("/patients")
async def list_patients(
    screening_type: ScreeningType | None = Query(None),
    search: str | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> list[PatientSummary]:
    return await registry.list_patients(
        db,
        screening_type=screening_type,
        search=search,
        limit=limit,
        offset=offset,
    )


@router.get("/patients/{patient_id}")
async def get_patient(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> PatientDetail:
    return await registry.get_patient_detail(db, patient_id)


@router.patch("/patients/{patient_id}")
async def update_patient(
    patient_id: str,
    body: PatientUpdate,
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> PatientDetail:
    """Edit identity fields, response answers/durations and delete images."""
    return await registry.update_patient(db, patient_id, body)


@router.delete("/patients/{patient_id}", status_code=204)
async def delete_patient(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> None:
    """Delete a patient with all responses, images and diagnoses."""
    await registry.delete_patient(db, patient_id)


@router.post("/patients/{patient_id}/diagnoses", status_code=201)
async def add_diagnosis(
    patient_id: str,
    body: DiagnosisRequest,
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> DiagnosisRecord:
    return await registry.add_diagnosis(
        db,
        patient_id,
        result=body.result,
        confidence=body.confidence,
        details=body.details,
    )


# ------------------------------------------------------------------
# Exports
# ------------------------------------------------------------------

@router.get("/export")
async def export_patients(
    screening_type: ScreeningType = Query(...),
    fmt: ExportFormat = Query("xlsx", alias="format"),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> Response:
    """Download every patient of one program as CSV or Excel (404 if none)."""
    export = await registry.export_program(
        db, screening_type, fmt, today=datetime.now(timezone.utc).date(),
    )
    return _file_response(export)


@router.get("/patients/{patient_id}/report")
async def patient_report(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> Response:
    """Single-patient Excel report."""
    return _file_response(await registry.patient_report(db, patient_id))


# ------------------------------------------------------------------
# Maintenance
# ------------------------------------------------------------------

@router.post("/cleanup/drafts")
async def cleanup_drafts(
    older_than_days: int = Query(DEFAULT_DRAFT_TTL_DAYS, ge=0),
    db: AsyncSession = Depends(get_db),
) -> CleanupResult:
    """Delete drafts untouched for *older_than_days* (0 deletes all)."""
    affected = await _drafts.purge_stale(db, older_than_days=older_than_days)
    return CleanupResult(affected_rows=affected, action="purge_stale_drafts")
