"""PatientRegistry: read, edit and export submitted screenings.

Everything here works on persisted records: patient lists and details for
health-assistant dashboards, the admin console (users, edits, diagnoses,
statistics) and CSV / Excel exports.  Status and risk are never stored;
they are recomputed by :mod:`screening_core.risk` on every read.

Like :class:`~screening_core.controller.FlowController`, every method takes
the caller's ``AsyncSession`` and never commits.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.aggregation import build_export_rows, group_by_category
from screening_core.catalog import QuestionCatalog
from screening_core.constants import REQUIRED_IDENTITY_FIELDS
from screening_core.dashboard import (
    build_admin_stats,
    build_program_dashboard,
    summarize,
)
from screening_core.export import ExportFile, ExportFormat, export_table, patient_report
from screening_core.flow import resolve_duration
from screening_core.models.dashboard import AdminStats, ProgramDashboard
from screening_core.models.record import (
    DiagnosisRecord,
    PatientDetail,
    PatientRecord,
    PatientSummary,
    PatientUpdate,
    ResponseEdit,
    UserInfo,
)
from screening_core.risk import assess, latest_diagnosis
from screening_db.models.enums import ScreeningType, UserRole
from screening_db.repository import PatientRepository, UserRepository

logger = logging.getLogger(__name__)


class PatientRegistry:
    """Query and administration facade over the patient and user stores."""

    def __init__(self, catalog: QuestionCatalog) -> None:
        self._catalog = catalog
        self._patients = PatientRepository()
        self._users = UserRepository()

    # ==================================================================
    # Users
    # ==================================================================

    async def resolve_user(self, db: AsyncSession, email: str) -> UserInfo | None:
        """Look up a console user by e-mail (case-insensitive)."""
        user = await self._users.get_by_email(db, email)
        if user is None:
            return None
        return UserInfo.model_validate(user)

    async def list_users(self, db: AsyncSession) -> list[UserInfo]:
        rows = await self._users.list_with_patient_counts(db)
        return [
            UserInfo.model_validate(user).model_copy(update={"patient_count": count})
            for user, count in rows
        ]

    async def create_user(
        self,
        db: AsyncSession,
        *,
        email: str,
        name: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> UserInfo:
        """Register a console user.

        Raises:
            ValueError: a user with this e-mail already exists
        """
        user = await self._users.create_user(
            db, email=email.strip(), name=name, role=role,
        )
        logger.info("User created: email=%s role=%s", user.email, role.value)
        return UserInfo.model_validate(user)

    # ==================================================================
    # Patients
    # ==================================================================

    async def _load_records(
        self,
        db: AsyncSession,
        *,
        screening_type: ScreeningType | None = None,
        created_by: uuid.UUID | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PatientRecord]:
        rows = await self._patients.list_patients(
            db,
            screening_type=screening_type,
            created_by=created_by,
            search=search,
            limit=limit,
            offset=offset,
        )
        return [PatientRecord.model_validate(row) for row in rows]

    async def list_patients(
        self,
        db: AsyncSession,
        *,
        screening_type: ScreeningType | None = None,
        created_by: uuid.UUID | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[PatientSummary]:
        """Patient rows, newest first, each with its derived assessment."""
        records = await self._load_records(
            db,
            screening_type=screening_type,
            created_by=created_by,
            search=search,
            limit=limit,
            offset=offset,
        )
        return [summarize(r) for r in records]

    async def _get_row(self, db: AsyncSession, patient_id: str):
        patient = await self._patients.get_patient(db, patient_id)
        if patient is None:
            raise ValueError(f"Patient not found: id={patient_id}")
        return patient

    async def get_patient_detail(
        self,
        db: AsyncSession,
        patient_id: str,
        *,
        viewer: UserInfo | None = None,
    ) -> PatientDetail:
        """Full record with grouped responses.

        When *viewer* is a non-admin user, only patients they created are
        visible; anything else is reported as not found.

        Raises:
            ValueError: unknown patient, or not visible to *viewer*
        """
        record = PatientRecord.model_validate(await self._get_row(db, patient_id))
        if viewer is not None and not viewer.is_admin and record.created_by != viewer.id:
            raise ValueError(
                f"Patient not found: id={patient_id} viewer={viewer.email}"
            )
        return self._to_detail(record)

    @staticmethod
    def _to_detail(record: PatientRecord) -> PatientDetail:
        return PatientDetail(
            patient=record,
            assessment=assess(record),
            response_groups=group_by_category(record.responses),
            latest_diagnosis=latest_diagnosis(record.diagnoses),
        )

    async def update_patient(
        self, db: AsyncSession, patient_id: str, update: PatientUpdate,
    ) -> PatientDetail:
        """Apply an admin edit to identity fields, responses and images.

        Edited responses follow the same answer and duration rules as the
        intake flow: the answer must be one of the question's options and
        a duration is only kept on an affirmative answer.

        Raises:
            ValueError: unknown patient, response or image; a blank
                required identity field; an invalid answer or duration
        """
        patient = await self._get_row(db, patient_id)

        identity = update.identity_changes()
        for name in REQUIRED_IDENTITY_FIELDS:
            if name in identity and not identity[name].strip():
                raise ValueError(f"Required field {name} cannot be blank")

        by_id = {r.id: r for r in patient.responses}
        response_edits = [
            self._response_changes(patient_id, by_id.get(edit.response_id), edit)
            for edit in update.responses
        ]

        patient = await self._patients.update_patient(
            db,
            patient,
            identity=identity,
            response_edits=response_edits,
            image_deletions=update.delete_image_ids,
        )
        logger.info(
            "Patient updated: id=%s fields=%s responses=%d images_deleted=%d",
            patient_id, sorted(identity),
            len(response_edits), len(update.delete_image_ids),
        )
        return self._to_detail(PatientRecord.model_validate(patient))

    def _response_changes(self, patient_id: str, row, edit: ResponseEdit) -> dict:
        """Validated column changes for one stored response."""
        if row is None:
            raise ValueError(
                f"Response not found on patient {patient_id}: id={edit.response_id}"
            )
        if not self._catalog.has_question(row.question_id):
            raise ValueError(
                f"Response {row.id} refers to unknown question {row.question_id}"
            )
        question = self._catalog.get_question(row.question_id)

        answer = row.answer if edit.answer is None else edit.answer
        if not question.is_valid_answer(answer):
            raise ValueError(
                f"Invalid answer {answer!r} for question {question.qid}"
            )
        return {
            "response_id": row.id,
            "answer": answer,
            "duration": resolve_duration(
                self._catalog,
                question,
                answer=answer,
                duration=edit.duration,
                duration_given="duration" in edit.model_fields_set,
                previous=row.duration,
            ),
        }

    async def delete_patient(self, db: AsyncSession, patient_id: str) -> None:
        """Delete a patient together with its responses, images and diagnoses."""
        patient = await self._get_row(db, patient_id)
        await self._patients.delete_patient(db, patient)
        logger.info("Patient deleted: id=%s", patient_id)

    async def add_diagnosis(
        self,
        db: AsyncSession,
        patient_id: str,
        *,
        result: str,
        confidence: float | None = None,
        details: dict | None = None,
    ) -> DiagnosisRecord:
        """Record a diagnosis; for Oroscan it drives status and risk."""
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            raise ValueError(f"Invalid confidence {confidence}: expected 0..1")
        patient = await self._get_row(db, patient_id)
        diagnosis = await self._patients.add_diagnosis(
            db, patient, result=result, confidence=confidence, details=details,
        )
        logger.info(
            "Diagnosis added: patient=%s result=%s confidence=%s",
            patient_id, result, confidence,
        )
        return DiagnosisRecord.model_validate(diagnosis)

    # ==================================================================
    # Dashboards
    # ==================================================================

    async def program_dashboard(
        self,
        db: AsyncSession,
        *,
        user: UserInfo,
        screening_type: ScreeningType,
        now: datetime | None = None,
    ) -> ProgramDashboard:
        """Dashboard of one program restricted to the patients *user* created."""
        records = await self._load_records(
            db, screening_type=screening_type, created_by=user.id,
        )
        return build_program_dashboard(records, screening_type, now=now)

    async def admin_stats(
        self, db: AsyncSession, *, now: datetime | None = None,
    ) -> AdminStats:
        records = await self._load_records(db)
        users = await self.list_users(db)
        return build_admin_stats(records, users, now=now)

    # ==================================================================
    # Export
    # ==================================================================

    async def export_program(
        self,
        db: AsyncSession,
        screening_type: ScreeningType,
        fmt: ExportFormat,
        *,
        today: date | None = None,
    ) -> ExportFile:
        """Every patient of one program as a CSV or Excel table.

        Raises:
            ValueError: the program has no patients, or *fmt* is unknown
        """
        records = await self._load_records(db, screening_type=screening_type)
        if not records:
            raise ValueError(
                f"Patients not found for export: type={screening_type.value}"
            )
        return self.export_records(records, screening_type, fmt, today=today)

    def export_records(
        self,
        records: Sequence[PatientRecord],
        screening_type: ScreeningType,
        fmt: ExportFormat,
        *,
        today: date | None = None,
    ) -> ExportFile:
        program = self._catalog.program(screening_type)
        columns, rows = build_export_rows(records)
        logger.info(
            "Exporting %d %s patients as %s", len(rows), screening_type.value, fmt,
        )
        return export_table(
            columns,
            rows,
            fmt=fmt,
            sheet_name=program.label,
            slug=program.export_slug,
            today=today or datetime.now(timezone.utc).date(),
        )

    async def patient_report(self, db: AsyncSession, patient_id: str) -> ExportFile:
        record = PatientRecord.model_validate(await self._get_row(db, patient_id))
        return patient_report(record)
