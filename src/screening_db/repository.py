"""Async repositories for patients, users and screening drafts.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries; methods ``flush()`` but never ``commit()``.

The repositories avoid business validation (that belongs in the SDK) but
enforce structural rules: screening numbers are unique, a submission token
maps to at most one patient, and deleting a patient removes its children.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from screening_db.models.draft import ScreeningDraft
from screening_db.models.enums import ScreeningType, UserRole
from screening_db.models.patient import (
    Diagnosis,
    Patient,
    ScreeningImage,
    ScreeningResponse,
)
from screening_db.models.user import User


def _with_children(stmt):
    """Eager-load everything the read models touch (async has no lazy loads)."""
    return stmt.options(
        selectinload(Patient.creator),
        selectinload(Patient.responses),
        selectinload(Patient.images),
        selectinload(Patient.diagnoses),
    )


class PatientRepository:
    """Read/write operations on ``patients`` and its child tables."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def submit_screening(
        self,
        db: AsyncSession,
        *,
        screening_number: str,
        submission_token: str,
        screening_type: ScreeningType,
        identity: dict[str, str],
        responses: list[dict[str, Any]],
        images: list[dict[str, Any]],
        created_by: uuid.UUID | None,
    ) -> Patient:
        """Insert a patient with all responses and images in one savepoint.

        If *submission_token* was already used, the existing patient is
        returned and nothing is written.  On any database error the
        savepoint is rolled back and the session stays usable, so the
        caller can still record the failure.

        Each response dict carries ``question_id, category, question,
        answer, duration``; each image dict carries ``url, category``.
        """
        existing = await self.get_by_submission_token(db, submission_token)
        if existing is not None:
            return existing

        async with db.begin_nested():
            patient = Patient(
                id=screening_number,
                screening_number=screening_number,
                submission_token=submission_token,
                screening_type=screening_type,
                created_by=created_by,
                **identity,
            )
            patient.responses = [
                ScreeningResponse(position=position, **response)
                for position, response in enumerate(responses)
            ]
            patient.images = [ScreeningImage(**image) for image in images]
            db.add(patient)
            await db.flush()

        return await self.get_patient(db, screening_number, refresh=True)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_patient(
        self, db: AsyncSession, patient_id: str, *, refresh: bool = False,
    ) -> Patient | None:
        """Fetch a patient with creator, responses, images and diagnoses."""
        stmt = _with_children(select(Patient).where(Patient.id == patient_id))
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_submission_token(
        self, db: AsyncSession, token: str
    ) -> Patient | None:
        stmt = _with_children(
            select(Patient).where(Patient.submission_token == token)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def screening_number_exists(self, db: AsyncSession, number: str) -> bool:
        stmt = select(func.count()).select_from(Patient).where(Patient.id == number)
        return (await db.execute(stmt)).scalar_one() > 0

    async def list_patients(
        self,
        db: AsyncSession,
        *,
        screening_type: ScreeningType | None = None,
        created_by: uuid.UUID | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Patient]:
        """List patients, most recent first.

        *search* matches name (case-insensitive), screening number or phone.
        """
        stmt = _with_children(select(Patient))
        if screening_type is not None:
            stmt = stmt.where(Patient.screening_type == screening_type)
        if created_by is not None:
            stmt = stmt.where(Patient.created_by == created_by)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    Patient.name.ilike(pattern),
                    Patient.screening_number.like(pattern),
                    Patient.phone.like(pattern),
                )
            )
        stmt = stmt.order_by(Patient.created_at.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_patient(
        self,
        db: AsyncSession,
        patient: Patient,
        *,
        identity: dict[str, str] | None = None,
        response_edits: list[dict[str, Any]] | None = None,
        image_deletions: list[int] | None = None,
    ) -> Patient:
        """Apply an admin edit and return the reloaded patient.

        Each response edit is ``{"response_id": int, ...changes}`` where the
        changes may hold ``answer`` and/or ``duration``.  Unknown response
        or image ids raise ``ValueError``.
        """
        for field, value in (identity or {}).items():
            setattr(patient, field, value)

        by_id = {r.id: r for r in patient.responses}
        for edit in response_edits or []:
            edit = dict(edit)
            response = by_id.get(edit.pop("response_id"))
            if response is None:
                raise ValueError(
                    f"Response not found on patient {patient.id}"
                )
            for field, value in edit.items():
                setattr(response, field, value)

        if image_deletions:
            wanted = set(image_deletions)
            known = {img.id for img in patient.images}
            if not wanted <= known:
                raise ValueError(
                    f"Image not found on patient {patient.id}: {sorted(wanted - known)}"
                )
            # delete-orphan cascade removes the rows on flush
            patient.images = [img for img in patient.images if img.id not in wanted]

        patient.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return await self.get_patient(db, patient.id, refresh=True)

    async def add_diagnosis(
        self,
        db: AsyncSession,
        patient: Patient,
        *,
        result: str,
        confidence: float | None = None,
        details: dict | None = None,
    ) -> Diagnosis:
        diagnosis = Diagnosis(
            patient_id=patient.id,
            result=result,
            confidence=confidence,
            details=details,
        )
        db.add(diagnosis)
        await db.flush()
        return diagnosis

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_patient(self, db: AsyncSession, patient: Patient) -> None:
        """Remove a patient; responses, images and diagnoses go with it."""
        await db.delete(patient)
        await db.flush()


class UserRepository:
    """Read/write operations on ``users``."""

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        db: AsyncSession,
        *,
        email: str,
        name: str | None = None,
        role: UserRole = UserRole.USER,
    ) -> User:
        """Insert a user.  Raises ``ValueError`` if the email is taken."""
        if await self.get_by_email(db, email) is not None:
            raise ValueError(f"User already exists: email={email}")
        user = User(email=email, name=name, role=role)
        db.add(user)
        await db.flush()
        return user

    async def list_with_patient_counts(
        self, db: AsyncSession
    ) -> list[tuple[User, int]]:
        """All users, newest first, each with the number of patients they created."""
        stmt = (
            select(User, func.count(Patient.id))
            .outerjoin(Patient, Patient.created_by == User.id)
            .group_by(User.id)
            .order_by(User.created_at.desc())
        )
        result = await db.execute(stmt)
        return [(user, count) for user, count in result.all()]


class DraftRepository:
    """The session-draft store: one serialised flow state per (user, draft)."""

    async def get(
        self, db: AsyncSession, user_id: str, draft_id: str
    ) -> ScreeningDraft | None:
        stmt = select(ScreeningDraft).where(
            ScreeningDraft.user_id == user_id,
            ScreeningDraft.draft_id == draft_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def save(
        self, db: AsyncSession, *, user_id: str, draft_id: str, state: dict[str, Any],
    ) -> ScreeningDraft:
        """Insert or overwrite the stored state."""
        row = await self.get(db, user_id, draft_id)
        if row is None:
            row = ScreeningDraft(user_id=user_id, draft_id=draft_id, state=state)
            db.add(row)
        else:
            row.state = state
            row.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return row

    async def delete(self, db: AsyncSession, user_id: str, draft_id: str) -> bool:
        """Drop a stored draft.  Returns False if there was none."""
        stmt = delete(ScreeningDraft).where(
            ScreeningDraft.user_id == user_id,
            ScreeningDraft.draft_id == draft_id,
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    async def purge_stale(self, db: AsyncSession, *, older_than_days: int) -> int:
        """Delete drafts untouched for *older_than_days*; returns rows removed.

        0 removes every draft.
        """
        stmt = delete(ScreeningDraft)
        if older_than_days > 0:
            cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
            stmt = stmt.where(ScreeningDraft.updated_at < cutoff)
        result = await db.execute(stmt)
        return result.rowcount
