"""Patient ORM models: one submitted screening and its children.

A ``Patient`` row is the cascade root: responses, images and diagnoses are
deleted with it.  The primary key is the 5-digit screening number chosen by
the SDK at submission time.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from screening_db.models.base import Base
from screening_db.models.enums import ScreeningType


class Patient(Base):
    """One row per submitted screening.

    Identity fields are denormalised copies of what was typed in the flow.
    """

    __tablename__ = "patients"

    # --- Primary key: 5-digit screening number ---
    id: Mapped[str] = mapped_column(String(5), primary_key=True)
    screening_number: Mapped[str] = mapped_column(String(5), nullable=False, unique=True)
    # Draft token; a second submit with the same token returns this row
    submission_token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # --- Identity ---
    name: Mapped[str] = mapped_column(Text, nullable=False)
    age: Mapped[str] = mapped_column(Text, nullable=False)
    gender: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    health_assistant: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("''")
    )

    screening_type: Mapped[ScreeningType] = mapped_column(
        String(20), nullable=False, index=True
    )

    # --- Authoring ---
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # --- Children ---
    creator = relationship("User", back_populates="patients")
    responses = relationship(
        "ScreeningResponse",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="ScreeningResponse.position",
    )
    images = relationship(
        "ScreeningImage",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="ScreeningImage.id",
    )
    diagnoses = relationship(
        "Diagnosis",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="Diagnosis.created_at",
    )

    __table_args__ = (
        CheckConstraint("id = screening_number", name="ck_id_is_screening_number"),
        CheckConstraint("id ~ '^[0-9]{5}$'", name="ck_screening_number_format"),
        Index("ix_patients_creator_created", "created_by", "created_at"),
    )

    # --- Convenience for read models (requires ``creator`` loaded) ---
    @property
    def created_by_email(self) -> str | None:
        return self.creator.email if self.creator is not None else None

    @property
    def created_by_name(self) -> str | None:
        return self.creator.name if self.creator is not None else None

    def __repr__(self) -> str:
        return (
            f"<Patient(id={self.id!r}, type={self.screening_type!r}, "
            f"name={self.name!r})>"
        )


class ScreeningResponse(Base):
    """One answered question of a patient, with a text snapshot."""

    __tablename__ = "screening_responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(
        String(5), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    # Catalog qid; stable across wording changes
    question_id: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    # Question text as displayed at submission time
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Order in which the question was answered in the flow
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    patient = relationship("Patient", back_populates="responses")

    __table_args__ = (
        UniqueConstraint("patient_id", "question_id", name="uq_patient_question"),
        # Empty strings are normalised to NULL before insert
        CheckConstraint("duration IS NULL OR duration <> ''", name="ck_duration_not_empty"),
    )


class ScreeningImage(Base):
    """An image reference attached during capture."""

    __tablename__ = "screening_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(
        String(5), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    patient = relationship("Patient", back_populates="images")


class Diagnosis(Base):
    """A review result for an Oroscan patient; the latest one drives risk."""

    __tablename__ = "diagnoses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(
        String(5), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    result: Mapped[str] = mapped_column(Text, nullable=False)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Free-form reviewer / model output
    details: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    patient = relationship("Patient", back_populates="diagnoses")

    __table_args__ = (
        CheckConstraint(
            "confidence IS NULL OR (confidence >= 0 AND confidence <= 1)",
            name="ck_confidence_range",
        ),
    )
