"""Initial screening schema.

Creates ``users``, ``patients`` with its child tables (``screening_responses``,
``screening_images``, ``diagnoses``) and the ``screening_drafts`` store.
Child rows reference ``patients.id`` with ON DELETE CASCADE so deleting a
patient removes everything recorded for it.

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
    )

    # --- patients ---
    op.create_table(
        "patients",
        sa.Column("id", sa.String(5), primary_key=True),
        sa.Column("screening_number", sa.String(5), nullable=False, unique=True),
        sa.Column("submission_token", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("age", sa.Text(), nullable=False),
        sa.Column("gender", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "health_assistant", sa.Text(), nullable=False, server_default=sa.text("''")
        ),
        sa.Column("screening_type", sa.String(20), nullable=False),
        sa.Column(
            "created_by",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("id = screening_number", name="ck_id_is_screening_number"),
        sa.CheckConstraint("id ~ '^[0-9]{5}$'", name="ck_screening_number_format"),
    )
    op.create_index("ix_patients_screening_type", "patients", ["screening_type"])
    op.create_index("ix_patients_created_by", "patients", ["created_by"])
    op.create_index(
        "ix_patients_creator_created", "patients", ["created_by", "created_at"]
    )

    # --- screening_responses ---
    op.create_table(
        "screening_responses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.String(5),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question_id", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("duration", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("patient_id", "question_id", name="uq_patient_question"),
        sa.CheckConstraint(
            "duration IS NULL OR duration <> ''", name="ck_duration_not_empty"
        ),
    )

    # --- screening_images ---
    op.create_table(
        "screening_images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.String(5),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_screening_images_patient_id", "screening_images", ["patient_id"]
    )

    # --- diagnoses ---
    op.create_table(
        "diagnoses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.String(5),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("result", sa.Text(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("details", JSONB(), nullable=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint(
            "confidence IS NULL OR (confidence >= 0 AND confidence <= 1)",
            name="ck_confidence_range",
        ),
    )
    op.create_index("ix_diagnoses_patient_id", "diagnoses", ["patient_id"])

    # --- screening_drafts ---
    op.create_table(
        "screening_drafts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("draft_id", sa.Text(), nullable=False),
        sa.Column(
            "state", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "draft_id", name="uq_user_draft"),
    )
    op.create_index("ix_screening_drafts_user_id", "screening_drafts", ["user_id"])
    op.create_index("ix_drafts_updated_at", "screening_drafts", ["updated_at"])


def downgrade() -> None:
    op.drop_table("screening_drafts")
    op.drop_table("diagnoses")
    op.drop_table("screening_images")
    op.drop_table("screening_responses")
    op.drop_table("patients")
    op.drop_table("users")
