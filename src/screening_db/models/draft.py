"""ScreeningDraft ORM model: the session-draft store.

Each row holds one serialised ``FlowState`` so an in-progress screening
survives reloads.  A missing row is a cold start, never an error.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from screening_db.models.base import Base


class ScreeningDraft(Base):
    """One row per (user, draft) pair."""

    __tablename__ = "screening_drafts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    # Owning user's id, as text so drafts do not block user deletion
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Caller-supplied draft identifier, unique within a user (e.g. a tab id)
    draft_id: Mapped[str] = mapped_column(Text, nullable=False)
    # FlowState.model_dump(mode="json")
    state: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
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

    __table_args__ = (
        UniqueConstraint("user_id", "draft_id", name="uq_user_draft"),
        # Stale-draft cleanup scans by age
        Index("ix_drafts_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ScreeningDraft(user={self.user_id!r}, draft={self.draft_id!r}, "
            f"step={self.state.get('step')!r})>"
        )
