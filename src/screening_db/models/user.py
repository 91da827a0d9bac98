"""User ORM model: console accounts that author screenings."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from screening_db.models.base import Base
from screening_db.models.enums import UserRole


class User(Base):
    """One row per console user.

    Requests identify the user by email (``X-User-ID``); the UUID primary
    key is what patients and drafts reference.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        # Store as the lowercase string value, not the Python name
        String(20),
        nullable=False,
        default=UserRole.USER,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    patients = relationship("Patient", back_populates="creator")

    def __repr__(self) -> str:
        return f"<User(id={self.id!s}, email={self.email!r}, role={self.role!r})>"
