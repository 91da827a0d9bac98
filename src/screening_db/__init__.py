"""screening_db: PostgreSQL persistence for screenings.

This package provides the ORM models, the async engine factory and the
repositories for users, submitted patients and in-progress drafts.  It is
consumed by the ``screening_core`` SDK and the FastAPI server.
"""

from screening_db.engine import dispose_engine, get_engine, get_session_factory
from screening_db.models.enums import ScreeningType, UserRole
from screening_db.repository import DraftRepository, PatientRepository, UserRepository

__all__ = [
    "DraftRepository",
    "PatientRepository",
    "ScreeningType",
    "UserRepository",
    "UserRole",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
]
