"""Database-level enumerations shared by the ORM and the SDK."""

import enum


class ScreeningType(str, enum.Enum):
    """The two screening programs.

    Chosen once per draft; stored on every submitted patient.
    """

    OROSCAN = "oroscan"
    MEDTECH = "medtech"


class UserRole(str, enum.Enum):
    """Console roles.  Admins see every patient; users see their own."""

    ADMIN = "admin"
    USER = "user"
