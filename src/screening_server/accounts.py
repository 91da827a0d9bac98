"""User seeding CLI: ``screening-create-user``.

Registers a console user so that requests carrying their e-mail in
``X-User-ID`` are accepted.  The first admin has to be created this way.

Examples::

    screening-create-user --email nurse@clinic.example --name "Ward Nurse"
    screening-create-user --email lead@clinic.example --admin
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

logger = logging.getLogger(__name__)


async def run_create_user(*, email: str, name: str | None, admin: bool) -> str:
    """Insert the user and return its id.  Raises ``ValueError`` if taken."""
    from screening_db.engine import dispose_engine, session_scope
    from screening_db.models.enums import UserRole
    from screening_db.repository import UserRepository

    role = UserRole.ADMIN if admin else UserRole.USER
    try:
        async with session_scope() as db:
            user = await UserRepository().create_user(
                db, email=email.strip(), name=name, role=role,
            )
            user_id = str(user.id)
        logger.info("User created: email=%s role=%s id=%s", email, role.value, user_id)
        return user_id
    finally:
        await dispose_engine()


def cli() -> None:
    """Console-script entry point: ``screening-create-user``."""
    parser = argparse.ArgumentParser(
        prog="screening-create-user",
        description="Register a screening console user.",
    )
    parser.add_argument("--email", required=True, help="Login e-mail (X-User-ID)")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument(
        "--admin", action="store_true", default=False,
        help="Grant the admin role",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    try:
        user_id = asyncio.run(
            run_create_user(email=args.email, name=args.name, admin=args.admin)
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"Created user {args.email} ({user_id})")
