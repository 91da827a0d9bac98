"""FastAPI dependencies: DB sessions, SDK singletons and caller identity.

Each request that touches the database gets its own ``AsyncSession`` from
``get_db()``, committed on success and rolled back on error.  SDK
controllers and repositories only ``flush()``, so this is the one place
where transactions end.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.catalog import QuestionCatalog
from screening_core.controller import FlowController
from screening_core.models.record import UserInfo
from screening_core.registry import PatientRegistry
from screening_db.engine import get_session_factory


# ------------------------------------------------------------------
# Database session
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; commit on success, roll back on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# SDK singletons stashed on app.state by the lifespan handler
# ------------------------------------------------------------------

def get_catalog(request: Request) -> QuestionCatalog:
    return request.app.state.catalog


def get_controller(request: Request) -> FlowController:
    return request.app.state.controller


def get_registry(request: Request) -> PatientRegistry:
    return request.app.state.registry


# ------------------------------------------------------------------
# Caller identity
# ------------------------------------------------------------------

async def get_user_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """E-mail of the caller from the ``X-User-ID`` header (401 if absent).

    When ``TRUSTED_PROXY_SECRET`` is configured the request must also carry
    a matching ``X-Proxy-Secret``, proving the identity header was set by
    the gateway rather than by the client.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(
                status_code=403, detail="X-Proxy-Secret header is required",
            )
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return x_user_id.strip()


async def get_current_user(
    user_id: str = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> UserInfo:
    """Registered console user behind ``X-User-ID`` (403 if unknown)."""
    user = await registry.resolve_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=403, detail="Unknown user")
    return user


async def require_admin(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
    db: AsyncSession = Depends(get_db),
    registry: PatientRegistry = Depends(get_registry),
) -> str:
    """Allow admin users, or service callers holding ``ADMIN_API_KEY``.

    With an ``X-Admin-Key`` header the key alone decides (403 if admin keys
    are not configured or the key is wrong).  Otherwise the caller must be
    a registered user with the admin role.  Returns who was let in.
    """
    if x_admin_key:
        expected: str | None = request.app.state.settings.admin_api_key
        if not expected:
            raise HTTPException(
                status_code=403,
                detail="Admin key access is disabled (ADMIN_API_KEY not configured)",
            )
        if not hmac.compare_digest(x_admin_key, expected):
            raise HTTPException(status_code=403, detail="Invalid admin key")
        return "admin-key"

    user_id = await get_user_id(request, x_user_id, x_proxy_secret)
    user = await get_current_user(user_id, db, registry)
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user.email
