"""Route registration: mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from screening_server.routes.admin import router as admin_router
from screening_server.routes.dashboard import router as dashboard_router
from screening_server.routes.flows import router as flows_router
from screening_server.routes.reference import router as reference_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    app.include_router(flows_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(reference_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
