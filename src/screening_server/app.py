"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - a lifespan handler that loads the question catalogs once and builds
    the flow controller and patient registry
  - CORS middleware
  - global exception handlers (SDK ValueError → 404/409/400)
  - all API routes under ``/api/v1`` and a ``/health`` probe

``cli()`` is the ``screening-server`` console script.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from screening_core.catalog import QuestionCatalog
from screening_core.controller import FlowController
from screening_core.registry import PatientRegistry
from screening_db.engine import dispose_engine, get_engine

from screening_server.config import ServerSettings, load_settings
from screening_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from screening_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load catalogs and build SDK singletons; dispose the pool on shutdown."""
    settings: ServerSettings = app.state.settings

    catalog = QuestionCatalog(catalog_dir=settings.catalog_dir)
    catalog.load()

    app.state.catalog = catalog
    app.state.controller = FlowController(catalog)
    app.state.registry = PatientRegistry(catalog)
    logger.info(
        "Screening server ready: programs=%s",
        [t.value for t in catalog.programs],
    )

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Screening API Server",
        description="Oral-cancer and anaemia screening intake and administration",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    @app.get("/health")
    async def health() -> dict:
        """Readiness probe; checks DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": "database unavailable"}
        return {"status": "ok"}

    register_routes(app)
    return app


# For ``uvicorn screening_server.app:app``
app = create_app()


def cli() -> None:
    """Console-script entry point: ``screening-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "screening_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
