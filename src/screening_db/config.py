"""Database configuration: connection parameters from the environment.

The URL comes from ``DATABASE_URL`` when set, otherwise it is assembled from
``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD`` and ``PG_DATABASE``.
Whatever driver prefix the URL carries, Alembic gets the plain
``postgresql://`` form and the runtime engine gets ``postgresql+asyncpg://``.

Pool sizing and SQL echo are read here too so the engine module holds no
environment lookups of its own.
"""

import os
from dataclasses import dataclass

_SYNC_PREFIX = "postgresql://"
_ASYNC_PREFIX = "postgresql+asyncpg://"
# Prefixes some hosting providers hand out for the same database
_ALIASES = ("postgres://", "postgresql+psycopg2://", _ASYNC_PREFIX)


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings read once per process."""

    url: str
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False


def _normalise(url: str) -> str:
    """Rewrite any known PostgreSQL prefix to ``postgresql://``."""
    for alias in _ALIASES:
        if url.startswith(alias):
            return _SYNC_PREFIX + url[len(alias):]
    return url


def _url_from_env() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return _normalise(url)
    return "{prefix}{user}:{password}@{host}:{port}/{database}".format(
        prefix=_SYNC_PREFIX,
        user=os.getenv("PG_USER", "screening"),
        password=os.getenv("PG_PASSWORD", "screening"),
        host=os.getenv("PG_HOST", "localhost"),
        port=os.getenv("PG_PORT", "5432"),
        database=os.getenv("PG_DATABASE", "screening"),
    )


def load_database_settings() -> DatabaseSettings:
    """Build settings from ``DATABASE_URL`` / ``PG_*`` environment variables."""
    return DatabaseSettings(
        url=_url_from_env(),
        pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        echo=os.getenv("PG_ECHO", "").lower() in ("1", "true", "yes"),
    )


def get_sync_url() -> str:
    """Plain ``postgresql://`` URL, used by Alembic's synchronous runner."""
    return _url_from_env()


def get_async_url() -> str:
    """``postgresql+asyncpg://`` URL for the runtime engine."""
    return _ASYNC_PREFIX + _url_from_env()[len(_SYNC_PREFIX):]
