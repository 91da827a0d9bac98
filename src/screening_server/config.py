"""Server settings read from the environment.

Defaults suit local development; deployments override them with env vars.
"""

import os
from dataclasses import dataclass, field

# Query() defaults are bound at decoration time, so these are read on import
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "500"))
DEFAULT_DRAFT_TTL_DAYS = int(os.getenv("DRAFT_TTL_DAYS", "30"))


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080

    # Comma-separated origins in the env var; "*" allows any
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # None → the catalogs bundled with screening_core
    catalog_dir: str | None = None

    log_level: str = "INFO"

    # Drafts untouched for this many days are purged by screening-cleanup
    draft_ttl_days: int = DEFAULT_DRAFT_TTL_DAYS

    # Shared secret for service access to /admin (None = admin users only)
    admin_api_key: str | None = None

    # When set, X-User-ID is only trusted alongside a matching X-Proxy-Secret
    trusted_proxy_secret: str | None = None


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` and related environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=[o.strip() for o in raw_origins.split(",") if o.strip()],
        catalog_dir=os.getenv("SERVER_CATALOG_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        draft_ttl_days=DEFAULT_DRAFT_TTL_DAYS,
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
    )
