"""Draft TTL CLI: ``screening-cleanup``.

Deletes screening drafts that nobody touched for a number of days.
Intended for cron jobs.

Examples::

    # Drafts idle for longer than $DRAFT_TTL_DAYS (default 30)
    screening-cleanup

    # Drafts idle for more than 7 days
    screening-cleanup --days 7

    # Every stored draft
    screening-cleanup --days 0
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from screening_server.config import DEFAULT_DRAFT_TTL_DAYS

logger = logging.getLogger(__name__)


async def run_cleanup(*, days: int = DEFAULT_DRAFT_TTL_DAYS) -> int:
    """Purge stale drafts in one transaction; returns the rows deleted."""
    # DB machinery is only needed once the command actually runs
    from screening_db.engine import dispose_engine, session_scope
    from screening_db.repository import DraftRepository

    repo = DraftRepository()
    try:
        async with session_scope() as db:
            affected = await repo.purge_stale(db, older_than_days=days)
        logger.info("Draft cleanup complete: affected_rows=%d, days=%d", affected, days)
        return affected
    finally:
        await dispose_engine()


def cli() -> None:
    """Console-script entry point: ``screening-cleanup``."""
    parser = argparse.ArgumentParser(
        prog="screening-cleanup",
        description="Delete screening drafts that have been idle too long.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=DEFAULT_DRAFT_TTL_DAYS,
        help=(
            "Idle threshold in days (default: $DRAFT_TTL_DAYS or 30). "
            "0 deletes every draft."
        ),
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )
    args = parser.parse_args()

    if args.days < 0:
        parser.error("--days must be >= 0")

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    affected = asyncio.run(run_cleanup(days=args.days))
    print(f"Deleted drafts: {affected}")
    sys.exit(0)
