"""Worker process that purges soft-deleted leave requests.

Runs an asyncio loop that removes requests whose 7-day restore window has
elapsed, once per ``purge_interval_seconds``.
"""

from __future__ import annotations

import asyncio
import logging

from leavedesk.config import configure_logging, get_settings
from leavedesk.db import dispose_engine, get_session_factory
from leavedesk.models.base import now_utc
from leavedesk.services.purge import purge_expired_requests
from leavedesk.services.store import SqlLeaveRequestStore

logger = logging.getLogger(__name__)


async def run_purge_once() -> None:
    """Run a single purge pass and log its outcome."""
    now = now_utc()
    try:
        async with get_session_factory()() as session:
            result = await purge_expired_requests(SqlLeaveRequestStore(session), now)
    except Exception:
        logger.exception("Purge run failed at %s", now.isoformat())
        return
    logger.info(
        "Purge run complete at %s: purged=%d skipped=%d errors=%d",
        now.isoformat(),
        result.purged,
        result.skipped,
        result.errors,
    )


async def run_purge_loop() -> None:
    """Main worker loop."""
    interval = get_settings().purge_interval_seconds
    logger.info("Purge worker started (interval=%ds)", interval)
    try:
        while True:
            await run_purge_once()
            await asyncio.sleep(interval)
    finally:
        await dispose_engine()


def main() -> None:
    """Entry point for the worker process."""
    configure_logging(get_settings())
    asyncio.run(run_purge_loop())


if __name__ == "__main__":
    main()
