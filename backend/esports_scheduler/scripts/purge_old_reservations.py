"""
Retention job: delete reservations that ended before a cutoff.

Dry run by default. Pass --execute (or set DRY_RUN=0) to delete.

    python -m esports_scheduler.scripts.purge_old_reservations [--cutoff 2026-10-01T00:00:00Z] [--execute]
"""

import argparse
import asyncio
import os
from datetime import datetime
from typing import Optional

from esports_scheduler.core.logging import setup_logging, get_logger
from esports_scheduler.db.session import AsyncSessionLocal, engine
from esports_scheduler.services.booking_engine import BookingEngine, PurgeResult
from esports_scheduler.services.interval import start_of_current_month
from esports_scheduler.services.notifier_factory import get_notifier

logger = get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--cutoff",
        type=datetime.fromisoformat,
        default=None,
        help="ISO-8601 instant; defaults to the start of the current UTC month",
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        default=os.environ.get("DRY_RUN") == "0",
        help="actually delete (same as DRY_RUN=0)",
    )
    return parser.parse_args(argv)


async def run(cutoff: Optional[datetime], execute: bool) -> PurgeResult:
    async with AsyncSessionLocal() as db:
        booking_engine = BookingEngine(db, get_notifier())
        return await booking_engine.purge(cutoff or start_of_current_month(), dry_run=not execute)


async def main(argv: Optional[list[str]] = None) -> None:
    setup_logging()
    args = parse_args(argv)
    result = await run(args.cutoff, args.execute)
    await engine.dispose()
    if result.dry_run:
        logger.info("purge_dry_run", cutoff=result.cutoff.isoformat(), would_delete=result.count,
                    hint="pass --execute or set DRY_RUN=0 to delete")
    else:
        logger.info("purge_complete", cutoff=result.cutoff.isoformat(), deleted=result.count)


if __name__ == "__main__":
    asyncio.run(main())
