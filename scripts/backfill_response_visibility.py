"""Set response_visible_to_business_only to false on legacy bookings that lack it."""

from __future__ import annotations

import argparse
import asyncio
import logging

from sqlalchemy import func, select, update

from app.core.database import close_engine, session_scope
from app.modules.booking.models import Booking

logger = logging.getLogger(__name__)


async def backfill(*, dry_run: bool) -> int:
    async with session_scope() as session:
        missing = Booking.response_visible_to_business_only.is_(None)
        count = int((await session.scalar(select(func.count()).select_from(Booking).where(missing))) or 0)
        if dry_run or count == 0:
            return count

        await session.execute(
            update(Booking)
            .where(missing)
            .values(response_visible_to_business_only=False)
            .execution_options(synchronize_session=False)
        )
        return count


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="Only report how many rows would change.")
    return parser.parse_args()


async def _main() -> None:
    args = _parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    try:
        count = await backfill(dry_run=args.dry_run)
    finally:
        await close_engine()
    if args.dry_run:
        logger.info("%s bookings need response visibility backfill", count)
    else:
        logger.info("Backfilled response visibility on %s bookings", count)


if __name__ == "__main__":
    asyncio.run(_main())
