"""Periodic job that cancels bookings whose start time has passed unpaid."""

from __future__ import annotations

import asyncio
import logging
import os

from app.core.config import get_settings
from app.core.database import session_scope
from app.modules.audit.repository import AuditRepository
from app.modules.booking.repository import BookingRepository
from app.modules.booking.service import BookingService, ExpirationReport
from app.modules.catalog.repository import CatalogRepository
from app.modules.identity.repository import IdentityRepository
from app.modules.scheduling.repository import SchedulingRepository

logger = logging.getLogger(__name__)
settings = get_settings()


async def run_cycle() -> ExpirationReport:
    """Cancel every expired booking; failures of single bookings do not abort the batch."""
    async with session_scope() as session:
        service = BookingService(
            booking_repository=BookingRepository(session),
            scheduling_repository=SchedulingRepository(session),
            catalog_repository=CatalogRepository(session),
            identity_repository=IdentityRepository(session),
            audit_repository=AuditRepository(session),
        )
        return await service.cancel_expired()


async def main() -> None:
    """Run once or keep polling according to worker mode."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    mode = os.getenv("EXPIRATION_WORKER_MODE", "once").strip().lower()

    if mode == "once":
        report = await run_cycle()
        logger.info("Expired bookings worker: %s cancelled, %s failed", len(report.cancelled), len(report.failures))
        return

    while True:
        try:
            report = await run_cycle()
            logger.info("Expired bookings worker: %s cancelled, %s failed", len(report.cancelled), len(report.failures))
        except Exception:
            logger.exception("Expired bookings worker cycle failed")
        await asyncio.sleep(settings.expiration_worker_poll_seconds)


if __name__ == "__main__":
    asyncio.run(main())
