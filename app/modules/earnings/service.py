"""Earnings projection and therapist payout release."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import EarningsViewEnum, PayoutStatusEnum, RoleEnum
from app.modules.audit.repository import AuditRepository
from app.modules.booking.access import BookingAccess
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.booking.state_machine import apply_update
from app.modules.catalog.repository import CatalogRepository
from app.modules.earnings.repository import EarningsRepository
from app.modules.earnings.views import VIEW_FILTERS, in_view
from app.modules.identity.actor import Actor
from app.shared.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from app.shared.utils import utc_now


@dataclass(slots=True)
class BusinessEarnings:
    view: EarningsViewEnum
    items: list[Booking]
    total: int
    total_amount: Decimal


@dataclass(slots=True)
class TherapistEarnings:
    items: list[Booking] = field(default_factory=list)
    pending_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")


class EarningsService:
    """Read-side earnings views derived from booking state."""

    def __init__(
        self,
        repository: EarningsRepository,
        booking_repository: BookingRepository,
        catalog_repository: CatalogRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository
        self.catalog_repository = catalog_repository
        self.audit_repository = audit_repository
        self.access = BookingAccess(catalog_repository)

    async def business_earnings(
        self,
        actor: Actor,
        view: EarningsViewEnum,
        limit: int,
        offset: int,
    ) -> BusinessEarnings:
        """Bookings in the half- or full-payment view for the actor's businesses."""
        if actor.role == RoleEnum.BUSINESS:
            business_ids: list[UUID] | None = await self.catalog_repository.list_business_ids_for_owner(actor.id)
        elif actor.is_admin:
            business_ids = None
        else:
            raise ForbiddenException("Only businesses and admins can view business earnings")

        statuses, payment_statuses = VIEW_FILTERS[view]
        items, total, total_amount = await self.repository.list_view(
            business_ids,
            statuses,
            payment_statuses,
            limit,
            offset,
        )
        return BusinessEarnings(view=view, items=items, total=total, total_amount=total_amount)

    async def therapist_earnings(self, actor: Actor) -> TherapistEarnings:
        """Completed bookings of the therapist with payout totals."""
        if actor.role != RoleEnum.THERAPIST:
            raise ForbiddenException("Only therapists have payouts")

        earnings = TherapistEarnings(items=await self.repository.list_therapist_completed(actor.id))
        for booking in earnings.items:
            amount = Decimal(booking.therapist_payout_amount or 0)
            if booking.therapist_payout_status == PayoutStatusEnum.PAID:
                earnings.paid_amount += amount
            else:
                earnings.pending_amount += amount
        return earnings

    async def release_payout(self, booking_id: UUID, actor: Actor) -> Booking:
        """Mark the therapist's share of a completed booking as paid out."""
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        await self.access.ensure_business_access(booking, actor)

        if not in_view(booking, EarningsViewEnum.FULL):
            raise BusinessRuleException("Payout can be released only for completed, fully paid bookings")
        if booking.therapist_payout_status == PayoutStatusEnum.PAID:
            raise BusinessRuleException("Payout was already released")

        paid_at = utc_now()
        await apply_update(
            self.booking_repository,
            booking,
            operation="release_payout",
            values={"therapist_payout_status": PayoutStatusEnum.PAID, "therapist_paid_at": paid_at},
            expected={"therapist_payout_status": PayoutStatusEnum.PENDING},
        )
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="earnings.payout.release",
            entity_type="booking",
            entity_id=str(booking.id),
            payload={
                "therapist_id": str(booking.therapist_id) if booking.therapist_id else None,
                "amount": str(booking.therapist_payout_amount),
            },
        )
        await self.audit_repository.create_outbox_event(
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type="payout.released",
            payload={
                "booking_id": str(booking.id),
                "therapist_id": str(booking.therapist_id) if booking.therapist_id else None,
                "amount": str(booking.therapist_payout_amount),
                "paid_at": paid_at.isoformat(),
            },
        )
        return booking


async def get_earnings_service(session: AsyncSession = Depends(get_db_session)) -> EarningsService:
    """Dependency provider for earnings service."""
    return EarningsService(
        repository=EarningsRepository(session),
        booking_repository=BookingRepository(session),
        catalog_repository=CatalogRepository(session),
        audit_repository=AuditRepository(session),
    )
