"""Booking business logic layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import BookingPaymentStatusEnum, BookingStatusEnum, PayoutStatusEnum, RoleEnum
from app.core.metrics import record_transition_conflict
from app.modules.audit.repository import AuditRepository
from app.modules.billing.calculations import compute_payout
from app.modules.booking.access import BookingAccess
from app.modules.booking.models import Booking
from app.modules.booking.policies import (
    EXPIRABLE_STATUSES,
    RESCHEDULABLE_STATUSES,
    booking_start_at,
    is_expired,
    should_restrict_reschedule,
)
from app.modules.booking.repository import BookingRepository
from app.modules.booking.schemas import BookingCreate
from app.modules.booking.state_machine import TERMINAL_STATUSES, apply_transition, apply_update
from app.modules.catalog.repository import CatalogRepository
from app.modules.identity.actor import Actor
from app.modules.identity.repository import IdentityRepository
from app.modules.scheduling.repository import SchedulingRepository
from app.shared.exceptions import (
    AlreadyCompletedException,
    AppException,
    BusinessRuleException,
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    RescheduleRestrictedException,
    SlotUnavailableException,
)
from app.shared.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

EXPIRED_REASON = "expired"


@dataclass(slots=True)
class ExpirationFailure:
    booking_id: UUID
    reason: str


@dataclass(slots=True)
class ExpirationReport:
    """Outcome of one expiration sweep."""

    cancelled: list[Booking] = field(default_factory=list)
    failures: list[ExpirationFailure] = field(default_factory=list)


class BookingService:
    """Booking state machine operations with visibility gating and assignment rules."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        scheduling_repository: SchedulingRepository,
        catalog_repository: CatalogRepository,
        identity_repository: IdentityRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.booking_repository = booking_repository
        self.scheduling_repository = scheduling_repository
        self.catalog_repository = catalog_repository
        self.identity_repository = identity_repository
        self.audit_repository = audit_repository
        self.access = BookingAccess(catalog_repository)

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _reserve_window(self, therapist_id: UUID, day: date, at: str) -> UUID:
        """Atomically book the availability window covering `day at`."""
        window = await self.scheduling_repository.find_covering_slot(therapist_id, day, at)
        if window is None:
            raise SlotUnavailableException("Therapist has no available slot at the requested time")
        if not await self.scheduling_repository.reserve_slot(window.id):
            record_transition_conflict("reserve_slot")
            raise SlotUnavailableException("Slot was taken by another booking, pick a different time")
        return window.id

    async def _release_window(self, availability_id: UUID | None) -> None:
        if availability_id is not None:
            await self.scheduling_repository.release_slot(availability_id)

    def _ensure_future(self, day: date, at: str, now: datetime) -> None:
        if booking_start_at(day, at, settings.booking_timezone) <= now:
            raise BusinessRuleException("Booking time must be in the future")

    async def _emit(self, booking: Booking, event_type: str, **extra) -> None:
        payload = {
            "booking_id": str(booking.id),
            "customer_id": str(booking.customer_id),
            "therapist_id": str(booking.therapist_id) if booking.therapist_id else None,
            "business_id": str(booking.business_id),
            "status": str(booking.status),
        }
        payload.update(extra)
        await self.audit_repository.create_outbox_event(
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type=event_type,
            payload=payload,
        )

    async def _audit(self, actor: Actor, action: str, booking: Booking, payload: dict) -> None:
        if actor.role not in (RoleEnum.ADMIN, RoleEnum.BUSINESS):
            return
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action=action,
            entity_type="booking",
            entity_id=str(booking.id),
            payload=payload,
        )

    async def create_booking(self, payload: BookingCreate, actor: Actor) -> Booking:
        """Create booking in pending status, reserving the therapist window when one is chosen."""
        if actor.role == RoleEnum.THERAPIST:
            raise ForbiddenException("Therapists cannot create bookings")

        service = await self.catalog_repository.get_service_by_id(payload.service_id)
        if service is None:
            raise NotFoundException("Service not found")

        if actor.role == RoleEnum.CUSTOMER:
            customer_id = actor.id
            assigned_by_admin = False
            assigned_by_id = None
        else:
            if actor.role == RoleEnum.BUSINESS and not await self.access.owns_business(service.business_id, actor):
                raise ForbiddenException("Service does not belong to your business")
            if payload.customer_id is None:
                raise BusinessRuleException("customer_id is required when booking on behalf of a customer")
            if payload.therapist_id is None:
                raise BusinessRuleException("therapist_id is required for assigned bookings")
            customer = await self.identity_repository.get_user_with_role(payload.customer_id, RoleEnum.CUSTOMER)
            if customer is None:
                raise NotFoundException("Customer not found")
            customer_id = customer.id
            assigned_by_admin = True
            assigned_by_id = actor.id

        self._ensure_future(payload.date, payload.time, utc_now())

        availability_id = None
        if payload.therapist_id is not None:
            therapist = await self.identity_repository.get_user_with_role(payload.therapist_id, RoleEnum.THERAPIST)
            if therapist is None:
                raise NotFoundException("Therapist not found")
            availability_id = await self._reserve_window(therapist.id, payload.date, payload.time)

        booking = await self.booking_repository.create_booking(
            customer_id=customer_id,
            therapist_id=payload.therapist_id,
            service_id=service.id,
            business_id=service.business_id,
            availability_id=availability_id,
            day=payload.date,
            time=payload.time,
            duration_minutes=service.duration_minutes,
            service_price=service.price,
            assigned_by_admin=assigned_by_admin,
            assigned_by_id=assigned_by_id,
        )
        await self._emit(booking, "booking.created", assigned_by_admin=assigned_by_admin)
        await self._audit(actor, "booking.create", booking, {"customer_id": str(customer_id)})
        return booking

    async def approve(self, booking_id: UUID, actor: Actor) -> Booking:
        """Business/admin approval of a pending booking."""
        booking = await self._get_booking(booking_id)
        await self.access.ensure_business_access(booking, actor)

        if booking.status not in (BookingStatusEnum.PENDING, BookingStatusEnum.THERAPIST_CONFIRMED):
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.CONFIRMED)
        if booking.assigned_by_admin and not booking.therapist_responded:
            raise InvalidStateTransitionException(
                booking.status,
                BookingStatusEnum.CONFIRMED,
                "Assigned bookings are confirmed by the therapist's response",
            )

        previous_status = booking.status
        await apply_transition(
            self.booking_repository,
            booking,
            BookingStatusEnum.CONFIRMED,
            operation="approve",
            values={"confirmed_by": actor.id, "confirmed_at": utc_now()},
        )
        await self._emit(booking, "booking.confirmed", confirmed_by=str(actor.id))
        await self._audit(actor, "booking.approve", booking, {"from_status": str(previous_status)})
        return booking

    async def reject(self, booking_id: UUID, actor: Actor, reason: str | None = None) -> Booking:
        """Reject or cancel a booking; an assigned therapist's decline stays hidden behind the gate."""
        booking = await self._get_booking(booking_id)
        now = utc_now()

        if actor.role == RoleEnum.THERAPIST:
            if booking.therapist_id != actor.id:
                raise ForbiddenException("Booking is not assigned to you")
        elif actor.role == RoleEnum.CUSTOMER:
            if booking.customer_id != actor.id:
                raise ForbiddenException("Booking does not belong to you")
        else:
            await self.access.ensure_business_access(booking, actor)

        if booking.status in TERMINAL_STATUSES:
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.CANCELLED)

        values: dict = {"availability_id": None}
        if actor.role == RoleEnum.THERAPIST:
            gated = bool(booking.assigned_by_admin)
            values.update(therapist_responded=True, response_visible_to_business_only=gated)
            if gated and booking.status == BookingStatusEnum.PENDING:
                target = BookingStatusEnum.THERAPIST_REJECTED
            else:
                target = BookingStatusEnum.CANCELLED
        else:
            target = BookingStatusEnum.CANCELLED

        if target == BookingStatusEnum.CANCELLED:
            values.update(cancelled_by=actor.id, cancelled_at=now, cancellation_reason=reason)

        previous_window = booking.availability_id
        previous_status = booking.status
        await apply_transition(self.booking_repository, booking, target, operation="reject", values=values)
        await self._release_window(previous_window)

        if target == BookingStatusEnum.THERAPIST_REJECTED:
            await self._emit_therapist_response(booking, accepted=False)
        else:
            await self._emit(booking, "booking.cancelled", cancelled_by=str(actor.id), reason=reason)
        await self._audit(actor, "booking.reject", booking, {"from_status": str(previous_status), "reason": reason})
        return booking

    async def _emit_therapist_response(self, booking: Booking, accepted: bool) -> None:
        business = await self.catalog_repository.get_business_by_id(booking.business_id)
        await self._emit(
            booking,
            "booking.therapist_responded",
            accepted=accepted,
            business_owner_id=str(business.owner_id) if business is not None else None,
        )

    async def therapist_respond(self, booking_id: UUID, actor: Actor, accept: bool) -> Booking:
        """Record an assigned therapist's answer, hidden from the customer until released."""
        booking = await self._get_booking(booking_id)
        if actor.role != RoleEnum.THERAPIST or booking.therapist_id != actor.id:
            raise ForbiddenException("Only the assigned therapist can respond")

        target = BookingStatusEnum.CONFIRMED if accept else BookingStatusEnum.THERAPIST_REJECTED
        if not booking.assigned_by_admin:
            raise InvalidStateTransitionException(
                booking.status,
                target,
                "Only bookings assigned by a business or admin take therapist responses",
            )
        if booking.status != BookingStatusEnum.PENDING:
            raise InvalidStateTransitionException(booking.status, target)

        values: dict = {"therapist_responded": True, "response_visible_to_business_only": True}
        previous_window = booking.availability_id
        if accept:
            values.update(confirmed_by=actor.id, confirmed_at=utc_now())
        else:
            values["availability_id"] = None

        await apply_transition(self.booking_repository, booking, target, operation="therapist_respond", values=values)
        if not accept:
            await self._release_window(previous_window)
        await self._emit_therapist_response(booking, accepted=accept)
        return booking

    async def business_release(self, booking_id: UUID, actor: Actor) -> Booking:
        """Expose the therapist's gated response to the customer."""
        booking = await self._get_booking(booking_id)
        await self.access.ensure_business_access(booking, actor)

        if not booking.response_visible_to_business_only:
            raise InvalidStateTransitionException(
                booking.status,
                booking.status,
                "Booking has no gated therapist response to release",
            )

        await apply_update(
            self.booking_repository,
            booking,
            operation="business_release",
            values={"response_visible_to_business_only": False},
            expected={"response_visible_to_business_only": True},
        )
        await self._emit(booking, "booking.response_released")
        await self._audit(actor, "booking.release", booking, {"status": str(booking.status)})
        return booking

    async def assign_therapist(self, booking_id: UUID, therapist_id: UUID, actor: Actor) -> Booking:
        """Assign (or reassign) a therapist and reopen the booking for their response."""
        booking = await self._get_booking(booking_id)
        await self.access.ensure_business_access(booking, actor)

        if booking.status not in (BookingStatusEnum.PENDING, BookingStatusEnum.THERAPIST_REJECTED):
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.PENDING)

        therapist = await self.identity_repository.get_user_with_role(therapist_id, RoleEnum.THERAPIST)
        if therapist is None:
            raise NotFoundException("Therapist not found")

        previous_therapist = booking.therapist_id
        await self._release_window(booking.availability_id)
        availability_id = await self._reserve_window(therapist.id, booking.date, booking.time)

        values = {
            "therapist_id": therapist.id,
            "availability_id": availability_id,
            "assigned_by_admin": True,
            "assigned_by_id": actor.id,
            "therapist_responded": False,
            "response_visible_to_business_only": False,
        }
        if booking.status == BookingStatusEnum.PENDING:
            await apply_update(self.booking_repository, booking, operation="assign_therapist", values=values)
        else:
            await apply_transition(
                self.booking_repository,
                booking,
                BookingStatusEnum.PENDING,
                operation="assign_therapist",
                values=values,
            )

        await self._emit(booking, "booking.assigned", assigned_by=str(actor.id))
        await self._audit(
            actor,
            "booking.assign",
            booking,
            {
                "therapist_id": str(therapist.id),
                "previous_therapist_id": str(previous_therapist) if previous_therapist else None,
            },
        )
        return booking

    async def mark_completed(self, booking_id: UUID, actor: Actor) -> Booking:
        """Therapist marks the session done; seeds the payout."""
        booking = await self._get_booking(booking_id)
        if actor.role != RoleEnum.THERAPIST or booking.therapist_id != actor.id:
            raise ForbiddenException("Only the assigned therapist can complete this booking")
        if booking.status == BookingStatusEnum.COMPLETED:
            raise AlreadyCompletedException("Booking is already completed")

        payout = compute_payout(booking.service_price, settings.therapist_share_percent)
        await apply_transition(
            self.booking_repository,
            booking,
            BookingStatusEnum.COMPLETED,
            operation="mark_completed",
            values={
                "payment_status": BookingPaymentStatusEnum.COMPLETED,
                "completed_at": utc_now(),
                "therapist_payout_status": PayoutStatusEnum.PENDING,
                "therapist_payout_amount": payout,
            },
        )
        await self._emit(booking, "booking.completed", payout_amount=str(payout))
        return booking

    async def mark_no_show(self, booking_id: UUID, actor: Actor) -> Booking:
        """Record that the customer did not turn up for a confirmed booking."""
        booking = await self._get_booking(booking_id)
        if not (actor.role == RoleEnum.THERAPIST and booking.therapist_id == actor.id):
            await self.access.ensure_business_access(booking, actor)

        if booking_start_at(booking.date, booking.time, settings.booking_timezone) > utc_now():
            raise BusinessRuleException("Booking has not started yet")

        previous_window = booking.availability_id
        await apply_transition(
            self.booking_repository,
            booking,
            BookingStatusEnum.NO_SHOW,
            operation="mark_no_show",
            values={"availability_id": None},
        )
        await self._release_window(previous_window)
        await self._emit(booking, "booking.no_show", marked_by=str(actor.id))
        await self._audit(actor, "booking.no_show", booking, {})
        return booking

    async def reschedule(self, booking_id: UUID, actor: Actor, new_date: date, new_time: str) -> Booking:
        """Move booking to a new slot; it always reopens as pending for re-approval."""
        booking = await self._get_booking(booking_id)
        await self.access.ensure_participant(booking, actor)

        if booking.status not in RESCHEDULABLE_STATUSES:
            raise InvalidStateTransitionException(booking.status, BookingStatusEnum.RESCHEDULED)

        now = utc_now()
        if should_restrict_reschedule(
            booking.date,
            booking.time,
            actor.role,
            now,
            window=timedelta(hours=settings.reschedule_restriction_hours),
            tz_name=settings.booking_timezone,
        ):
            raise RescheduleRestrictedException(
                f"Bookings cannot be rescheduled within {settings.reschedule_restriction_hours} hours of start",
            )
        self._ensure_future(new_date, new_time, now)

        original_date, original_time = booking.date, booking.time
        previous_window = booking.availability_id
        await apply_transition(
            self.booking_repository,
            booking,
            BookingStatusEnum.RESCHEDULED,
            operation="reschedule",
            values={
                "original_date": original_date,
                "original_time": original_time,
                "date": new_date,
                "time": new_time,
                "rescheduled_by": actor.id,
                "rescheduled_at": now,
            },
        )

        await self._release_window(previous_window)
        availability_id = None
        if booking.therapist_id is not None:
            availability_id = await self._reserve_window(booking.therapist_id, new_date, new_time)

        await apply_transition(
            self.booking_repository,
            booking,
            BookingStatusEnum.PENDING,
            operation="reschedule",
            values={
                "availability_id": availability_id,
                "therapist_responded": False,
                "response_visible_to_business_only": False,
                "confirmed_by": None,
                "confirmed_at": None,
            },
        )
        await self._emit(
            booking,
            "booking.rescheduled",
            original_date=original_date.isoformat(),
            original_time=original_time,
            rescheduled_by=str(actor.id),
        )
        return booking

    async def cancel_expired(self, now: datetime | None = None) -> ExpirationReport:
        """Cancel unpaid pending/confirmed bookings whose start has passed."""
        now = now or utc_now()
        grace = timedelta(minutes=settings.booking_expiration_grace_minutes)
        tz_name = settings.booking_timezone

        candidates = await self.booking_repository.find_expiration_candidates(
            EXPIRABLE_STATUSES,
            BookingPaymentStatusEnum.PENDING,
            # Over-fetch by a day so any booking timezone is covered; is_expired applies the exact cutoff.
            on_or_before=ensure_utc(now).date() + timedelta(days=1),
        )

        report = ExpirationReport()
        for booking in candidates:
            try:
                if not is_expired(booking, now, grace=grace, tz_name=tz_name):
                    continue
                async with self.booking_repository.savepoint():
                    previous_window = booking.availability_id
                    await apply_transition(
                        self.booking_repository,
                        booking,
                        BookingStatusEnum.CANCELLED,
                        operation="cancel_expired",
                        values={
                            "cancelled_at": now,
                            "cancellation_reason": EXPIRED_REASON,
                            "availability_id": None,
                        },
                        expected={"payment_status": BookingPaymentStatusEnum.PENDING},
                    )
                    await self._release_window(previous_window)
                    await self._emit(booking, "booking.expired", reason=EXPIRED_REASON)
            except (AppException, SQLAlchemyError, ValueError) as exc:
                logger.warning("Could not expire booking %s: %s", booking.id, exc)
                report.failures.append(ExpirationFailure(booking_id=booking.id, reason=str(exc)))
                continue
            report.cancelled.append(booking)

        logger.info(
            "Expiration sweep finished: %s cancelled, %s failed",
            len(report.cancelled),
            len(report.failures),
        )
        return report

    async def get_booking(self, booking_id: UUID, actor: Actor) -> Booking:
        booking = await self._get_booking(booking_id)
        await self.access.ensure_participant(booking, actor)
        return booking

    async def list_bookings(self, actor: Actor, limit: int, offset: int) -> tuple[list[Booking], int]:
        """List bookings visible to actor according to role."""
        business_ids: list[UUID] = []
        if actor.role == RoleEnum.BUSINESS:
            business_ids = await self.catalog_repository.list_business_ids_for_owner(actor.id)
        return await self.booking_repository.list_bookings(actor.id, actor.role, business_ids, limit, offset)


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(
        booking_repository=BookingRepository(session),
        scheduling_repository=SchedulingRepository(session),
        catalog_repository=CatalogRepository(session),
        identity_repository=IdentityRepository(session),
        audit_repository=AuditRepository(session),
    )
