"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.enums import RoleEnum
from app.modules.booking.schemas import (
    AssignTherapistRequest,
    BookingCreate,
    BookingRead,
    BookingRejectRequest,
    BookingRescheduleRequest,
    ExpirationFailureRead,
    ExpirationReportRead,
    TherapistResponseRequest,
)
from app.modules.booking.service import BookingService, get_booking_service
from app.modules.identity.actor import Actor
from app.modules.identity.service import get_current_actor, require_roles
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    """Create booking in pending status."""
    booking = await service.create_booking(payload, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.get("", response_model=Page[BookingRead])
async def list_bookings(
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(get_current_actor),
) -> Page[BookingRead]:
    """List bookings visible to current actor."""
    items, total = await service.list_bookings(actor, pagination.limit, pagination.offset)
    serialized = [BookingRead.for_viewer(item, actor.role) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    booking = await service.get_booking(booking_id, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/approve", response_model=BookingRead)
async def approve_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.BUSINESS, RoleEnum.ADMIN)),
) -> BookingRead:
    """Approve pending booking (business owner or admin)."""
    booking = await service.approve(booking_id, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/reject", response_model=BookingRead)
async def reject_booking(
    booking_id: UUID,
    payload: BookingRejectRequest,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    """Reject or cancel booking."""
    booking = await service.reject(booking_id, actor, payload.reason)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/therapist-response", response_model=BookingRead)
async def therapist_respond(
    booking_id: UUID,
    payload: TherapistResponseRequest,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.THERAPIST)),
) -> BookingRead:
    """Accept or decline an assigned booking."""
    booking = await service.therapist_respond(booking_id, actor, payload.accept)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/release", response_model=BookingRead)
async def release_response(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.BUSINESS, RoleEnum.ADMIN)),
) -> BookingRead:
    """Make therapist response visible to the customer."""
    booking = await service.business_release(booking_id, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/assign", response_model=BookingRead)
async def assign_therapist(
    booking_id: UUID,
    payload: AssignTherapistRequest,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.BUSINESS, RoleEnum.ADMIN)),
) -> BookingRead:
    booking = await service.assign_therapist(booking_id, payload.therapist_id, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/complete", response_model=BookingRead)
async def complete_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.THERAPIST)),
) -> BookingRead:
    """Mark session completed (assigned therapist)."""
    booking = await service.mark_completed(booking_id, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/no-show", response_model=BookingRead)
async def mark_no_show(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.THERAPIST, RoleEnum.BUSINESS, RoleEnum.ADMIN)),
) -> BookingRead:
    booking = await service.mark_no_show(booking_id, actor)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/{booking_id}/reschedule", response_model=BookingRead)
async def reschedule_booking(
    booking_id: UUID,
    payload: BookingRescheduleRequest,
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    """Move booking to a new date/time; it reopens as pending."""
    booking = await service.reschedule(booking_id, actor, payload.new_date, payload.new_time)
    return BookingRead.for_viewer(booking, actor.role)


@router.post("/expire", response_model=ExpirationReportRead)
async def cancel_expired_bookings(
    service: BookingService = Depends(get_booking_service),
    actor: Actor = Depends(require_roles(RoleEnum.ADMIN)),
) -> ExpirationReportRead:
    """Cancel unpaid bookings whose start time has passed (admin)."""
    report = await service.cancel_expired()
    return ExpirationReportRead(
        cancelled=[BookingRead.for_viewer(item, actor.role) for item in report.cancelled],
        failures=[ExpirationFailureRead(booking_id=item.booking_id, reason=item.reason) for item in report.failures],
    )
