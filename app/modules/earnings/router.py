"""Earnings API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.enums import EarningsViewEnum, RoleEnum
from app.modules.booking.schemas import BookingRead
from app.modules.earnings.schemas import BusinessEarningsRead, TherapistEarningsRead
from app.modules.earnings.service import EarningsService, get_earnings_service
from app.modules.identity.actor import Actor
from app.modules.identity.service import require_roles
from app.shared.pagination import get_pagination_params

router = APIRouter(prefix="/earnings", tags=["earnings"])


@router.get("/business", response_model=BusinessEarningsRead)
async def business_earnings(
    view: EarningsViewEnum = Query(default=EarningsViewEnum.FULL),
    pagination=Depends(get_pagination_params),
    service: EarningsService = Depends(get_earnings_service),
    actor: Actor = Depends(require_roles(RoleEnum.BUSINESS, RoleEnum.ADMIN)),
) -> BusinessEarningsRead:
    """Bookings in the half- or full-payment view."""
    earnings = await service.business_earnings(actor, view, pagination.limit, pagination.offset)
    return BusinessEarningsRead(
        view=earnings.view,
        items=[BookingRead.for_viewer(item, actor.role) for item in earnings.items],
        total=earnings.total,
        limit=pagination.limit,
        offset=pagination.offset,
        total_amount=earnings.total_amount,
    )


@router.get("/therapist", response_model=TherapistEarningsRead)
async def therapist_earnings(
    service: EarningsService = Depends(get_earnings_service),
    actor: Actor = Depends(require_roles(RoleEnum.THERAPIST)),
) -> TherapistEarningsRead:
    earnings = await service.therapist_earnings(actor)
    return TherapistEarningsRead(
        items=[BookingRead.for_viewer(item, actor.role) for item in earnings.items],
        pending_amount=earnings.pending_amount,
        paid_amount=earnings.paid_amount,
    )


@router.post("/payouts/{booking_id}", response_model=BookingRead)
async def release_payout(
    booking_id: UUID,
    service: EarningsService = Depends(get_earnings_service),
    actor: Actor = Depends(require_roles(RoleEnum.BUSINESS, RoleEnum.ADMIN)),
) -> BookingRead:
    """Pay out therapist share of a completed booking."""
    booking = await service.release_payout(booking_id, actor)
    return BookingRead.for_viewer(booking, actor.role)
