"""Scheduling API router."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RoleEnum
from app.modules.identity.actor import Actor
from app.modules.identity.service import get_current_actor, require_roles
from app.modules.scheduling.schemas import AvailabilityCreate, AvailabilityRead, SlotRead
from app.modules.scheduling.service import SchedulingService, get_scheduling_service

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.post("/availability", response_model=AvailabilityRead, status_code=status.HTTP_201_CREATED)
async def create_availability(
    payload: AvailabilityCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    actor: Actor = Depends(require_roles(RoleEnum.THERAPIST, RoleEnum.ADMIN)),
) -> AvailabilityRead:
    """Create therapist availability window."""
    window = await service.create_availability(payload, actor)
    return AvailabilityRead.model_validate(window)


@router.get("/availability/{therapist_id}", response_model=list[AvailabilityRead])
async def list_availability(
    therapist_id: UUID,
    day: dt.date = Query(alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
    _: Actor = Depends(get_current_actor),
) -> list[AvailabilityRead]:
    windows = await service.list_availability(therapist_id, day)
    return [AvailabilityRead.model_validate(item) for item in windows]


@router.get("/slots", response_model=list[SlotRead])
async def list_slots(
    service_id: UUID = Query(),
    therapist_id: UUID = Query(),
    day: dt.date = Query(alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
    _: Actor = Depends(get_current_actor),
) -> list[SlotRead]:
    """List slots for a service and therapist on one day."""
    slots = await service.list_slots(service_id, therapist_id, day)
    return [SlotRead.model_validate(item) for item in slots]
