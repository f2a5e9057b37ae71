"""Who may act on a booking."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from app.core.enums import RoleEnum
from app.modules.catalog.repository import CatalogRepository
from app.modules.identity.actor import Actor
from app.shared.exceptions import ForbiddenException


class BookingAccess:
    """Ownership checks shared by booking, payment and earnings services."""

    def __init__(self, catalog_repository: CatalogRepository) -> None:
        self.catalog_repository = catalog_repository

    async def owns_business(self, business_id: UUID, actor: Actor) -> bool:
        if actor.role != RoleEnum.BUSINESS:
            return False
        business = await self.catalog_repository.get_business_by_id(business_id)
        return business is not None and business.owner_id == actor.id

    async def ensure_business_access(self, booking: Any, actor: Actor) -> None:
        """Allow admins and the owner of the booking's business."""
        if actor.is_admin:
            return
        if await self.owns_business(booking.business_id, actor):
            return
        raise ForbiddenException("Only the owning business or an admin can manage this booking")

    async def ensure_participant(self, booking: Any, actor: Actor) -> None:
        """Allow the booking's customer and therapist on top of business access."""
        if actor.role == RoleEnum.CUSTOMER and booking.customer_id == actor.id:
            return
        if actor.role == RoleEnum.THERAPIST and booking.therapist_id == actor.id:
            return
        await self.ensure_business_access(booking, actor)
