"""Catalog repository layer (read-only)."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.modules.catalog.models import Business, Service


class CatalogRepository:
    """DB reads for businesses and services."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_business_by_id(self, business_id: UUID) -> Business | None:
        return await self.session.get(Business, business_id)

    async def get_service_by_id(self, service_id: UUID) -> Service | None:
        stmt = select(Service).options(selectinload(Service.business)).where(Service.id == service_id)
        return await self.session.scalar(stmt)

    async def list_business_ids_for_owner(self, owner_id: UUID) -> list[UUID]:
        stmt = select(Business.id).where(Business.owner_id == owner_id)
        return list((await self.session.scalars(stmt)).all())
