"""Admin read side for audit trail and outbox."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.audit.models import AuditLog, OutboxEvent
from app.modules.audit.repository import AuditRepository
from app.modules.identity.actor import Actor
from app.shared.exceptions import ForbiddenException


class AuditService:
    """Exposes audit entries and outbox events to administrators."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    @staticmethod
    def _ensure_admin(actor: Actor) -> None:
        if not actor.is_admin:
            raise ForbiddenException("Only admin can inspect audit data")

    async def list_logs(
        self,
        actor: Actor,
        limit: int,
        offset: int,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> tuple[list[AuditLog], int]:
        """List audit logs, optionally narrowed to one entity."""
        self._ensure_admin(actor)
        return await self.repository.list_audit_logs(
            limit=limit,
            offset=offset,
            entity_type=entity_type,
            entity_id=entity_id,
        )

    async def booking_history(self, booking_id: str, actor: Actor) -> list[OutboxEvent]:
        """Events emitted for one booking, oldest first."""
        self._ensure_admin(actor)
        return await self.repository.list_events_for_aggregate("booking", booking_id)

    async def list_pending_outbox(self, actor: Actor, limit: int) -> list[OutboxEvent]:
        self._ensure_admin(actor)
        return await self.repository.list_pending_outbox(limit)


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
