"""Authenticated caller passed explicitly into every domain operation."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from app.core.enums import RoleEnum


@dataclass(frozen=True, slots=True)
class Actor:
    """Verified caller identity."""

    id: UUID
    role: RoleEnum

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN
