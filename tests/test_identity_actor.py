from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from jose import jwt

from app.core.config import get_settings
from app.core.enums import RoleEnum
from app.modules.identity.actor import Actor
from app.modules.identity.service import IdentityService, require_roles
from app.shared.exceptions import ForbiddenException, UnauthorizedException


@dataclass
class FakeUser:
    id: UUID
    role: RoleEnum
    is_active: bool = True


class FakeIdentityRepository:
    def __init__(self, users: list[FakeUser]) -> None:
        self.users = {user.id: user for user in users}

    async def get_user_by_id(self, user_id: UUID) -> FakeUser | None:
        return self.users.get(user_id)


def create_access_token(subject: str, role: str, expires_delta: timedelta | None = None) -> str:
    """Sign a token the way the identity provider does."""
    settings = get_settings()
    expires = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": subject, "role": role, "type": "access", "exp": datetime.now(UTC) + expires}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def make_service(*users: FakeUser) -> IdentityService:
    return IdentityService(FakeIdentityRepository(list(users)))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_resolve_actor_normalizes_role_claim() -> None:
    user = FakeUser(id=uuid4(), role=RoleEnum.THERAPIST)
    token = create_access_token(str(user.id), " Therapist ")

    actor = await make_service(user).resolve_actor(token)

    assert actor == Actor(id=user.id, role=RoleEnum.THERAPIST)


@pytest.mark.asyncio
async def test_role_claim_must_match_stored_role() -> None:
    user = FakeUser(id=uuid4(), role=RoleEnum.CUSTOMER)
    token = create_access_token(str(user.id), "admin")

    with pytest.raises(UnauthorizedException):
        await make_service(user).resolve_actor(token)


@pytest.mark.asyncio
async def test_inactive_user_is_rejected() -> None:
    user = FakeUser(id=uuid4(), role=RoleEnum.CUSTOMER, is_active=False)
    token = create_access_token(str(user.id), "customer")

    with pytest.raises(UnauthorizedException):
        await make_service(user).resolve_actor(token)


@pytest.mark.asyncio
async def test_expired_token_is_rejected() -> None:
    user = FakeUser(id=uuid4(), role=RoleEnum.CUSTOMER)
    token = create_access_token(str(user.id), "customer", expires_delta=timedelta(seconds=-1))

    with pytest.raises(UnauthorizedException):
        await make_service(user).resolve_actor(token)


@pytest.mark.asyncio
async def test_require_roles_blocks_other_roles() -> None:
    checker = require_roles(RoleEnum.ADMIN)
    admin = Actor(id=uuid4(), role=RoleEnum.ADMIN)

    assert await checker(actor=admin) == admin
    with pytest.raises(ForbiddenException):
        await checker(actor=Actor(id=uuid4(), role=RoleEnum.BUSINESS))
