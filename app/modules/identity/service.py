"""Identity boundary: bearer token to explicit Actor."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.core.security import bearer_scheme, decode_token
from app.modules.identity.actor import Actor
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.shared.exceptions import ForbiddenException, NotFoundException, UnauthorizedException


class IdentityService:
    """Identity domain service."""

    def __init__(self, repository: IdentityRepository) -> None:
        self.repository = repository

    async def resolve_actor(self, token: str) -> Actor:
        """Verify token and return the caller with its stored role."""
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise UnauthorizedException("Invalid access token")

        subject = payload.get("sub")
        if not subject:
            raise UnauthorizedException("Token subject is missing")
        try:
            user_id = UUID(subject)
        except ValueError as exc:
            raise UnauthorizedException("Token subject is malformed") from exc

        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise UnauthorizedException("User not found")
        if not user.is_active:
            raise UnauthorizedException("User is inactive")

        claimed_role = payload.get("role")
        if claimed_role is not None:
            try:
                normalized = RoleEnum.normalize(str(claimed_role))
            except ValueError as exc:
                raise UnauthorizedException("Unknown role claim") from exc
            if normalized != user.role:
                raise UnauthorizedException("Role claim does not match account")

        return Actor(id=user.id, role=user.role)

    async def get_user(self, user_id: UUID) -> User:
        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        return user


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session))


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> Actor:
    """Resolve currently authenticated actor from bearer token."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Bearer token is required")
    return await service.resolve_actor(credentials.credentials)


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise ForbiddenException("Operation not permitted for your role")
        return actor

    return _checker
