"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.modules.identity.actor import Actor
from app.modules.identity.schemas import UserRead
from app.modules.identity.service import IdentityService, get_current_actor, get_identity_service

router = APIRouter(prefix="/identity", tags=["identity"])


@router.get("/users/me", response_model=UserRead)
async def get_me(
    actor: Actor = Depends(get_current_actor),
    service: IdentityService = Depends(get_identity_service),
) -> UserRead:
    """Return profile of authenticated user."""
    user = await service.get_user(actor.id)
    return UserRead.model_validate(user)
