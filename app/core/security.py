"""JWT helpers for the identity boundary."""

from __future__ import annotations

from typing import Any

from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from app.core.config import get_settings
from app.shared.exceptions import UnauthorizedException

settings = get_settings()

# Tokens are issued by the identity provider; this service only verifies them.
bearer_scheme = HTTPBearer(auto_error=False)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate JWT token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthorizedException("Invalid or expired token") from exc
