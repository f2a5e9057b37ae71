"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"
    # When set, the request session commits pending writes before the error propagates.
    commit_on_error = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class UnauthorizedException(AppException):
    """Raised when caller identity cannot be established."""

    status_code = 401
    code = "unauthorized"


class ForbiddenException(AppException):
    """Raised when actor has no rights for operation."""

    status_code = 403
    code = "forbidden"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class InvalidStateTransitionException(ConflictException):
    """Raised when a booking status edge is not allowed."""

    code = "invalid_state_transition"

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        self.current = current
        self.target = target
        super().__init__(message or f"Cannot move booking from '{current}' to '{target}'")


class ConflictingTransitionException(ConflictException):
    """Raised when a concurrent writer changed the booking first."""

    code = "conflicting_transition"


class SlotUnavailableException(ConflictException):
    """Raised when no available therapist slot covers the requested time."""

    code = "slot_unavailable"


class AlreadyCompletedException(ConflictException):
    """Raised when completing an already completed booking."""

    code = "already_completed"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class RescheduleRestrictedException(BusinessRuleException):
    """Raised when a reschedule falls inside the restriction window."""

    code = "reschedule_restricted"


class PaymentVerificationFailedException(AppException):
    """Raised when a gateway signature does not match."""

    status_code = 400
    code = "payment_verification_failed"
    commit_on_error = True


class PaymentGatewayException(AppException):
    """Raised when the payment gateway rejects or fails a request."""

    status_code = 502
    code = "payment_gateway_error"


class ConfigErrorException(AppException):
    """Raised when a required integration is not configured."""

    status_code = 503
    code = "config_error"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
