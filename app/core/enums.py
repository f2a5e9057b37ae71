"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    CUSTOMER = "customer"
    THERAPIST = "therapist"
    BUSINESS = "business"
    ADMIN = "admin"

    @classmethod
    def normalize(cls, value: str) -> "RoleEnum":
        """Map a raw role claim ('Therapist', ' business ') onto the enum."""
        return cls(value.strip().lower())


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    THERAPIST_CONFIRMED = "therapist_confirmed"
    THERAPIST_REJECTED = "therapist_rejected"
    CONFIRMED = "confirmed"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    RESCHEDULED = "rescheduled"


class BookingPaymentStatusEnum(StrEnum):
    """Payment progress tracked on the booking itself."""

    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class PaymentStatusEnum(StrEnum):
    """Payment record status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentTypeEnum(StrEnum):
    """Whether a payment covers the whole price or a deposit."""

    FULL = "FULL"
    ADVANCE = "ADVANCE"


class PaymentMethodEnum(StrEnum):
    """Payment collection method."""

    CASH = "cash"
    CARD = "card"
    GATEWAY = "gateway"


class PayoutStatusEnum(StrEnum):
    """Therapist payout status."""

    PENDING = "pending"
    PAID = "paid"


class SlotStatusEnum(StrEnum):
    """Therapist availability window status."""

    AVAILABLE = "available"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"
    ON_LEAVE = "on-leave"


class NotificationStatusEnum(StrEnum):
    """Notification delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class EarningsViewEnum(StrEnum):
    """Read-side earnings projections."""

    HALF = "half"
    FULL = "full"


def enum_values(enum_cls: type[StrEnum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]
