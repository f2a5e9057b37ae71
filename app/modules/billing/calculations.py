"""Money arithmetic for deposits, gateway amounts and therapist payouts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

WHOLE_UNIT = Decimal("1")
HUNDRED = Decimal("100")


def _as_decimal(value: Decimal | int | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_whole(value: Decimal) -> Decimal:
    """Round half-up to a whole currency unit."""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def split_advance(total: Decimal | int | str, percent: Decimal | int = 50) -> tuple[Decimal, Decimal]:
    """Split a total into (advance, remaining); advance is rounded to a whole unit."""
    total_amount = _as_decimal(total)
    if total_amount < 0:
        raise ValueError("total must not be negative")
    advance = round_whole(total_amount * _as_decimal(percent) / HUNDRED)
    return advance, total_amount - advance


def to_gateway_minor_units(amount: Decimal | int | str) -> int:
    """Convert a base-unit amount into the gateway's minor unit (x100)."""
    return int((_as_decimal(amount) * HUNDRED).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP))


def compute_payout(price: Decimal | int | str, percent: Decimal | int = 40) -> Decimal:
    """Therapist share of a service price, rounded to a whole unit."""
    return round_whole(_as_decimal(price) * _as_decimal(percent) / HUNDRED)
