"""Money helpers.

All amounts are ``Decimal`` in major currency units and are rounded once, at
the end of each formula, to the minor unit using round-half-up.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from refund_desk.core.exceptions import ValidationError

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def quantize(amount: Decimal) -> Decimal:
    """Round to the minor currency unit, half-up."""
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Return ``percentage`` percent of ``amount`` with a single rounding step."""
    return quantize(amount * percentage / HUNDRED)


def to_money(value: object, field: str) -> Decimal:
    """Coerce ``value`` to a quantized Decimal amount.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.

    Raises:
        ValidationError: If the value is missing, not numeric, negative or
            too large to hold at the minor unit
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(
            f"{field} is required",
            errors=[{"field": field, "message": "missing or not a number"}],
        )
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(
            f"{field} must be a number",
            errors=[{"field": field, "message": f"invalid amount {value!r}"}],
        ) from None
    if not amount.is_finite():
        raise ValidationError(
            f"{field} must be a finite number",
            errors=[{"field": field, "message": f"invalid amount {value!r}"}],
        )
    if amount < 0:
        raise ValidationError(
            f"{field} cannot be negative",
            errors=[{"field": field, "message": f"negative amount {amount}"}],
        )
    try:
        return quantize(amount)
    except InvalidOperation:
        raise ValidationError(
            f"{field} is too large",
            errors=[{"field": field, "message": f"amount {value!r} exceeds the supported precision"}],
        ) from None
