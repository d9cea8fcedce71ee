"""Payment term domain logic.

A payment term is an ordered table of refund windows, furthest-out first,
plus the fee and credit policy applied to a cancellation:

- standard: 100% refund 100+ days before departure (early),
  50% refund 60-99 days before (mid-range), no refund under 60 days (late)

Windows are evaluated in order - first match wins.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from refund_desk.core.exceptions import ValidationError
from refund_desk.domain.money import ZERO, percentage_of, quantize, to_money


@dataclass(frozen=True)
class RefundWindow:
    """Refund percentage granted from ``days_before_departure`` days out."""

    days_before_departure: int
    refund_percentage: Decimal
    label: str | None = None

    def __post_init__(self) -> None:
        days = self.days_before_departure
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            raise ValidationError(
                "Refund window threshold must be a non-negative whole number of days",
                errors=[{"field": "daysBeforeDeparture", "message": f"invalid threshold {days!r}"}],
            )
        try:
            pct = Decimal(str(self.refund_percentage))
        except InvalidOperation:
            pct = None
        if pct is None or not pct.is_finite() or not Decimal("0") <= pct <= Decimal("100"):
            raise ValidationError(
                "Refund percentage must be between 0 and 100",
                errors=[
                    {"field": "refundPercentage", "message": f"invalid percentage {self.refund_percentage!r}"}
                ],
            )
        object.__setattr__(self, "refund_percentage", pct)


@dataclass(frozen=True)
class AdminFeePolicy:
    """Processing fee charged on a guest refund: a percentage plus a flat part."""

    percentage: Decimal = Decimal("10")
    flat: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        pct = to_money(self.percentage, "adminFeePercentage")
        if pct > Decimal("100"):
            raise ValidationError(
                "Admin fee percentage cannot exceed 100",
                errors=[{"field": "adminFeePercentage", "message": f"invalid percentage {pct}"}],
            )
        object.__setattr__(self, "percentage", pct)
        object.__setattr__(self, "flat", to_money(self.flat, "adminFeeFlat"))

    def fee_for(self, amount: Decimal) -> Decimal:
        """Admin fee on ``amount``, never more than the amount itself."""
        if amount <= 0:
            return ZERO
        fee = percentage_of(amount, self.percentage) + self.flat
        return min(quantize(fee), amount)


@dataclass(frozen=True)
class PaymentTermConfiguration:
    """Read-only refund rules for one payment term."""

    term_id: str
    name: str
    windows: tuple[RefundWindow, ...]
    admin_fee: AdminFeePolicy = field(default_factory=AdminFeePolicy)
    travel_credit_for_non_refundable: bool = False
    reservation_fee_refundable: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "windows", tuple(self.windows))
        self.validate()

    def validate(self) -> None:
        """Check the window table is non-empty and strictly furthest-out first.

        Raises:
            ValidationError: If the table is empty, unordered or overlapping
        """
        if not self.term_id:
            raise ValidationError(
                "Payment term needs an id",
                errors=[{"field": "termId", "message": "missing"}],
            )
        if not self.windows:
            raise ValidationError(
                f"Payment term '{self.term_id}' has no refund windows",
                errors=[{"field": "windows", "message": "at least one window is required"}],
            )
        for previous, current in zip(self.windows, self.windows[1:]):
            if current.days_before_departure >= previous.days_before_departure:
                raise ValidationError(
                    f"Payment term '{self.term_id}' windows must be ordered furthest-out first",
                    errors=[
                        {
                            "field": "windows",
                            "message": (
                                f"{current.days_before_departure} days follows "
                                f"{previous.days_before_departure} days"
                            ),
                        }
                    ],
                )

    def select_window(self, days_before: int) -> RefundWindow | None:
        """Return the first window whose threshold is at or below ``days_before``.

        Returns None when no window covers the cancellation, i.e. it was made
        after departure.
        """
        for window in self.windows:
            if days_before >= window.days_before_departure:
                return window
        return None

    def describe(self) -> str:
        """Human-readable summary of the refund windows."""
        parts: list[str] = []
        upper: int | None = None
        for window in self.windows:
            days = window.days_before_departure
            if upper is None:
                span = f"{days}+ days"
            elif upper - 1 == days:
                span = f"{days} days"
            else:
                span = f"{days}-{upper - 1} days"
            pct = window.refund_percentage.normalize()
            refund = "No refund" if pct == 0 else f"{pct:f}% refund"
            parts.append(f"{refund} {span} before departure.")
            upper = days
        if upper:
            parts.append(f"No refund less than {upper} days before departure.")
        return " ".join(parts)


STANDARD_WINDOWS: tuple[RefundWindow, ...] = (
    RefundWindow(100, Decimal("100"), "early"),
    RefundWindow(60, Decimal("50"), "mid-range"),
    RefundWindow(0, Decimal("0"), "late"),
)


def build_standard_term(
    term_id: str = "standard",
    admin_fee_percentage: Decimal = Decimal("10"),
    admin_fee_flat: Decimal = Decimal("0"),
    travel_credit_for_non_refundable: bool = False,
    reservation_fee_refundable: bool = False,
) -> PaymentTermConfiguration:
    """Build the booking sheet's standard early / mid-range / late term."""
    return PaymentTermConfiguration(
        term_id=term_id,
        name="Standard Booking",
        windows=STANDARD_WINDOWS,
        admin_fee=AdminFeePolicy(percentage=admin_fee_percentage, flat=admin_fee_flat),
        travel_credit_for_non_refundable=travel_credit_for_non_refundable,
        reservation_fee_refundable=reservation_fee_refundable,
    )


def days_before_departure(cancellation_date: date, tour_start_date: date) -> int:
    """Whole days between cancellation and departure, floored.

    Negative when the cancellation is made after departure. Two datetimes are
    compared exactly; otherwise both sides are reduced to calendar dates.
    """
    if isinstance(cancellation_date, datetime) and isinstance(tour_start_date, datetime):
        if (cancellation_date.tzinfo is None) != (tour_start_date.tzinfo is None):
            cancellation_date = cancellation_date.replace(tzinfo=None)
            tour_start_date = tour_start_date.replace(tzinfo=None)
        return (tour_start_date - cancellation_date).days
    return (as_date(tour_start_date) - as_date(cancellation_date)).days


def as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value
