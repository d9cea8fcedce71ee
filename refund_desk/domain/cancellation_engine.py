"""Cancellation refund decision engine.

Turns a cancelled booking's financial facts into a refund decision:

- no-show: nothing refunded, no fee, no credit
- IHT-initiated: everything paid is refunded, reservation fee included,
  no admin fee
- Guest-initiated: the payment term's window percentage of what was paid
  (reservation fee excluded unless the term refunds it), minus the admin fee;
  supplier costs at or above that refund waive the fee and absorb the refund

The engine does no I/O and keeps no state. Callers fetch the booking, build a
BookingCancellationContext, call evaluate() and write the result back.
"""

import re
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from refund_desk.core.exceptions import ValidationError
from refund_desk.domain.money import HUNDRED, ZERO, percentage_of, to_money
from refund_desk.domain.payment_terms import PaymentTermConfiguration, as_date, days_before_departure


class CancellationInitiator(str, Enum):
    """Who cancelled the booking."""

    GUEST = "Guest"
    IHT = "IHT"


class CancellationScenario(str, Enum):
    """Rule path that produced a decision."""

    NO_SHOW = "no-show"
    FULL_REFUND_IHT = "full-refund-iht"
    WINDOWED_REFUND = "windowed-refund"
    ZERO_REFUND = "zero-refund"
    SUPPLIER_COST_EXCEPTION = "supplier-cost-exception"


FULL_PAYMENT_PLAN = "Full Payment"
INSTALLMENT_PLANS = frozenset({"P1", "P2", "P3", "P4"})

_REASON_PREFIX = re.compile(r"^\s*(guest|iht)\s*-", re.IGNORECASE)
_IHT_WORD = re.compile(r"\biht\b", re.IGNORECASE)
_GUEST_WORD = re.compile(r"\bguest\b", re.IGNORECASE)
_FORCE_MAJEURE = "force majeure"
_DEFAULT_MARKERS = ("default", "missed payment")


@dataclass(frozen=True)
class BookingCancellationContext:
    """Snapshot of a booking at the moment its cancellation is evaluated."""

    total_tour_cost: Decimal
    amount_paid_to_date: Decimal
    cancellation_date: date | None
    tour_start_date: date | None
    cancellation_initiated_by: CancellationInitiator | str | None = None
    is_no_show: bool = False
    supplier_costs_committed: Decimal = Decimal("0")
    reservation_fee: Decimal = Decimal("0")
    discount_applied: Decimal | None = None
    booking_created_at: date | None = None
    payment_plan: str | None = None
    reason_for_cancellation: str | None = None
    payment_term_id: str | None = None
    booking_id: str | None = None


@dataclass(frozen=True)
class DecisionResult:
    """Outcome of one evaluation."""

    eligible_refund: Decimal
    refundable_amount: Decimal
    non_refundable_amount: Decimal
    admin_fee: Decimal
    travel_credit_issued: Decimal
    cancellation_scenario: CancellationScenario
    amount_paid_to_date: Decimal
    supplier_costs_deducted: Decimal
    days_before_departure: int
    refund_percentage: Decimal
    timing: str | None
    initiated_by: CancellationInitiator | None
    description: str
    refund_policy: str


def initiator_from_reason(reason: str | None) -> CancellationInitiator | None:
    """Infer the initiator from a "Guest - ..." / "IHT - ..." cancellation reason."""
    if not reason:
        return None
    match = _REASON_PREFIX.match(reason)
    if match:
        return CancellationInitiator.IHT if match.group(1).lower() == "iht" else CancellationInitiator.GUEST
    if _IHT_WORD.search(reason):
        return CancellationInitiator.IHT
    if _GUEST_WORD.search(reason):
        return CancellationInitiator.GUEST
    return None


def _coerce_initiator(value: CancellationInitiator | str | None) -> CancellationInitiator | None:
    if value is None or isinstance(value, CancellationInitiator):
        return value
    cleaned = str(value).strip()
    if not cleaned:
        return None
    for initiator in CancellationInitiator:
        if cleaned.lower() == initiator.value.lower():
            return initiator
    raise ValidationError(
        f"Unknown cancellation initiator '{cleaned}'",
        errors=[{"field": "cancellationInitiatedBy", "message": "must be 'Guest' or 'IHT'"}],
    )


def validate_context(context: BookingCancellationContext) -> BookingCancellationContext:
    """Return a normalized copy of ``context``.

    Raises:
        ValidationError: On negative or missing money, missing dates, an
            unknown initiator, or a cancellation dated before the booking
    """
    errors: list[dict[str, str]] = []
    for field, value in (
        ("cancellationDate", context.cancellation_date),
        ("tourStartDate", context.tour_start_date),
    ):
        if not isinstance(value, date):
            errors.append({"field": field, "message": "a date is required"})
    if not isinstance(context.is_no_show, bool):
        errors.append({"field": "isNoShow", "message": "must be true or false"})
    if errors:
        raise ValidationError("Cancellation context is incomplete", errors=errors)

    created = context.booking_created_at
    if created is not None and as_date(context.cancellation_date) < as_date(created):
        raise ValidationError(
            "Cancellation date is before the booking was created",
            errors=[{"field": "cancellationDate", "message": f"before booking date {as_date(created)}"}],
        )

    initiator = _coerce_initiator(context.cancellation_initiated_by)
    if initiator is None and not context.is_no_show:
        raise ValidationError(
            "Booking has not been cancelled",
            errors=[{"field": "cancellationInitiatedBy", "message": "required unless the guest is a no-show"}],
        )

    discount = context.discount_applied
    return replace(
        context,
        total_tour_cost=to_money(context.total_tour_cost, "totalTourCost"),
        amount_paid_to_date=to_money(context.amount_paid_to_date, "amountPaidToDate"),
        supplier_costs_committed=to_money(context.supplier_costs_committed, "supplierCostsCommitted"),
        reservation_fee=to_money(context.reservation_fee, "reservationFee"),
        discount_applied=None if discount is None else to_money(discount, "discountApplied"),
        cancellation_initiated_by=initiator,
    )


def evaluate(context: BookingCancellationContext, terms: PaymentTermConfiguration) -> DecisionResult:
    """Decide the refund outcome of a cancelled booking.

    Args:
        context: Booking facts at cancellation time
        terms: Payment term supplying refund windows and fee/credit policy

    Returns:
        DecisionResult: Amounts and the scenario tag

    Raises:
        ValidationError: If the context or the payment term is malformed
    """
    ctx = validate_context(context)
    terms.validate()

    paid = ctx.amount_paid_to_date
    days = days_before_departure(ctx.cancellation_date, ctx.tour_start_date)

    # No-show dominates every other rule
    if ctx.is_no_show:
        return _decide(
            ctx,
            terms,
            scenario=CancellationScenario.NO_SHOW,
            days=days,
            refund_percentage=Decimal("0"),
            timing=None,
            eligible=ZERO,
            admin_fee=ZERO,
            supplier_deducted=ZERO,
            credit_allowed=False,
        )

    if ctx.cancellation_initiated_by is CancellationInitiator.IHT:
        return _decide(
            ctx,
            terms,
            scenario=CancellationScenario.FULL_REFUND_IHT,
            days=days,
            refund_percentage=HUNDRED,
            timing=None,
            eligible=paid,
            admin_fee=ZERO,
            supplier_deducted=ZERO,
        )

    window = terms.select_window(days)
    refund_percentage = window.refund_percentage if window else Decimal("0")
    timing = window.label if window else "after-departure"

    retained = ZERO if terms.reservation_fee_refundable else min(ctx.reservation_fee, paid)
    base = percentage_of(paid - retained, refund_percentage)
    supplier = ctx.supplier_costs_committed

    if supplier > 0 and supplier >= base:
        eligible = max(ZERO, base - supplier)
        return _decide(
            ctx,
            terms,
            scenario=CancellationScenario.SUPPLIER_COST_EXCEPTION,
            days=days,
            refund_percentage=refund_percentage,
            timing=timing,
            eligible=eligible,
            admin_fee=ZERO,
            supplier_deducted=base - eligible,
        )

    if base == 0:
        return _decide(
            ctx,
            terms,
            scenario=CancellationScenario.ZERO_REFUND,
            days=days,
            refund_percentage=refund_percentage,
            timing=timing,
            eligible=ZERO,
            admin_fee=ZERO,
            supplier_deducted=ZERO,
        )

    admin_fee = terms.admin_fee.fee_for(base)
    # Partial supplier costs come out of what is left after the fee
    supplier_deducted = min(supplier, base - admin_fee)
    return _decide(
        ctx,
        terms,
        scenario=CancellationScenario.WINDOWED_REFUND,
        days=days,
        refund_percentage=refund_percentage,
        timing=timing,
        eligible=base,
        admin_fee=admin_fee,
        supplier_deducted=supplier_deducted,
    )


def _decide(
    ctx: BookingCancellationContext,
    terms: PaymentTermConfiguration,
    *,
    scenario: CancellationScenario,
    days: int,
    refund_percentage: Decimal,
    timing: str | None,
    eligible: Decimal,
    admin_fee: Decimal,
    supplier_deducted: Decimal,
    credit_allowed: bool = True,
) -> DecisionResult:
    paid = ctx.amount_paid_to_date
    refundable = min(max(ZERO, eligible - admin_fee - supplier_deducted), paid)
    non_refundable = paid - refundable
    credit = non_refundable if credit_allowed and terms.travel_credit_for_non_refundable else ZERO

    return DecisionResult(
        eligible_refund=eligible,
        refundable_amount=refundable,
        non_refundable_amount=non_refundable,
        admin_fee=admin_fee,
        travel_credit_issued=credit,
        cancellation_scenario=scenario,
        amount_paid_to_date=paid,
        supplier_costs_deducted=supplier_deducted,
        days_before_departure=days,
        refund_percentage=refund_percentage,
        timing=timing,
        initiated_by=ctx.cancellation_initiated_by,
        description=_describe(ctx, scenario, days, timing),
        refund_policy=_refund_policy(ctx, scenario, days, refund_percentage, terms),
    )


def _cancellation_kind(ctx: BookingCancellationContext) -> str | None:
    """Special guest cases the booking sheet labels on their own."""
    reason = (ctx.reason_for_cancellation or "").lower()
    if _FORCE_MAJEURE in reason:
        return "force-majeure"
    if ctx.payment_plan in INSTALLMENT_PLANS and any(marker in reason for marker in _DEFAULT_MARKERS):
        return "installment-default"
    if ctx.payment_plan != FULL_PAYMENT_PLAN and ctx.payment_plan not in INSTALLMENT_PLANS:
        if ctx.amount_paid_to_date == 0:
            return "no-payment"
    return None


def _describe(ctx: BookingCancellationContext, scenario: CancellationScenario, days: int, timing: str | None) -> str:
    """Booking-sheet label, e.g. "Guest Cancel Early (Full Payment) (125 days before tour)"."""
    if scenario is CancellationScenario.NO_SHOW:
        return "Guest No-Show"

    kind = _cancellation_kind(ctx)
    if scenario is CancellationScenario.FULL_REFUND_IHT:
        label = "Tour Cancelled by IHT (Before Start)" if days > 0 else "Tour Cancelled by IHT (After Start)"
    elif scenario is CancellationScenario.SUPPLIER_COST_EXCEPTION:
        label = "Supplier Costs Committed"
    elif kind == "force-majeure":
        label = "Force Majeure"
    elif timing == "after-departure":
        label = "Guest Cancellation (After Departure)"
    elif kind == "installment-default" and timing:
        label = f"Installment Default ({timing.title()})"
    elif kind == "no-payment":
        label = "Cancellation (No Payment Made)"
    elif timing:
        label = f"Guest Cancel {timing.title()}"
        if ctx.payment_plan == FULL_PAYMENT_PLAN:
            label += " (Full Payment)"
        elif ctx.payment_plan in INSTALLMENT_PLANS:
            label += " (Installment)"
    else:
        label = "Guest Cancellation"

    if days > 0:
        label += f" ({days} days before tour)"
    return label


def _refund_policy(
    ctx: BookingCancellationContext,
    scenario: CancellationScenario,
    days: int,
    refund_percentage: Decimal,
    terms: PaymentTermConfiguration,
) -> str:
    if scenario is CancellationScenario.NO_SHOW:
        return "No refund - Guest did not attend tour"
    if scenario is CancellationScenario.FULL_REFUND_IHT:
        if days > 0:
            return "100% refund including reservation fee"
        return "Partial refund for unused portion OR travel credit"
    if scenario is CancellationScenario.SUPPLIER_COST_EXCEPTION:
        return "Refund minus supplier costs, admin fee waived"

    kind = _cancellation_kind(ctx)
    if kind == "force-majeure":
        return "Case-by-case (refund OR travel credit)"
    if kind == "no-payment":
        return "No refund - No payments made"

    credit = " (retained as travel credit)" if terms.travel_credit_for_non_refundable else ""
    if scenario is CancellationScenario.ZERO_REFUND:
        return f"No refund - All amounts forfeited{credit}"

    pct = f"{refund_percentage.normalize():f}%"
    if ctx.reservation_fee > 0 and not terms.reservation_fee_refundable:
        return f"{pct} of non-reservation amount minus admin fee{credit}"
    return f"{pct} refund minus admin fee{credit}"
