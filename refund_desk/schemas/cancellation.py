"""Cancellation-related Pydantic schemas.

Booking documents use the booking sheet's camelCase field names, so every
model here reads and writes camelCase aliases.
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from refund_desk.domain.cancellation_engine import (
    BookingCancellationContext,
    CancellationInitiator,
    DecisionResult,
    initiator_from_reason,
)
from refund_desk.schemas.payment_term import PaymentTermSchema


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CancellationContextSchema(CamelModel):
    """Schema for an explicit cancellation context."""

    total_tour_cost: Decimal
    amount_paid_to_date: Decimal
    cancellation_date: date
    tour_start_date: date
    cancellation_initiated_by: str | None = None
    is_no_show: bool = False
    supplier_costs_committed: Decimal = Decimal("0")
    reservation_fee: Decimal = Decimal("0")
    discount_applied: Decimal | None = None
    booking_created_at: date | None = None
    payment_plan: str | None = None
    reason_for_cancellation: str | None = None
    booking_id: str | None = None

    def to_domain(self, payment_term_id: str | None = None) -> BookingCancellationContext:
        return BookingCancellationContext(
            total_tour_cost=self.total_tour_cost,
            amount_paid_to_date=self.amount_paid_to_date,
            cancellation_date=self.cancellation_date,
            tour_start_date=self.tour_start_date,
            cancellation_initiated_by=self.cancellation_initiated_by,
            is_no_show=self.is_no_show,
            supplier_costs_committed=self.supplier_costs_committed,
            reservation_fee=self.reservation_fee,
            discount_applied=self.discount_applied,
            booking_created_at=self.booking_created_at,
            payment_plan=self.payment_plan,
            reason_for_cancellation=self.reason_for_cancellation,
            payment_term_id=payment_term_id,
            booking_id=self.booking_id,
        )


class CancellationEvaluateRequest(CamelModel):
    """Schema for evaluating an explicit context.

    ``payment_term`` (inline) takes precedence over ``payment_term_id``; with
    neither, the default term is used.
    """

    context: CancellationContextSchema
    payment_term_id: str | None = None
    payment_term: PaymentTermSchema | None = None


class DecisionResponse(CamelModel):
    """Schema for a refund decision."""

    eligible_refund: Decimal
    refundable_amount: Decimal
    non_refundable_amount: Decimal
    admin_fee: Decimal
    travel_credit_issued: Decimal
    cancellation_scenario: str
    amount_paid_to_date: Decimal
    supplier_costs_deducted: Decimal
    days_before_departure: int
    refund_percentage: Decimal
    timing: str | None
    initiated_by: str | None
    description: str
    refund_policy: str
    payment_term_id: str
    currency: str

    @classmethod
    def from_result(cls, result: DecisionResult, payment_term_id: str, currency: str) -> "DecisionResponse":
        return cls(
            eligible_refund=result.eligible_refund,
            refundable_amount=result.refundable_amount,
            non_refundable_amount=result.non_refundable_amount,
            admin_fee=result.admin_fee,
            travel_credit_issued=result.travel_credit_issued,
            cancellation_scenario=result.cancellation_scenario.value,
            amount_paid_to_date=result.amount_paid_to_date,
            supplier_costs_deducted=result.supplier_costs_deducted,
            days_before_departure=result.days_before_departure,
            refund_percentage=result.refund_percentage,
            timing=result.timing,
            initiated_by=result.initiated_by.value if result.initiated_by else None,
            description=result.description,
            refund_policy=result.refund_policy,
            payment_term_id=payment_term_id,
            currency=currency,
        )


class BookingDocument(CamelModel):
    """A booking as stored in the document database.

    Only the fields the refund decision reads are declared; everything else on
    the document is ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str | None = None
    booking_id: str | None = None
    tour_date: datetime | None = None
    cancellation_request_date: datetime | None = None
    reservation_date: datetime | None = None
    reason_for_cancellation: str | None = None
    cancellation_initiated_by: str | None = None
    original_tour_cost: Decimal = Decimal("0")
    discounted_tour_cost: Decimal | None = None
    use_discounted_tour_cost: bool = False
    paid: Decimal = Decimal("0")
    reservation_fee: Decimal = Decimal("0")
    payment_plan: str | None = None
    payment_term_id: str | None = None
    supplier_costs_committed: Decimal = Decimal("0")
    is_no_show: bool = False
    refundable_amount: Decimal | None = None

    @field_validator("tour_date", "cancellation_request_date", "reservation_date", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> Any:
        """Accept ISO strings and exported timestamps ({"seconds": ...})."""
        if v in (None, ""):
            return None
        if isinstance(v, dict):
            seconds = v.get("seconds", v.get("_seconds"))
            if seconds is None:
                raise ValueError("timestamp object needs 'seconds'")
            try:
                return datetime.fromtimestamp(seconds, tz=UTC)
            except (TypeError, ValueError, OverflowError, OSError):
                raise ValueError(f"invalid timestamp seconds {seconds!r}") from None
        if isinstance(v, str):
            return datetime.fromisoformat(v.strip())
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime(v.year, v.month, v.day)
        return v

    @field_validator(
        "original_tour_cost", "paid", "reservation_fee", "supplier_costs_committed", mode="before"
    )
    @classmethod
    def blank_amount_is_zero(cls, v: Any) -> Any:
        return Decimal("0") if v in (None, "") else v

    @field_validator("discounted_tour_cost", "refundable_amount", mode="before")
    @classmethod
    def blank_optional_amount(cls, v: Any) -> Any:
        return None if v == "" else v

    @property
    def document_id(self) -> str | None:
        return self.booking_id or self.id

    def total_tour_cost(self) -> Decimal:
        if self.use_discounted_tour_cost and self.discounted_tour_cost is not None:
            return self.discounted_tour_cost
        return self.original_tour_cost

    def discount_applied(self) -> Decimal | None:
        if self.use_discounted_tour_cost and self.discounted_tour_cost is not None:
            return max(Decimal("0"), self.original_tour_cost - self.discounted_tour_cost)
        return None

    def to_context(self, payment_term_id: str | None = None) -> BookingCancellationContext:
        """Build the engine context for this booking.

        The initiator falls back to the "Guest - ..." / "IHT - ..." prefix of
        the cancellation reason, then to Guest when a reason exists. Dates are
        compared as calendar days.
        """
        initiator = self.cancellation_initiated_by or initiator_from_reason(self.reason_for_cancellation)
        if initiator is None and self.reason_for_cancellation:
            # Unprefixed legacy reasons are guest cancellations
            initiator = CancellationInitiator.GUEST
        return BookingCancellationContext(
            total_tour_cost=self.total_tour_cost(),
            amount_paid_to_date=self.paid,
            cancellation_date=_calendar_day(self.cancellation_request_date),
            tour_start_date=_calendar_day(self.tour_date),
            cancellation_initiated_by=initiator,
            is_no_show=self.is_no_show,
            supplier_costs_committed=self.supplier_costs_committed,
            reservation_fee=self.reservation_fee,
            discount_applied=self.discount_applied(),
            booking_created_at=_calendar_day(self.reservation_date),
            payment_plan=self.payment_plan,
            reason_for_cancellation=self.reason_for_cancellation,
            payment_term_id=payment_term_id or self.payment_term_id,
            booking_id=self.document_id,
        )


class BookingCancellationUpdate(CamelModel):
    """Fields written back onto the booking document."""

    eligible_refund: Decimal
    refundable_amount: Decimal
    non_refundable_amount: Decimal
    admin_fee: Decimal
    travel_credit_issued: Decimal
    cancellation_scenario: str
    cancellation_scenario_description: str
    cancellation_initiated_by: str | None
    supplier_costs_committed: Decimal
    is_no_show: bool

    @classmethod
    def from_result(cls, context: BookingCancellationContext, result: DecisionResult) -> "BookingCancellationUpdate":
        return cls(
            eligible_refund=result.eligible_refund,
            refundable_amount=result.refundable_amount,
            non_refundable_amount=result.non_refundable_amount,
            admin_fee=result.admin_fee,
            travel_credit_issued=result.travel_credit_issued,
            cancellation_scenario=result.cancellation_scenario.value,
            cancellation_scenario_description=result.description,
            cancellation_initiated_by=result.initiated_by.value if result.initiated_by else None,
            supplier_costs_committed=context.supplier_costs_committed,
            is_no_show=context.is_no_show,
        )

    def to_document(self) -> dict[str, Any]:
        """camelCase field map for the document store, money as plain numbers."""
        document = self.model_dump(by_alias=True)
        for key, value in document.items():
            if isinstance(value, Decimal):
                document[key] = float(value)
        return document


class BookingEvaluateRequest(CamelModel):
    """Schema for evaluating a stored booking document."""

    booking: BookingDocument
    payment_term_id: str | None = None


class BookingEvaluateResponse(CamelModel):
    """Schema for a booking evaluation with its write-back update."""

    booking_id: str | None
    decision: DecisionResponse
    update: dict[str, Any]


class BatchEvaluateRequest(CamelModel):
    """Schema for evaluating many booking documents."""

    bookings: list[dict[str, Any]] = Field(..., min_length=1, max_length=500)
    payment_term_id: str | None = None


class BatchItemResult(CamelModel):
    """Outcome for one document of a batch."""

    booking_id: str | None
    update: dict[str, Any] | None = None
    error: str | None = None
    errors: list[dict[str, Any]] | None = None
    flags: list[str] = []


class BatchEvaluateResponse(CamelModel):
    """Schema for batch evaluation response."""

    results: list[BatchItemResult]
    evaluated: int
    rejected: int
    flagged: int


def _calendar_day(value: datetime | None) -> date | None:
    return value.date() if value is not None else None
