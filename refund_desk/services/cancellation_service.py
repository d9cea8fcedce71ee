"""Cancellation evaluation service.

Adapts booking documents to the refund engine and back. No refund rules
live here - only lookup of the payment term, mapping and logging.
"""

import logging
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from refund_desk.core.exceptions import NotFoundError, ValidationError
from refund_desk.domain.cancellation_engine import (
    BookingCancellationContext,
    DecisionResult,
    evaluate,
)
from refund_desk.domain.payment_terms import PaymentTermConfiguration
from refund_desk.schemas.cancellation import (
    BatchEvaluateResponse,
    BatchItemResult,
    BookingCancellationUpdate,
    BookingDocument,
)
from refund_desk.services.payment_term_service import PaymentTermRegistry, payment_term_registry

logger = logging.getLogger(__name__)


class CancellationService:
    """Service for evaluating cancelled bookings."""

    def __init__(self, registry: PaymentTermRegistry | None = None):
        self.registry = registry or payment_term_registry

    def evaluate_context(
        self,
        context: BookingCancellationContext,
        terms: PaymentTermConfiguration | None = None,
    ) -> tuple[DecisionResult, PaymentTermConfiguration]:
        """Evaluate a context against ``terms`` or its registered payment term.

        Raises:
            NotFoundError: If the referenced payment term is unknown
            ValidationError: If the engine rejects the input
        """
        terms = terms or self.registry.get(context.payment_term_id)
        booking = context.booking_id or "-"
        try:
            result = evaluate(context, terms)
        except ValidationError as exc:
            logger.warning(f"Cancellation rejected for booking {booking}: {exc.detail}")
            raise

        logger.info(
            f"Cancellation evaluated for booking {booking}: {result.cancellation_scenario.value} "
            f"refundable={result.refundable_amount} admin_fee={result.admin_fee} "
            f"term={terms.term_id}"
        )
        return result, terms

    def evaluate_booking(
        self,
        booking: BookingDocument,
        payment_term_id: str | None = None,
    ) -> tuple[DecisionResult, BookingCancellationUpdate, PaymentTermConfiguration]:
        """Evaluate a stored booking and build its write-back update."""
        context = booking.to_context(payment_term_id)
        result, terms = self.evaluate_context(context)
        return result, BookingCancellationUpdate.from_result(context, result), terms

    def review_flags(self, booking: BookingDocument, result: DecisionResult | None = None) -> list[str]:
        """Patterns on a booking that need manual review."""
        flags: list[str] = []
        if booking.cancellation_request_date is None or booking.tour_date is None:
            flags.append("Missing cancellationRequestDate or tourDate")
        stored = booking.refundable_amount
        if stored is not None and stored > booking.paid:
            flags.append(f"Refundable ({stored}) > Paid ({booking.paid})")
        if stored is not None and result is not None and stored != result.refundable_amount:
            flags.append(f"Refundable changes from {stored} to {result.refundable_amount}")
        return flags

    def evaluate_batch(
        self,
        documents: list[dict[str, Any]],
        payment_term_id: str | None = None,
    ) -> BatchEvaluateResponse:
        """Evaluate many booking documents; one bad document never stops the rest."""
        results: list[BatchItemResult] = []
        for raw in documents:
            booking_id = raw.get("bookingId") or raw.get("id")
            try:
                booking = BookingDocument.model_validate(raw)
            except SchemaValidationError as exc:
                logger.warning(f"Skipping malformed booking document {booking_id or '-'}")
                results.append(
                    BatchItemResult(
                        booking_id=booking_id,
                        error="Invalid booking document",
                        errors=[
                            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                            for err in exc.errors()
                        ],
                    )
                )
                continue

            try:
                result, update, _ = self.evaluate_booking(booking, payment_term_id)
            except (ValidationError, NotFoundError) as exc:
                results.append(
                    BatchItemResult(
                        booking_id=booking.document_id,
                        error=exc.detail,
                        errors=exc.errors,
                        flags=self.review_flags(booking),
                    )
                )
                continue

            results.append(
                BatchItemResult(
                    booking_id=booking.document_id,
                    update=update.to_document(),
                    flags=self.review_flags(booking, result),
                )
            )

        rejected = sum(1 for item in results if item.error)
        flagged = sum(1 for item in results if item.flags)
        logger.info(
            f"Batch evaluated {len(results)} bookings: {len(results) - rejected} ok, "
            f"{rejected} rejected, {flagged} flagged"
        )
        return BatchEvaluateResponse(
            results=results,
            evaluated=len(results) - rejected,
            rejected=rejected,
            flagged=flagged,
        )


# Singleton instance
cancellation_service = CancellationService()
