"""Cancellation evaluation endpoints.

Nothing here is persisted: callers write the returned update onto the
booking document themselves.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from refund_desk.api.deps import get_cancellation_service
from refund_desk.config import settings
from refund_desk.schemas.cancellation import (
    BatchEvaluateRequest,
    BatchEvaluateResponse,
    BookingEvaluateRequest,
    BookingEvaluateResponse,
    CancellationEvaluateRequest,
    DecisionResponse,
)
from refund_desk.services.cancellation_service import CancellationService

router = APIRouter()


@router.post("/evaluate", response_model=DecisionResponse)
async def evaluate_cancellation(
    request: CancellationEvaluateRequest,
    service: Annotated[CancellationService, Depends(get_cancellation_service)],
) -> DecisionResponse:
    """Evaluate an explicit cancellation context."""
    terms = request.payment_term.to_domain() if request.payment_term else None
    context = request.context.to_domain(request.payment_term_id)
    result, terms = service.evaluate_context(context, terms)
    return DecisionResponse.from_result(result, terms.term_id, settings.currency)


@router.post("/booking", response_model=BookingEvaluateResponse)
async def evaluate_booking(
    request: BookingEvaluateRequest,
    service: Annotated[CancellationService, Depends(get_cancellation_service)],
) -> BookingEvaluateResponse:
    """Evaluate a booking document and return the fields to write back."""
    result, update, terms = service.evaluate_booking(request.booking, request.payment_term_id)
    return BookingEvaluateResponse(
        booking_id=request.booking.document_id,
        decision=DecisionResponse.from_result(result, terms.term_id, settings.currency),
        update=update.to_document(),
    )


@router.post("/batch", response_model=BatchEvaluateResponse)
async def evaluate_batch(
    request: BatchEvaluateRequest,
    service: Annotated[CancellationService, Depends(get_cancellation_service)],
) -> BatchEvaluateResponse:
    """Evaluate many booking documents, reporting failures per document."""
    return service.evaluate_batch(request.bookings, request.payment_term_id)
