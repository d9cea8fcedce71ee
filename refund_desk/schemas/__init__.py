"""Pydantic schemas for API validation."""

from refund_desk.schemas.cancellation import (
    BatchEvaluateRequest,
    BatchEvaluateResponse,
    BatchItemResult,
    BookingCancellationUpdate,
    BookingDocument,
    BookingEvaluateRequest,
    BookingEvaluateResponse,
    CancellationContextSchema,
    CancellationEvaluateRequest,
    DecisionResponse,
)
from refund_desk.schemas.payment_term import (
    PaymentTermListResponse,
    PaymentTermResponse,
    PaymentTermSchema,
    RefundWindowSchema,
)

__all__ = [
    "BatchEvaluateRequest",
    "BatchEvaluateResponse",
    "BatchItemResult",
    "BookingCancellationUpdate",
    "BookingDocument",
    "BookingEvaluateRequest",
    "BookingEvaluateResponse",
    "CancellationContextSchema",
    "CancellationEvaluateRequest",
    "DecisionResponse",
    "PaymentTermListResponse",
    "PaymentTermResponse",
    "PaymentTermSchema",
    "RefundWindowSchema",
]
