"""Refund Desk: booking cancellation and refund decisions."""

from refund_desk.domain.cancellation_engine import (
    BookingCancellationContext,
    CancellationInitiator,
    CancellationScenario,
    DecisionResult,
    evaluate,
)
from refund_desk.domain.payment_terms import (
    AdminFeePolicy,
    PaymentTermConfiguration,
    RefundWindow,
)

__all__ = [
    "AdminFeePolicy",
    "BookingCancellationContext",
    "CancellationInitiator",
    "CancellationScenario",
    "DecisionResult",
    "PaymentTermConfiguration",
    "RefundWindow",
    "evaluate",
]
