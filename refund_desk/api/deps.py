"""API dependencies for common operations."""

from refund_desk.services.cancellation_service import CancellationService, cancellation_service
from refund_desk.services.payment_term_service import PaymentTermRegistry, payment_term_registry


def get_payment_term_registry() -> PaymentTermRegistry:
    """Get the payment term registry."""
    return payment_term_registry


def get_cancellation_service() -> CancellationService:
    """Get the cancellation evaluation service."""
    return cancellation_service
