"""Payment term registry.

Holds the payment term configurations the refund engine may be evaluated
against. The registry only stores validated, read-only configurations.
"""

import logging

from refund_desk.config import Settings, settings
from refund_desk.core.exceptions import NotFoundError
from refund_desk.domain.payment_terms import PaymentTermConfiguration, build_standard_term

logger = logging.getLogger(__name__)


class PaymentTermRegistry:
    """In-memory lookup of payment terms by id."""

    def __init__(self, config: Settings | None = None):
        config = config or settings
        self.default_term_id = config.default_payment_term_id
        self._terms: dict[str, PaymentTermConfiguration] = {}
        self.register(
            build_standard_term(
                term_id=config.default_payment_term_id,
                admin_fee_percentage=config.default_admin_fee_percentage,
                admin_fee_flat=config.default_admin_fee_flat,
                travel_credit_for_non_refundable=config.default_travel_credit_for_non_refundable,
                reservation_fee_refundable=config.reservation_fee_refundable_on_guest_cancel,
            )
        )

    def register(self, term: PaymentTermConfiguration) -> PaymentTermConfiguration:
        """Validate and store a payment term, replacing any with the same id."""
        term.validate()
        if term.term_id in self._terms:
            logger.info(f"Replacing payment term '{term.term_id}'")
        self._terms[term.term_id] = term
        return term

    def get(self, term_id: str | None = None) -> PaymentTermConfiguration:
        """Get a payment term, or the default one when ``term_id`` is empty.

        Raises:
            NotFoundError: If no term is registered under ``term_id``
        """
        key = term_id or self.default_term_id
        term = self._terms.get(key)
        if term is None:
            raise NotFoundError("Payment term", key)
        return term

    def list_terms(self) -> list[PaymentTermConfiguration]:
        return sorted(self._terms.values(), key=lambda term: term.term_id)


# Singleton instance
payment_term_registry = PaymentTermRegistry()
