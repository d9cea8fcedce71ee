"""Payment-term Pydantic schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from refund_desk.domain.payment_terms import (
    AdminFeePolicy,
    PaymentTermConfiguration,
    RefundWindow,
)


class RefundWindowSchema(BaseModel):
    """One refund window of a payment term."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    days_before_departure: int
    refund_percentage: Decimal
    label: str | None = Field(None, max_length=50)

    def to_domain(self) -> RefundWindow:
        return RefundWindow(
            days_before_departure=self.days_before_departure,
            refund_percentage=self.refund_percentage,
            label=self.label,
        )


class PaymentTermSchema(BaseModel):
    """Schema for an inline payment term configuration."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    term_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    windows: list[RefundWindowSchema]
    admin_fee_percentage: Decimal = Decimal("10")
    admin_fee_flat: Decimal = Decimal("0")
    travel_credit_for_non_refundable: bool = False
    reservation_fee_refundable: bool = False

    def to_domain(self) -> PaymentTermConfiguration:
        """Build the validated domain configuration.

        Raises:
            ValidationError: If the windows or fee settings are malformed
        """
        return PaymentTermConfiguration(
            term_id=self.term_id,
            name=self.name,
            windows=tuple(window.to_domain() for window in self.windows),
            admin_fee=AdminFeePolicy(
                percentage=self.admin_fee_percentage,
                flat=self.admin_fee_flat,
            ),
            travel_credit_for_non_refundable=self.travel_credit_for_non_refundable,
            reservation_fee_refundable=self.reservation_fee_refundable,
        )


class PaymentTermResponse(PaymentTermSchema):
    """Schema for payment term response."""

    description: str

    @classmethod
    def from_domain(cls, term: PaymentTermConfiguration) -> "PaymentTermResponse":
        return cls(
            term_id=term.term_id,
            name=term.name,
            windows=[
                RefundWindowSchema(
                    days_before_departure=window.days_before_departure,
                    refund_percentage=window.refund_percentage,
                    label=window.label,
                )
                for window in term.windows
            ],
            admin_fee_percentage=term.admin_fee.percentage,
            admin_fee_flat=term.admin_fee.flat,
            travel_credit_for_non_refundable=term.travel_credit_for_non_refundable,
            reservation_fee_refundable=term.reservation_fee_refundable,
            description=term.describe(),
        )


class PaymentTermListResponse(BaseModel):
    """Schema for payment term list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    payment_terms: list[PaymentTermResponse]
    total: int
