from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from refund_desk.domain.cancellation_engine import BookingCancellationContext
from refund_desk.domain.payment_terms import (
    AdminFeePolicy,
    PaymentTermConfiguration,
    RefundWindow,
    build_standard_term,
)
from refund_desk.main import create_application


@pytest.fixture
def standard_term() -> PaymentTermConfiguration:
    return build_standard_term()


@pytest.fixture
def half_refund_term() -> PaymentTermConfiguration:
    """Full refund from 60 days out, 50% from 30 days, nothing after."""
    return PaymentTermConfiguration(
        term_id="short-notice",
        name="Short Notice",
        windows=(
            RefundWindow(60, Decimal("100"), "early"),
            RefundWindow(30, Decimal("50"), "mid-range"),
            RefundWindow(0, Decimal("0"), "late"),
        ),
        admin_fee=AdminFeePolicy(percentage=Decimal("10")),
    )


@pytest.fixture
def make_context():
    """Guest cancellation 45 days before departure with 1000 paid."""

    def _make(**overrides) -> BookingCancellationContext:
        values = {
            "total_tour_cost": Decimal("2000"),
            "amount_paid_to_date": Decimal("1000"),
            "cancellation_date": date(2026, 3, 1),
            "tour_start_date": date(2026, 4, 15),
            "cancellation_initiated_by": "Guest",
        }
        values.update(overrides)
        return BookingCancellationContext(**values)

    return _make


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_application())
