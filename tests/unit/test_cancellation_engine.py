from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from refund_desk.core.exceptions import ValidationError
from refund_desk.domain.cancellation_engine import (
    CancellationInitiator,
    CancellationScenario,
    evaluate,
    initiator_from_reason,
)
from refund_desk.domain.payment_terms import AdminFeePolicy


def test_guest_windowed_refund(make_context, half_refund_term):
    result = evaluate(make_context(), half_refund_term)

    assert result.days_before_departure == 45
    assert result.refund_percentage == Decimal("50")
    assert result.eligible_refund == Decimal("500")
    assert result.admin_fee == Decimal("50")
    assert result.refundable_amount == Decimal("450")
    assert result.non_refundable_amount == Decimal("550")
    assert result.travel_credit_issued == Decimal("0")
    assert result.cancellation_scenario is CancellationScenario.WINDOWED_REFUND
    assert result.timing == "mid-range"


def test_iht_cancellation_refunds_everything(make_context, half_refund_term):
    result = evaluate(make_context(cancellation_initiated_by="IHT"), half_refund_term)

    assert result.eligible_refund == Decimal("1000")
    assert result.admin_fee == Decimal("0")
    assert result.refundable_amount == Decimal("1000")
    assert result.non_refundable_amount == Decimal("0")
    assert result.cancellation_scenario is CancellationScenario.FULL_REFUND_IHT
    assert result.description == "Tour Cancelled by IHT (Before Start) (45 days before tour)"


def test_no_show_dominates_everything(make_context, half_refund_term):
    credit_term = replace(half_refund_term, travel_credit_for_non_refundable=True)
    for initiator in ("Guest", "IHT", None):
        result = evaluate(
            make_context(
                is_no_show=True,
                cancellation_initiated_by=initiator,
                supplier_costs_committed=Decimal("600"),
            ),
            credit_term,
        )
        assert result.eligible_refund == Decimal("0")
        assert result.admin_fee == Decimal("0")
        assert result.travel_credit_issued == Decimal("0")
        assert result.non_refundable_amount == Decimal("1000")
        assert result.cancellation_scenario is CancellationScenario.NO_SHOW
        assert result.description == "Guest No-Show"


def test_supplier_costs_at_or_above_refund_waive_fee(make_context, half_refund_term):
    result = evaluate(make_context(supplier_costs_committed=Decimal("600")), half_refund_term)

    assert result.admin_fee == Decimal("0")
    assert result.eligible_refund == Decimal("0")
    assert result.supplier_costs_deducted == Decimal("500")
    assert result.refundable_amount == Decimal("0")
    assert result.non_refundable_amount == Decimal("1000")
    assert result.cancellation_scenario is CancellationScenario.SUPPLIER_COST_EXCEPTION


def test_supplier_costs_equal_to_refund_is_exception(make_context, half_refund_term):
    result = evaluate(make_context(supplier_costs_committed=Decimal("500")), half_refund_term)

    assert result.cancellation_scenario is CancellationScenario.SUPPLIER_COST_EXCEPTION
    assert result.admin_fee == Decimal("0")


def test_partial_supplier_costs_come_out_of_refund(make_context, half_refund_term):
    result = evaluate(make_context(supplier_costs_committed=Decimal("100")), half_refund_term)

    assert result.cancellation_scenario is CancellationScenario.WINDOWED_REFUND
    assert result.eligible_refund == Decimal("500")
    assert result.admin_fee == Decimal("50")
    assert result.supplier_costs_deducted == Decimal("100")
    assert result.refundable_amount == Decimal("350")
    assert result.non_refundable_amount == Decimal("650")


def test_cancellation_after_departure_is_zero_refund(make_context, half_refund_term):
    result = evaluate(make_context(cancellation_date=date(2026, 4, 20)), half_refund_term)

    assert result.days_before_departure == -5
    assert result.refund_percentage == Decimal("0")
    assert result.eligible_refund == Decimal("0")
    assert result.admin_fee == Decimal("0")
    assert result.cancellation_scenario is CancellationScenario.ZERO_REFUND
    assert result.timing == "after-departure"


def test_late_window_is_zero_refund(make_context, standard_term):
    result = evaluate(make_context(), standard_term)

    assert result.cancellation_scenario is CancellationScenario.ZERO_REFUND
    assert result.refundable_amount == Decimal("0")
    assert result.description == "Guest Cancel Late (45 days before tour)"
    assert result.refund_policy == "No refund - All amounts forfeited"


@pytest.mark.parametrize(
    "cancelled_on,percentage,timing",
    [
        (date(2026, 3, 1), Decimal("100"), "early"),
        (date(2026, 3, 2), Decimal("50"), "mid-range"),
        (date(2026, 4, 10), Decimal("50"), "mid-range"),
        (date(2026, 4, 11), Decimal("0"), "late"),
    ],
)
def test_standard_window_boundaries(make_context, standard_term, cancelled_on, percentage, timing):
    # Departure is 100 days after 1 March
    context = make_context(cancellation_date=cancelled_on, tour_start_date=date(2026, 6, 9))
    result = evaluate(context, standard_term)

    assert result.refund_percentage == percentage
    assert result.timing == timing


def test_travel_credit_issued_for_non_refundable(make_context, half_refund_term):
    credit_term = replace(half_refund_term, travel_credit_for_non_refundable=True)
    result = evaluate(make_context(), credit_term)

    assert result.travel_credit_issued == result.non_refundable_amount == Decimal("550")
    assert result.refund_policy.endswith("(retained as travel credit)")


def test_reservation_fee_kept_on_guest_cancellation(make_context, standard_term):
    context = make_context(
        reservation_fee=Decimal("200"),
        tour_start_date=date(2026, 6, 29),
        payment_plan="Full Payment",
    )
    result = evaluate(context, standard_term)

    assert result.days_before_departure == 120
    assert result.eligible_refund == Decimal("800")
    assert result.admin_fee == Decimal("80")
    assert result.refundable_amount == Decimal("720")
    assert result.non_refundable_amount == Decimal("280")
    assert result.description == "Guest Cancel Early (Full Payment) (120 days before tour)"
    assert result.refund_policy == "100% of non-reservation amount minus admin fee"


def test_reservation_fee_refundable_when_term_allows(make_context, standard_term):
    term = replace(standard_term, reservation_fee_refundable=True)
    context = make_context(reservation_fee=Decimal("200"), tour_start_date=date(2026, 6, 29))
    result = evaluate(context, term)

    assert result.eligible_refund == Decimal("1000")
    assert result.admin_fee == Decimal("100")


def test_iht_refund_includes_reservation_fee(make_context, half_refund_term):
    context = make_context(cancellation_initiated_by="IHT", reservation_fee=Decimal("200"))
    result = evaluate(context, half_refund_term)

    assert result.refundable_amount == Decimal("1000")


def test_rounding_is_half_up_once_per_formula(make_context, half_refund_term):
    result = evaluate(make_context(amount_paid_to_date=Decimal("333.33")), half_refund_term)

    assert result.eligible_refund == Decimal("166.67")
    assert result.admin_fee == Decimal("16.67")
    assert result.refundable_amount == Decimal("150.00")
    assert result.non_refundable_amount == Decimal("183.33")


def test_flat_admin_fee_never_exceeds_refund(make_context, half_refund_term):
    term = replace(half_refund_term, admin_fee=AdminFeePolicy(percentage=Decimal("0"), flat=Decimal("75")))
    result = evaluate(make_context(amount_paid_to_date=Decimal("100")), term)

    assert result.eligible_refund == Decimal("50")
    assert result.admin_fee == Decimal("50")
    assert result.refundable_amount == Decimal("0")


def test_datetimes_are_floored_to_whole_days(make_context, half_refund_term):
    context = make_context(
        cancellation_date=datetime(2026, 3, 1, 18, 0),
        tour_start_date=datetime(2026, 4, 15, 9, 0),
    )
    assert evaluate(context, half_refund_term).days_before_departure == 44


def test_evaluation_is_deterministic(make_context, half_refund_term):
    context = make_context(supplier_costs_committed=Decimal("120.55"))
    assert evaluate(context, half_refund_term) == evaluate(context, half_refund_term)


@pytest.mark.parametrize("initiator", ["Guest", "IHT"])
@pytest.mark.parametrize("paid", ["0", "0.01", "999.99", "1234.57"])
@pytest.mark.parametrize("supplier", ["0", "10", "5000"])
@pytest.mark.parametrize("cancelled_on", [date(2026, 1, 1), date(2026, 3, 20), date(2026, 4, 14), date(2026, 5, 1)])
def test_amounts_always_balance(make_context, half_refund_term, initiator, paid, supplier, cancelled_on):
    context = make_context(
        cancellation_initiated_by=initiator,
        amount_paid_to_date=Decimal(paid),
        supplier_costs_committed=Decimal(supplier),
        cancellation_date=cancelled_on,
    )
    result = evaluate(context, half_refund_term)

    assert result.refundable_amount + result.non_refundable_amount == Decimal(paid)
    assert result.eligible_refund <= Decimal(paid)
    assert result.admin_fee <= result.eligible_refund
    assert result.non_refundable_amount >= 0
    if initiator == "IHT":
        assert result.eligible_refund == Decimal(paid)
        assert result.admin_fee == 0


def test_initiator_is_case_insensitive(make_context, half_refund_term):
    result = evaluate(make_context(cancellation_initiated_by="iht"), half_refund_term)
    assert result.initiated_by is CancellationInitiator.IHT


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"amount_paid_to_date": Decimal("-1")}, "amountPaidToDate"),
        ({"amount_paid_to_date": Decimal("1e30")}, "amountPaidToDate"),
        ({"supplier_costs_committed": Decimal("-5")}, "supplierCostsCommitted"),
        ({"total_tour_cost": "abc"}, "totalTourCost"),
        ({"tour_start_date": None}, "tourStartDate"),
        ({"cancellation_date": None}, "cancellationDate"),
        ({"cancellation_initiated_by": "Supplier"}, "cancellationInitiatedBy"),
        ({"cancellation_initiated_by": ""}, "cancellationInitiatedBy"),
        ({"booking_created_at": date(2026, 3, 2)}, "cancellationDate"),
    ],
)
def test_malformed_context_is_rejected(make_context, half_refund_term, overrides, field):
    with pytest.raises(ValidationError) as exc_info:
        evaluate(make_context(**overrides), half_refund_term)

    assert exc_info.value.status_code == 422
    assert field in {error["field"] for error in exc_info.value.errors}


def test_cancellation_on_booking_day_is_allowed(make_context, half_refund_term):
    result = evaluate(make_context(booking_created_at=date(2026, 3, 1)), half_refund_term)
    assert result.cancellation_scenario is CancellationScenario.WINDOWED_REFUND


@pytest.mark.parametrize(
    "reason,expected",
    [
        ("Guest - changed travel plans", CancellationInitiator.GUEST),
        ("Guest-medical", CancellationInitiator.GUEST),
        ("IHT - minimum group size not reached", CancellationInitiator.IHT),
        ("Tour cancelled by IHT due to weather", CancellationInitiator.IHT),
        ("The guest asked to cancel", CancellationInitiator.GUEST),
        ("Overnight flight missed", None),
        ("", None),
        (None, None),
    ],
)
def test_initiator_from_reason(reason, expected):
    assert initiator_from_reason(reason) is expected


@pytest.mark.parametrize(
    "overrides,description,policy",
    [
        (
            {"reason_for_cancellation": "Force majeure - airport closed by flooding"},
            "Force Majeure (45 days before tour)",
            "Case-by-case (refund OR travel credit)",
        ),
        (
            {"reason_for_cancellation": "Guest - missed payment on P3", "payment_plan": "P3"},
            "Installment Default (Late) (45 days before tour)",
            "No refund - All amounts forfeited",
        ),
        (
            {
                "reason_for_cancellation": "Guest - payment default",
                "payment_plan": "P2",
                "tour_start_date": date(2026, 5, 10),
            },
            "Installment Default (Mid-Range) (70 days before tour)",
            "50% refund minus admin fee",
        ),
        (
            {"reason_for_cancellation": "Guest - payment default", "payment_plan": "Full Payment"},
            "Guest Cancel Late (Full Payment) (45 days before tour)",
            "No refund - All amounts forfeited",
        ),
        (
            {"amount_paid_to_date": Decimal("0")},
            "Cancellation (No Payment Made) (45 days before tour)",
            "No refund - No payments made",
        ),
        (
            {"cancellation_initiated_by": "IHT", "cancellation_date": date(2026, 4, 20)},
            "Tour Cancelled by IHT (After Start)",
            "Partial refund for unused portion OR travel credit",
        ),
    ],
)
def test_booking_sheet_labels(make_context, standard_term, overrides, description, policy):
    result = evaluate(make_context(**overrides), standard_term)

    assert result.description == description
    assert result.refund_policy == policy


def test_labels_do_not_change_amounts(make_context, standard_term):
    plain = evaluate(make_context(tour_start_date=date(2026, 5, 10)), standard_term)
    labelled = evaluate(
        make_context(tour_start_date=date(2026, 5, 10), reason_for_cancellation="Force majeure"),
        standard_term,
    )

    assert labelled.cancellation_scenario is plain.cancellation_scenario
    assert labelled.refundable_amount == plain.refundable_amount == Decimal("450")
    assert labelled.description.startswith("Force Majeure")
