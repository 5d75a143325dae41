from datetime import date
from decimal import Decimal

import pytest

from household_recon.models.expense import CostAssignment, GroupPurchase, SwishRecipient
from household_recon.services.group_purchase import build_group_purchase_expense
from household_recon.services.split_calculator import compute_split
from household_recon.utils.money import round_minor

from conftest import PARTNER, USER


def group_purchase(total, user_share, partner_share, recipient, user_id=USER):
    return build_group_purchase_expense(
        user_id, date(2025, 3, 3), total, user_share, partner_share, recipient
    )


def test_group_purchase_remainder_goes_to_swish_recipient():
    expense = group_purchase(900, 300, 300, "user")

    split = compute_split([expense], None, USER, PARTNER)

    assert split.user_amount == Decimal("600.00")
    assert split.partner_amount == Decimal("300.00")
    assert split.registered_total == Decimal("900")
    assert split.user_breakdown.swish == Decimal("300")


@pytest.mark.parametrize("recipient, user_amount, partner_amount", [
    ("partner", "300.00", "600.00"),
    ("shared", "450.00", "450.00"),
])
def test_group_purchase_other_recipients(recipient, user_amount, partner_amount):
    split = compute_split([group_purchase(900, 300, 300, recipient)], None, USER, PARTNER)
    assert split.user_amount == Decimal(user_amount)
    assert split.partner_amount == Decimal(partner_amount)


def test_group_purchase_recorded_by_partner_keeps_member_roles():
    expense = group_purchase(900, 300, 0, "user", user_id=PARTNER)

    split = compute_split([expense], None, USER, PARTNER)

    assert split.user_amount == Decimal("900.00")
    assert split.partner_amount == Decimal("0.00")
    assert split.user_breakdown.swish == Decimal("600")


def test_group_purchase_shares_ignore_recorder():
    by_user = compute_split([group_purchase(1000, 200, 500, "partner")], None, USER, PARTNER)
    by_partner = compute_split(
        [group_purchase(1000, 200, 500, "partner", user_id=PARTNER)], None, USER, PARTNER
    )

    assert by_partner.user_amount == by_user.user_amount == Decimal("200.00")
    assert by_partner.partner_amount == by_user.partner_amount == Decimal("800.00")


def test_partner_assignment_recorded_by_partner(make_expense):
    expense = make_expense(100, "2025-03-01", CostAssignment.PARTNER, user_id=PARTNER)

    split = compute_split([expense], None, USER, PARTNER)

    assert split.partner_amount == Decimal("100.00")
    assert split.user_amount == Decimal("0.00")
    assert split.partner_breakdown.personal == Decimal("100")

def test_cost_assignment_attribution(make_expense):
    expenses = [
        make_expense(100, "2025-03-01", CostAssignment.PERSONAL),
        make_expense(50, "2025-03-02", CostAssignment.PARTNER),
        make_expense(80, "2025-03-03", CostAssignment.SHARED),
        make_expense(30, "2025-03-04", CostAssignment.PERSONAL, user_id=PARTNER),
    ]

    split = compute_split(expenses, None, USER, PARTNER)

    assert split.user_amount == Decimal("140.00")
    assert split.partner_amount == Decimal("120.00")
    assert split.registered_total == Decimal("260")
    assert split.user_breakdown.personal == Decimal("100")
    assert split.partner_breakdown.personal == Decimal("80")


def test_over_registration_warns_without_correcting(make_expense):
    expenses = [make_expense(2500, "2025-03-01"), make_expense(2500, "2025-03-02")]

    split = compute_split(expenses, Decimal("4500"), USER, PARTNER)

    assert split.has_warning is True
    assert split.unregistered_difference == Decimal("0")
    assert split.user_amount == Decimal("2500.00")
    assert split.partner_amount == Decimal("2500.00")


def test_under_registration_is_split_evenly(make_expense):
    expenses = [
        make_expense(3000, "2025-03-01", CostAssignment.PERSONAL),
        make_expense(1000, "2025-03-02", CostAssignment.PARTNER),
    ]

    split = compute_split(expenses, 4500, USER, PARTNER)

    assert split.has_warning is False
    assert split.unregistered_difference == Decimal("500")
    assert split.user_amount == Decimal("3250.00")
    assert split.partner_amount == Decimal("1250.00")
    assert split.user_breakdown.unregistered == Decimal("250")


@pytest.mark.parametrize("actual", [None, 0, Decimal("0")])
def test_unknown_invoice_gives_raw_totals(make_expense, actual):
    split = compute_split([make_expense(120, "2025-03-01")], actual, USER, PARTNER)

    assert split.has_warning is False
    assert split.unregistered_difference == Decimal("0")
    assert split.total == Decimal("120.00")


def test_empty_period_with_invoice_is_all_unregistered():
    split = compute_split([], Decimal("999.99"), USER, PARTNER)

    assert split.registered_total == Decimal("0")
    assert split.unregistered_difference == Decimal("999.99")
    assert split.total == Decimal("999.99")


def test_rounding_residual_goes_to_largest_single_share(make_expense):
    expenses = [
        make_expense(10, "2025-03-01", CostAssignment.PERSONAL),
        make_expense("0.01", "2025-03-02", CostAssignment.SHARED),
    ]

    split = compute_split(expenses, None, USER, PARTNER)

    assert split.user_amount == Decimal("10.00")
    assert split.partner_amount == Decimal("0.01")
    assert split.total == Decimal("10.01")


def test_rounding_residual_to_partner_when_partner_holds_largest_share(make_expense):
    expenses = [
        make_expense(20, "2025-03-01", CostAssignment.PARTNER),
        make_expense("0.01", "2025-03-02", CostAssignment.SHARED),
    ]

    split = compute_split(expenses, None, USER, PARTNER)

    assert split.user_amount == Decimal("0.01")
    assert split.partner_amount == Decimal("20.00")


@pytest.mark.parametrize("actual", [None, "0.05", "101.01", "333.33", "1000"])
def test_split_is_conserved(make_expense, actual):
    expenses = [
        make_expense("33.33", "2025-03-01"),
        make_expense("0.03", "2025-03-02"),
        make_expense("12.345", "2025-03-03", CostAssignment.PERSONAL),
        make_expense("7.77", "2025-03-04", CostAssignment.PARTNER),
        group_purchase("45.45", "10.01", "10.01", "shared"),
    ]
    actual_amount = Decimal(actual) if actual is not None else None

    split = compute_split(expenses, actual_amount, USER, PARTNER)

    expected = split.registered_total + split.unregistered_difference
    assert split.total == round_minor(expected)
    if actual_amount is not None and not split.has_warning:
        assert split.total == round_minor(actual_amount)


def test_malformed_group_purchase_is_clamped_and_flagged(make_expense):
    broken = make_expense(
        900, "2025-03-01",
        id="broken",
        group_purchase=GroupPurchase(Decimal("800"), Decimal("500"), Decimal("400"), SwishRecipient.USER),
    )

    split = compute_split([broken], None, USER, PARTNER)

    assert split.anomalies == ("broken",)
    assert split.user_breakdown.swish == Decimal("0")
    assert split.user_amount == Decimal("500.00")
    assert split.partner_amount == Decimal("400.00")


def test_compute_split_is_deterministic(make_expense):
    expenses = [make_expense("10.005", "2025-03-01"), make_expense("3.335", "2025-03-02")]
    assert compute_split(expenses, 20, USER, PARTNER) == compute_split(expenses, 20, USER, PARTNER)
