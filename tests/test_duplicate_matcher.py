from datetime import date
from decimal import Decimal

import pytest

from household_recon.models.expense import CostAssignment
from household_recon.services.duplicate_matcher import extract_words, find_candidates
from household_recon.services.group_purchase import build_group_purchase_expense

from conftest import USER


def test_exact_match_within_window(make_expense, make_tx):
    expense = make_expense(249, "2025-04-10", description="ICA Maxi")
    tx = make_tx(249, "2025-04-12", "ICA MAXI STOCKHOLM")

    result = find_candidates([tx], [expense])

    [candidate] = result[tx.id]
    assert candidate.expense is expense
    assert candidate.rank == 1
    assert candidate.date_distance == 2
    assert candidate.amount_difference == Decimal("0")
    assert candidate.common_words == ("ica", "maxi")
    assert candidate.plausible


@pytest.mark.parametrize("tx_day, matches", [
    ("2025-04-07", False),  # 3 days before the expense
    ("2025-04-08", True),
    ("2025-04-14", True),
    ("2025-04-15", False),  # 5 days after the expense
])
def test_date_window_is_asymmetric(make_expense, make_tx, tx_day, matches):
    expense = make_expense(100, "2025-04-10")
    tx = make_tx(100, tx_day)

    assert (tx.id in find_candidates([tx], [expense])) is matches


def test_amount_must_match_exactly_by_default(make_expense, make_tx):
    expense = make_expense("100.00", "2025-04-10")
    tx = make_tx("100.50", "2025-04-10")

    assert find_candidates([tx], [expense]) == {}
    near = find_candidates([tx], [expense], amount_tolerance=Decimal("1"))
    assert near[tx.id][0].amount_difference == Decimal("0.50")


def test_exact_amount_ranks_above_near_amount(make_expense, make_tx):
    near = make_expense("99", "2025-04-10")
    exact = make_expense("100", "2025-04-08")
    tx = make_tx("100", "2025-04-10")

    result = find_candidates([tx], [near, exact], amount_tolerance=Decimal("5"))

    assert [c.expense for c in result[tx.id]] == [exact, near]


def test_closer_date_ranks_first(make_expense, make_tx):
    far = make_expense(50, "2025-04-07")
    close = make_expense(50, "2025-04-10")
    tx = make_tx(50, "2025-04-10")

    result = find_candidates([tx], [far, close])

    assert [c.expense for c in result[tx.id]] == [close, far]
    assert [c.rank for c in result[tx.id]] == [1, 2]


def test_ambiguous_matches_are_all_kept(make_expense, make_tx):
    first = make_expense(80, "2025-04-10", description="Pressbyrån")
    second = make_expense(80, "2025-04-10", description="Kaffe")
    tx = make_tx(80, "2025-04-10", "KAFFE BAR")

    result = find_candidates([tx], [first, second])

    assert [c.expense for c in result[tx.id]] == [second, first]


def test_refund_prefers_recorded_return(make_expense, make_tx):
    purchase = make_expense(399, "2025-04-10", description="Jacka")
    recorded_return = make_expense(-399, "2025-04-11", description="Retur")
    refund = make_tx(-399, "2025-04-10", "RETUR")

    result = find_candidates([refund], [purchase, recorded_return])

    candidates = result[refund.id]
    assert [c.expense for c in candidates] == [recorded_return, purchase]
    assert [c.plausible for c in candidates] == [True, False]


def test_refund_against_purchase_is_still_surfaced(make_expense, make_tx):
    purchase = make_expense(399, "2025-04-10")
    refund = make_tx(-399, "2025-04-10")

    [candidate] = find_candidates([refund], [purchase])[refund.id]
    assert candidate.plausible is False


def test_different_category_ranks_below_same_category(make_expense, make_tx):
    shoes = make_expense(499, "2025-04-10", category="Kläder", id="exp-shoes")
    food = make_expense(499, "2025-04-10", category="Mat", id="exp-food")
    tx = make_tx(499, "2025-04-10", category="mat")

    candidates = find_candidates([tx], [shoes, food])[tx.id]

    assert [c.expense_id for c in candidates] == ["exp-food", "exp-shoes"]
    assert [c.plausible for c in candidates] == [True, False]


def test_unknown_category_does_not_affect_plausibility(make_expense, make_tx):
    expense = make_expense(499, "2025-04-10", category="Mat")
    tx = make_tx(499, "2025-04-10")

    [candidate] = find_candidates([tx], [expense])[tx.id]
    assert candidate.plausible is True


def test_group_purchase_matches_on_full_charge(make_tx):
    expense = build_group_purchase_expense(USER, date(2025, 4, 10), 900, 300, 300, "user")
    expense.id = "gp-1"
    tx = make_tx(900, "2025-04-11")

    assert find_candidates([tx], [expense])[tx.id][0].expense_id == "gp-1"


def test_transactions_without_candidates_are_absent(make_expense, make_tx):
    expense = make_expense(100, "2025-04-10")
    matched = make_tx(100, "2025-04-10")
    clean = make_tx(55, "2025-04-10")

    result = find_candidates([matched, clean], [expense])

    assert list(result) == [matched.id]


def test_unsaved_expenses_are_ignored(make_expense, make_tx):
    expense = make_expense(100, "2025-04-10", id=None)
    tx = make_tx(100, "2025-04-10")

    assert find_candidates([tx], [expense]) == {}


def test_find_candidates_is_idempotent(make_expense, make_tx):
    expenses = [
        make_expense(100, "2025-04-10", description="Coop"),
        make_expense(100, "2025-04-10", description="Coop Forum"),
        make_expense(100, "2025-04-12", CostAssignment.PERSONAL),
        make_expense(-100, "2025-04-11"),
    ]
    txs = [make_tx(100, "2025-04-11", "COOP FORUM"), make_tx(-100, "2025-04-11")]

    first = find_candidates(txs, expenses)
    second = find_candidates(txs, expenses)

    assert first == second
    assert [c.expense.id for c in first["tx-1"]] == [c.expense.id for c in second["tx-1"]]


def test_extract_words_keeps_swedish_letters():
    assert extract_words("Åhléns City, Söder-malm *123") == ["åhléns", "city", "söder", "malm", "123"]
    assert extract_words(None) == []
    assert extract_words("a b") == []
