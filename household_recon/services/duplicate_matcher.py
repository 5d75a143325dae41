"""
services/duplicate_matcher.py
-----------------------------
Finds already-recorded expenses that may be the same economic event as an
imported statement transaction.

A pair is a candidate when:
    - the transaction posts between DUPLICATE_DAYS_BEFORE days before and
      DUPLICATE_DAYS_AFTER days after the expense date, and
    - the absolute amounts differ by at most DUPLICATE_AMOUNT_TOLERANCE.

Candidates are ranked best first by:
    1. plausibility (a refund against an ordinary purchase, or a pair whose
       known categories differ, ranks last),
    2. amount difference,
    3. date distance,
    4. number of shared description words (more is better),
    5. position of the expense in the input.

The result depends only on the inputs, so recomputing it never reorders
what the user is looking at.
"""

import re
from decimal import Decimal
from typing import Iterable, Sequence

from household_recon.config import (
    DUPLICATE_AMOUNT_TOLERANCE,
    DUPLICATE_DAYS_AFTER,
    DUPLICATE_DAYS_BEFORE,
    MIN_WORD_LENGTH,
)
from household_recon.models.expense import Expense
from household_recon.models.statement import DuplicateCandidate, StatementTransaction
from household_recon.utils.logger import get_logger
from household_recon.utils.money import ZERO, to_decimal

logger = get_logger(__name__)

_NON_WORD = re.compile(r"[^\w\s]|_")


def extract_words(text: str | None, min_length: int = MIN_WORD_LENGTH) -> list[str]:
    """Lower-cased words of a description, keeping letters like å, ä and ö."""
    if not text:
        return []
    return [w for w in _NON_WORD.sub(" ", text.lower()).split() if len(w) >= min_length]


def _common_words(tx_words: Sequence[str], expense: Expense) -> tuple:
    expense_words = set(extract_words(expense.description))
    seen = []
    for word in tx_words:
        if word in expense_words and word not in seen:
            seen.append(word)
    return tuple(seen)


def _categories_differ(tx: StatementTransaction, expense: Expense) -> bool:
    if not tx.category or not expense.category:
        return False
    return tx.category.strip().lower() != expense.category.strip().lower()


def find_candidates(
    transactions: Iterable[StatementTransaction],
    expenses: Iterable[Expense],
    days_before: int = DUPLICATE_DAYS_BEFORE,
    days_after: int = DUPLICATE_DAYS_AFTER,
    amount_tolerance: Decimal = DUPLICATE_AMOUNT_TOLERANCE,
) -> dict[str, list[DuplicateCandidate]]:
    """
    Find potential duplicates for statement transactions among recorded expenses.

    Args:
        transactions: Imported statement lines.
        expenses: Recorded expenses covering the statement's date range.
        days_before: How many days before an expense a transaction may post.
        days_after: How many days after an expense a transaction may post.
        amount_tolerance: Largest accepted difference between magnitudes.

    Returns:
        A dict from transaction id to its candidates, best first. Transactions
        without any candidate are left out.
    """
    expenses = [e for e in expenses if e.id is not None]
    tolerance = to_decimal(amount_tolerance)
    result: dict[str, list[DuplicateCandidate]] = {}

    for tx in transactions:
        tx_amount = to_decimal(tx.amount)
        tx_words = extract_words(tx.description)
        scored = []

        for position, expense in enumerate(expenses):
            offset = (tx.date - expense.date).days
            if offset > days_after or -offset > days_before:
                continue

            expense_amount = to_decimal(expense.invoice_amount)
            amount_diff = abs(abs(tx_amount) - abs(expense_amount))
            if amount_diff > tolerance:
                continue

            plausible = (tx_amount < ZERO) == (expense_amount < ZERO) and not _categories_differ(tx, expense)
            common = _common_words(tx_words, expense)
            key = (not plausible, amount_diff, abs(offset), -len(common), position)
            scored.append((key, expense, abs(offset), amount_diff, common, plausible))

        if not scored:
            continue

        scored.sort(key=lambda item: item[0])
        result[tx.id] = [
            DuplicateCandidate(
                transaction_id=tx.id,
                expense=expense,
                rank=rank,
                date_distance=distance,
                amount_difference=amount_diff,
                common_words=common,
                plausible=plausible,
            )
            for rank, (_, expense, distance, amount_diff, common, plausible) in enumerate(scored, start=1)
        ]

    logger.debug(f"Duplicate check: {len(result)} transactions have candidates")
    return result
