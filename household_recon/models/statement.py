"""
models/statement.py
-------------------
Domain models for imported statement transactions and their
duplicate-review state.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from household_recon.models.expense import CostAssignment, Expense


@dataclass
class StatementTransaction:
    """
    A transaction taken from a bank or card statement.

    Attributes:
        id: Primary key.
        amount: Signed amount; negative denotes a refund or return.
        date: Posting date.
        description: Free text from the statement.
        category: Category chosen by the user or inherited from a match.
        cost_assignment: Assignment used when the line is imported.
        is_saved: Durable flag, True once the line has been imported.
        resolution: Stored duplicate-review decision, None if never reviewed.
    """
    id: str
    amount: Decimal
    date: date
    description: Optional[str] = None
    category: Optional[str] = None
    cost_assignment: Optional[CostAssignment] = None
    is_saved: bool = False
    resolution: Optional["Resolution"] = None

    def is_refund(self) -> bool:
        return self.amount < 0


class ResolutionStatus(str, Enum):
    CLEAR = "clear"
    UNRESOLVED = "unresolved"
    DISMISSED = "dismissed"
    HANDLED = "handled"


@dataclass(frozen=True)
class Resolution:
    """Duplicate-review state of one transaction. Only HANDLED carries an expense id."""
    status: ResolutionStatus
    matched_expense_id: Optional[str] = None

    def __post_init__(self):
        if (self.status is ResolutionStatus.HANDLED) != (self.matched_expense_id is not None):
            raise ValueError(f"{self.status.value} resolution with matched_expense_id={self.matched_expense_id!r}")

    @classmethod
    def clear(cls) -> "Resolution":
        return cls(ResolutionStatus.CLEAR)

    @classmethod
    def unresolved(cls) -> "Resolution":
        return cls(ResolutionStatus.UNRESOLVED)

    @classmethod
    def dismissed(cls) -> "Resolution":
        return cls(ResolutionStatus.DISMISSED)

    @classmethod
    def handled(cls, expense_id: str) -> "Resolution":
        return cls(ResolutionStatus.HANDLED, expense_id)

    def allows_import(self) -> bool:
        return self.status in (ResolutionStatus.CLEAR, ResolutionStatus.DISMISSED)


@dataclass(frozen=True)
class DuplicateCandidate:
    """
    An existing expense that may be the same event as a statement transaction.

    Attributes:
        transaction_id: The statement transaction under review.
        expense: The already-recorded expense.
        rank: 1 for the best candidate of the transaction.
        date_distance: Days between the two dates (absolute).
        amount_difference: Absolute difference of the magnitudes.
        common_words: Description words shared by both sides.
        plausible: False when the signs disagree (refund vs. purchase).
    """
    transaction_id: str
    expense: Expense
    rank: int
    date_distance: int
    amount_difference: Decimal
    common_words: tuple = ()
    plausible: bool = True

    @property
    def expense_id(self) -> Optional[str]:
        return self.expense.id
