"""
models/expense.py
-----------------
Domain model for household expenses, including group purchases.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class CostAssignment(str, Enum):
    """Who is economically responsible for an expense."""
    PERSONAL = "personal"
    SHARED = "shared"
    PARTNER = "partner"


class SwishRecipient(str, Enum):
    """Who received the peer-payment reimbursement for a group purchase."""
    USER = "user"
    PARTNER = "partner"
    SHARED = "shared"


@dataclass(frozen=True)
class GroupPurchase:
    """
    One credit-line charge whose cost is spread beyond the household.

    Attributes:
        total_amount: The full charge on the card.
        user_share: Portion attributed to the member who recorded the expense.
        partner_share: Portion attributed to the other household member.
        swish_recipient: Who received the reimbursement from the other
            participants, and therefore carries that portion on the invoice.
            May be None only when nothing was reimbursed.
    """
    total_amount: Decimal
    user_share: Decimal
    partner_share: Decimal
    swish_recipient: Optional[SwishRecipient] = None

    @property
    def reimbursed_amount(self) -> Decimal:
        """The part of the charge paid back by non-household participants."""
        return self.total_amount - self.user_share - self.partner_share


@dataclass
class Expense:
    """
    Represents a single economic event attributable to the household.

    Attributes:
        id: Primary key (None for new records).
        user_id: The household member who recorded the expense.
        amount: Amount in the base currency. For group purchases this is the
            household's share (user_share + partner_share).
        date: Date of the purchase.
        cost_assignment: Who pays absent a group-purchase breakdown.
        is_credit_line: True when the expense rides the shared credit card.
        category: Spending category, if any.
        description: Optional human-readable note.
        group_purchase: Present when the charge is split with other people.
        created_at: Timestamp when the record was created.
    """
    user_id: Optional[str]
    amount: Decimal
    date: date
    cost_assignment: CostAssignment = CostAssignment.SHARED
    is_credit_line: bool = True
    category: Optional[str] = None
    description: Optional[str] = None
    group_purchase: Optional[GroupPurchase] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = field(default=None, compare=False)

    def is_group_purchase(self) -> bool:
        """Returns True if the charge is shared with non-household participants."""
        return self.group_purchase is not None

    @property
    def invoice_amount(self) -> Decimal:
        """What this expense adds to the credit-card invoice."""
        if self.group_purchase is not None:
            return self.group_purchase.total_amount
        return self.amount

    def __str__(self) -> str:
        label = self.description or self.category or "expense"
        return f"{self.amount:.2f} | {self.cost_assignment.value} | {label} | {self.date}"
