"""
services/group_purchase.py
--------------------------
Input validation for expenses and group purchases.

Everything the split calculator assumes about its input is enforced here,
at authoring time, so that the calculator itself never has to fail.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from household_recon.models.expense import CostAssignment, Expense, GroupPurchase, SwishRecipient
from household_recon.utils.errors import ValidationError
from household_recon.utils.logger import get_logger
from household_recon.utils.money import ZERO, to_decimal

logger = get_logger(__name__)


def validate_cutoff_day(cutoff_day: int) -> int:
    """Ensure the invoice cutoff is a day of month (1-31)."""
    if isinstance(cutoff_day, bool) or not isinstance(cutoff_day, int) or not 1 <= cutoff_day <= 31:
        raise ValidationError(f"Cutoff day must be between 1 and 31, got {cutoff_day!r}")
    return cutoff_day


def validate_group_purchase(
    total_amount,
    user_share,
    partner_share,
    swish_recipient=None,
) -> GroupPurchase:
    """
    Validate group-purchase shares and build the GroupPurchase value.

    Args:
        total_amount: The full card charge.
        user_share: The user's share.
        partner_share: The partner's share.
        swish_recipient: Who received the reimbursement, required when
            anything was reimbursed.

    Returns:
        A validated GroupPurchase.

    Raises:
        ValidationError: If the shares are negative, exceed the total, or the
            reimbursed remainder has no recipient.
    """
    total = to_decimal(total_amount)
    user = to_decimal(user_share)
    partner = to_decimal(partner_share)

    if total <= ZERO:
        raise ValidationError(f"Group purchase total must be positive, got {total}")
    if user < ZERO or partner < ZERO:
        raise ValidationError("Group purchase shares cannot be negative")
    if user + partner > total:
        raise ValidationError(
            f"Group purchase shares ({user} + {partner}) exceed the total {total}"
        )

    recipient = None
    if swish_recipient is not None:
        try:
            recipient = SwishRecipient(swish_recipient)
        except ValueError:
            raise ValidationError(f"Unknown swish recipient: {swish_recipient!r}") from None

    if total - user - partner > ZERO and recipient is None:
        raise ValidationError("A swish recipient is required when part of the purchase was reimbursed")

    return GroupPurchase(total, user, partner, recipient)


def derive_cost_assignment(user_share: Decimal, partner_share: Decimal) -> CostAssignment:
    """Pick the cost assignment implied by the household's shares of a group purchase."""
    if user_share > ZERO and partner_share > ZERO:
        return CostAssignment.SHARED
    if partner_share > ZERO:
        return CostAssignment.PARTNER
    return CostAssignment.PERSONAL


def build_group_purchase_expense(
    user_id: str,
    expense_date: date,
    total_amount,
    user_share,
    partner_share,
    swish_recipient=None,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> Expense:
    """
    Author a credit-line expense for a purchase shared with other people.

    The expense amount is the household's part (user_share + partner_share);
    the full card charge lives on the GroupPurchase.
    """
    purchase = validate_group_purchase(total_amount, user_share, partner_share, swish_recipient)
    expense = Expense(
        user_id=user_id,
        amount=purchase.user_share + purchase.partner_share,
        date=expense_date,
        cost_assignment=derive_cost_assignment(purchase.user_share, purchase.partner_share),
        is_credit_line=True,
        category=category,
        description=description,
        group_purchase=purchase,
    )
    logger.info(
        f"Built group purchase for {user_id}: total {purchase.total_amount}, "
        f"reimbursed {purchase.reimbursed_amount}"
    )
    return expense


def validate_expense(expense: Expense, allow_return: bool = False) -> Expense:
    """
    Check an expense before it is persisted or handed to the engine.

    Args:
        expense: The expense to check.
        allow_return: Accept a negative amount (an explicitly signed return).

    Raises:
        ValidationError: On any violated invariant.
    """
    if not isinstance(expense.date, date):
        raise ValidationError(f"Expense date must be a date, got {expense.date!r}")
    if not isinstance(expense.cost_assignment, CostAssignment):
        raise ValidationError(f"Unknown cost assignment: {expense.cost_assignment!r}")

    amount = to_decimal(expense.amount)
    purchase = expense.group_purchase
    if purchase is None:
        if amount == ZERO or (amount < ZERO and not allow_return):
            raise ValidationError(f"Expense amount must be positive, got {amount}")
    else:
        # A fully reimbursed purchase has a zero household share.
        validate_group_purchase(
            purchase.total_amount, purchase.user_share, purchase.partner_share, purchase.swish_recipient
        )
        if amount != purchase.user_share + purchase.partner_share:
            raise ValidationError(
                f"Group purchase expense amount {amount} does not match its shares "
                f"({purchase.user_share} + {purchase.partner_share})"
            )
        expected = derive_cost_assignment(purchase.user_share, purchase.partner_share)
        if expense.cost_assignment is not expected:
            raise ValidationError(
                f"Group purchase cost assignment {expense.cost_assignment.value} does not follow "
                f"its shares, expected {expected.value}"
            )
    return expense
