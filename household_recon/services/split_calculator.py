"""
services/split_calculator.py
----------------------------
Computes what each household member owes on one credit-card invoice.

Per expense:
    - group purchase: each member carries their explicit share, and the
      reimbursed remainder goes to whoever received the peer payment
      (half each when both did);
    - otherwise by cost assignment: personal to whoever recorded it,
      partner to the partner, shared half each.

Against the invoice's actual amount, recorded items that exceed it raise a
warning (never corrected automatically), while an unrecorded gap is treated
as joint spending and split evenly.

Amounts stay in full Decimal precision until the result is built; the two
rounded liabilities always add up to the rounded total exactly.
"""

from decimal import Decimal
from typing import Iterable, Optional

from household_recon.config import CURRENCY_MINOR_UNIT
from household_recon.models.expense import CostAssignment, Expense, SwishRecipient
from household_recon.models.invoice import MemberBreakdown, PaymentSplit
from household_recon.utils.logger import get_logger
from household_recon.utils.money import HALF, ZERO, format_amount, round_minor, to_decimal

logger = get_logger(__name__)


class _Tally:
    """Running per-member totals for one period."""

    def __init__(self):
        self.personal = ZERO
        self.shared = ZERO
        self.swish = ZERO
        self.largest_share = ZERO

    def add(self, bucket: str, amount: Decimal) -> None:
        setattr(self, bucket, getattr(self, bucket) + amount)

    @property
    def attributed(self) -> Decimal:
        return self.personal + self.shared + self.swish

    def breakdown(self, unregistered: Decimal) -> MemberBreakdown:
        return MemberBreakdown(self.personal, self.shared, self.swish, unregistered)


def _attribute_group_purchase(expense: Expense, user: _Tally, partner: _Tally, anomalies: list) -> None:
    purchase = expense.group_purchase
    user.add("personal", purchase.user_share)
    partner.add("personal", purchase.partner_share)

    remainder = purchase.reimbursed_amount
    if remainder < ZERO:
        logger.warning(f"Group purchase {expense.id} shares exceed its total; reimbursed part clamped to 0")
        anomalies.append(expense.id)
        return
    if remainder == ZERO:
        return

    recipient = purchase.swish_recipient
    if recipient is SwishRecipient.USER:
        user.add("swish", remainder)
    elif recipient is SwishRecipient.PARTNER:
        partner.add("swish", remainder)
    else:
        if recipient is None:
            logger.warning(f"Group purchase {expense.id} has no swish recipient; splitting reimbursed part")
            anomalies.append(expense.id)
        user.add("swish", remainder * HALF)
        partner.add("swish", remainder * HALF)


def _attribute_assignment(expense: Expense, recorder: _Tally, user: _Tally, partner: _Tally) -> None:
    amount = to_decimal(expense.amount)
    if expense.cost_assignment is CostAssignment.PERSONAL:
        recorder.add("personal", amount)
    elif expense.cost_assignment is CostAssignment.PARTNER:
        partner.add("personal", amount)
    else:
        user.add("shared", amount * HALF)
        partner.add("shared", amount * HALF)


def compute_split(
    expenses: Iterable[Expense],
    actual_amount,
    user_id: Optional[str],
    partner_id: Optional[str],
    minor_unit: Decimal = CURRENCY_MINOR_UNIT,
) -> PaymentSplit:
    """
    Calculate each member's liability for one invoice period.

    Args:
        expenses: Validated expenses assigned to the period.
        actual_amount: Amount on the invoice, or None before it is known.
        user_id: The member the report is computed for.
        partner_id: The other household member, if linked.
        minor_unit: Currency minor unit used for rounding.

    Returns:
        A PaymentSplit. Never raises for validated input; data anomalies are
        listed in ``anomalies`` by expense id.
    """
    user, partner = _Tally(), _Tally()
    registered_total = ZERO
    anomalies: list = []

    for expense in expenses:
        before_user, before_partner = user.attributed, partner.attributed
        if expense.group_purchase is not None:
            _attribute_group_purchase(expense, user, partner, anomalies)
        else:
            # Only a personal expense depends on who recorded it.
            recorded_by_partner = partner_id is not None and expense.user_id == partner_id
            _attribute_assignment(expense, partner if recorded_by_partner else user, user, partner)
        registered_total += to_decimal(expense.invoice_amount)

        user.largest_share = max(user.largest_share, user.attributed - before_user)
        partner.largest_share = max(partner.largest_share, partner.attributed - before_partner)

    actual = to_decimal(actual_amount) if actual_amount is not None else None
    invoice_known = actual is not None and actual > ZERO

    has_warning = invoice_known and registered_total > actual
    unregistered = max(ZERO, actual - registered_total) if invoice_known else ZERO
    unregistered_share = unregistered * HALF

    user_total = user.attributed + unregistered_share
    partner_total = partner.attributed + unregistered_share

    user_amount = round_minor(user_total, minor_unit)
    partner_amount = round_minor(partner_total, minor_unit)
    residual = round_minor(user_total + partner_total, minor_unit) - user_amount - partner_amount
    if residual:
        if partner.largest_share > user.largest_share:
            partner_amount += residual
        else:
            user_amount += residual

    if has_warning:
        logger.info(
            f"Registered {format_amount(registered_total)} exceeds invoice {format_amount(actual)}"
        )

    return PaymentSplit(
        user_amount=user_amount,
        partner_amount=partner_amount,
        registered_total=registered_total,
        unregistered_difference=unregistered,
        has_warning=has_warning,
        actual_invoice=actual,
        user_breakdown=user.breakdown(unregistered_share),
        partner_breakdown=partner.breakdown(unregistered_share),
        anomalies=tuple(anomalies),
    )
