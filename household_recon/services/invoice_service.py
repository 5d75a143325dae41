"""
services/invoice_service.py
---------------------------
Business logic for credit-card invoice periods.
Orchestrates between the repositories, the billing-cycle assigner and the
payment-split calculator.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from household_recon.config import DEFAULT_CUTOFF_DAY
from household_recon.models.invoice import Invoice, InvoicePeriod, PeriodReport
from household_recon.repositories.expense_repo import ExpenseRepository
from household_recon.repositories.invoice_repo import InvoiceRepository
from household_recon.services.billing_cycle import group_by_period, period_date_range, periods_between
from household_recon.services.group_purchase import validate_cutoff_day
from household_recon.services.split_calculator import compute_split
from household_recon.utils.errors import ValidationError
from household_recon.utils.logger import get_logger
from household_recon.utils.money import ZERO, to_decimal

logger = get_logger(__name__)


class InvoiceService:
    """
    Builds per-period liability reports for a household.

    Workflow:
        1. Fetch credit-line expenses for the period's date range.
        2. Fetch the recorded invoice amount, if any.
        3. Compute the payment split.
    """

    def __init__(
        self,
        cutoff_day: int = DEFAULT_CUTOFF_DAY,
        expense_repo: Optional[ExpenseRepository] = None,
        invoice_repo: Optional[InvoiceRepository] = None,
    ):
        self.cutoff_day = validate_cutoff_day(cutoff_day)
        self.expense_repo = expense_repo or ExpenseRepository()
        self.invoice_repo = invoice_repo or InvoiceRepository()

    def record_invoice(
        self, household_id: str, period: InvoicePeriod, actual_amount, notes: Optional[str] = None
    ) -> Invoice:
        """
        Record the amount shown on a period's invoice.

        Raises:
            ValidationError: If the amount is negative.
        """
        amount: Optional[Decimal] = to_decimal(actual_amount) if actual_amount is not None else None
        if amount is not None and amount < ZERO:
            raise ValidationError(f"Invoice amount cannot be negative, got {amount}")
        return self.invoice_repo.upsert(household_id, period, amount, notes)

    def get_period_report(
        self, household_id: str, period: InvoicePeriod, user_id: str, partner_id: Optional[str]
    ) -> PeriodReport:
        """Compute the liability report for one invoice period."""
        start, end = period_date_range(period, self.cutoff_day)
        expenses = self.expense_repo.get_by_date_range(household_id, start, end, credit_line_only=True)
        invoice = self.invoice_repo.get(household_id, period)
        return self._build_report(period, expenses, invoice, user_id, partner_id)

    def get_reports(
        self,
        household_id: str,
        start: date,
        end: date,
        user_id: str,
        partner_id: Optional[str],
    ) -> list[PeriodReport]:
        """
        Compute reports for every period touched by a date range, newest first.

        Expenses are fetched once for the whole span and bucketed locally.
        """
        periods = periods_between(start, end, self.cutoff_day)
        if not periods:
            return []

        span_start = period_date_range(periods[0], self.cutoff_day)[0]
        span_end = period_date_range(periods[-1], self.cutoff_day)[1]
        expenses = self.expense_repo.get_by_date_range(household_id, span_start, span_end, credit_line_only=True)
        buckets = group_by_period(expenses, self.cutoff_day)
        invoices = {inv.period: inv for inv in self.invoice_repo.get_all(household_id)}

        reports = [
            self._build_report(period, buckets.get(period, []), invoices.get(period), user_id, partner_id)
            for period in reversed(periods)
        ]
        logger.info(f"Built {len(reports)} invoice reports for household {household_id}")
        return reports

    def _build_report(self, period, expenses, invoice, user_id, partner_id) -> PeriodReport:
        start, end = period_date_range(period, self.cutoff_day)
        actual = invoice.actual_amount if invoice else None
        split = compute_split(expenses, actual, user_id, partner_id)
        if split.has_warning:
            logger.warning(
                f"Invoice {period}: registered {split.registered_total} exceeds actual {actual}"
            )
        return PeriodReport(period, start, end, tuple(expenses), invoice, split)
