"""
services/billing_cycle.py
-------------------------
Maps expense dates to credit-card invoice periods.

A charge made on a day-of-month after the cutoff day lands on the next
month's invoice; everything else stays on the current month's invoice.
With a cutoff of 15, "2025-03" covers 16 February to 15 March.
"""

import calendar
from datetime import date
from typing import Iterable, Optional

from household_recon.models.expense import Expense
from household_recon.models.invoice import InvoicePeriod
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)


def _effective_cutoff(year: int, month: int, cutoff_day: int) -> int:
    """The cutoff clamped to the length of the given month."""
    return min(cutoff_day, calendar.monthrange(year, month)[1])


def assign_period(expense_date: date, cutoff_day: int) -> InvoicePeriod:
    """
    Get the invoice period for a given date.

    Args:
        expense_date: Date of the charge.
        cutoff_day: Day of month (1-31) after which charges roll over.

    Returns:
        The InvoicePeriod the charge is billed on.
    """
    current = InvoicePeriod(expense_date.year, expense_date.month)
    if expense_date.day > _effective_cutoff(expense_date.year, expense_date.month, cutoff_day):
        return current.next()
    return current


def period_date_range(period: InvoicePeriod, cutoff_day: int) -> tuple[date, date]:
    """
    Get the inclusive range of dates billed on a period.

    The range starts the day after the previous month's cutoff, or on the
    1st when the cutoff reaches the end of the previous month.
    """
    prev = period.previous()
    prev_cutoff = _effective_cutoff(prev.year, prev.month, cutoff_day)
    prev_last_day = calendar.monthrange(prev.year, prev.month)[1]
    if prev_cutoff < prev_last_day:
        start = date(prev.year, prev.month, prev_cutoff + 1)
    else:
        start = date(period.year, period.month, 1)
    end = date(period.year, period.month, _effective_cutoff(period.year, period.month, cutoff_day))
    return start, end


def current_period(cutoff_day: int, today: Optional[date] = None) -> InvoicePeriod:
    """Get the period that charges made today are billed on."""
    return assign_period(today or date.today(), cutoff_day)


def invoice_status(period: InvoicePeriod, today: Optional[date] = None) -> str:
    """Classify a period against the calendar month of ``today``: 'current', 'upcoming' or 'past'."""
    today = today or date.today()
    this_month = InvoicePeriod(today.year, today.month)
    if period == this_month:
        return "current"
    if period > this_month:
        return "upcoming"
    return "past"


def group_by_period(expenses: Iterable[Expense], cutoff_day: int) -> dict[InvoicePeriod, list[Expense]]:
    """
    Group expenses by invoice period.

    Expenses keep their input order within each bucket. Buckets are returned
    newest period first.
    """
    grouped: dict[InvoicePeriod, list[Expense]] = {}
    for expense in expenses:
        grouped.setdefault(assign_period(expense.date, cutoff_day), []).append(expense)

    logger.debug(f"Grouped expenses into {len(grouped)} invoice periods (cutoff day {cutoff_day})")
    return {period: grouped[period] for period in sorted(grouped, reverse=True)}


def periods_between(start: date, end: date, cutoff_day: int) -> list[InvoicePeriod]:
    """List every period touched by the dates from ``start`` to ``end``, oldest first."""
    if end < start:
        return []
    periods = [assign_period(start, cutoff_day)]
    last = assign_period(end, cutoff_day)
    while periods[-1] < last:
        periods.append(periods[-1].next())
    return periods
