"""
models/invoice.py
-----------------
Domain models for credit-card invoice periods, recorded invoice amounts
and the per-period liability split.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from household_recon.utils.money import ZERO


@dataclass(frozen=True, order=True)
class InvoicePeriod:
    """A billing-cycle bucket, labelled ``YYYY-MM``."""
    year: int
    month: int

    @classmethod
    def parse(cls, label: str) -> "InvoicePeriod":
        """Parse a ``YYYY-MM`` label."""
        year, month = label.split("-")
        return cls(int(year), int(month))

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def next(self) -> "InvoicePeriod":
        if self.month == 12:
            return InvoicePeriod(self.year + 1, 1)
        return InvoicePeriod(self.year, self.month + 1)

    def previous(self) -> "InvoicePeriod":
        if self.month == 1:
            return InvoicePeriod(self.year - 1, 12)
        return InvoicePeriod(self.year, self.month - 1)

    def __str__(self) -> str:
        return self.label


@dataclass
class Invoice:
    """
    The actual amount shown on a period's credit-card bill.

    Attributes:
        household_id: Household the invoice belongs to.
        period: Invoice period.
        actual_amount: Ground-truth amount, None until recorded.
        notes: Optional free text.
        id: Primary key (None for new records).
        updated_at: Last write timestamp.
    """
    household_id: str
    period: InvoicePeriod
    actual_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    id: Optional[int] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MemberBreakdown:
    """How one member's liability is composed, in full precision."""
    personal: Decimal = ZERO
    shared: Decimal = ZERO
    swish: Decimal = ZERO
    unregistered: Decimal = ZERO

    @property
    def attributed(self) -> Decimal:
        return self.personal + self.shared + self.swish

    @property
    def total(self) -> Decimal:
        return self.attributed + self.unregistered


@dataclass(frozen=True)
class PaymentSplit:
    """
    Liability report for one invoice period.

    ``user_amount`` and ``partner_amount`` are rounded to the minor unit and
    always sum to the rounded reconciliation target. The breakdowns keep
    full precision.
    """
    user_amount: Decimal
    partner_amount: Decimal
    registered_total: Decimal
    unregistered_difference: Decimal
    has_warning: bool
    actual_invoice: Optional[Decimal] = None
    user_breakdown: MemberBreakdown = field(default_factory=MemberBreakdown)
    partner_breakdown: MemberBreakdown = field(default_factory=MemberBreakdown)
    anomalies: tuple = ()

    @property
    def total(self) -> Decimal:
        return self.user_amount + self.partner_amount


@dataclass(frozen=True)
class PeriodReport:
    """One invoice period with its expenses, recorded invoice and split."""
    period: InvoicePeriod
    start: date
    end: date
    expenses: tuple
    invoice: Optional[Invoice]
    split: PaymentSplit
