"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of invoice reports and duplicate reviews.
"""

import io
from typing import Iterable

import pandas as pd

from household_recon.models.invoice import PeriodReport
from household_recon.services.reconciliation import ReconciliationSession
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)


def _amount(value):
    return float(value) if value is not None else None


class ExportService:
    """Turns engine results into downloadable tables."""

    def reports_frame(self, reports: Iterable[PeriodReport]) -> pd.DataFrame:
        """One row per invoice period."""
        rows = [
            {
                "period": r.period.label,
                "start": r.start.isoformat(),
                "end": r.end.isoformat(),
                "expenses": len(r.expenses),
                "registered_total": _amount(r.split.registered_total),
                "actual_invoice": _amount(r.split.actual_invoice),
                "unregistered_difference": _amount(r.split.unregistered_difference),
                "user_amount": _amount(r.split.user_amount),
                "partner_amount": _amount(r.split.partner_amount),
                "warning": r.split.has_warning,
            }
            for r in reports
        ]
        return pd.DataFrame(rows, columns=[
            "period", "start", "end", "expenses", "registered_total", "actual_invoice",
            "unregistered_difference", "user_amount", "partner_amount", "warning",
        ])

    def expenses_frame(self, report: PeriodReport) -> pd.DataFrame:
        """The itemized expenses of one period."""
        rows = [
            {
                "date": e.date.isoformat(),
                "description": e.description or "",
                "category": e.category or "",
                "assignment": e.cost_assignment.value,
                "amount": _amount(e.amount),
                "invoice_amount": _amount(e.invoice_amount),
                "group_purchase": e.is_group_purchase(),
            }
            for e in report.expenses
        ]
        return pd.DataFrame(rows, columns=[
            "date", "description", "category", "assignment", "amount", "invoice_amount", "group_purchase",
        ])

    def review_frame(self, session: ReconciliationSession) -> pd.DataFrame:
        """One row per statement transaction with its best candidate and decision."""
        rows = []
        for tx_id, tx in session.transactions.items():
            candidates = session.candidates.get(tx_id, [])
            best = candidates[0] if candidates else None
            resolution = session.resolution(tx_id)
            rows.append({
                "transaction_id": tx_id,
                "date": tx.date.isoformat(),
                "description": tx.description or "",
                "amount": _amount(tx.amount),
                "candidates": len(candidates),
                "best_expense_id": best.expense_id if best else None,
                "best_date_distance": best.date_distance if best else None,
                "resolution": resolution.status.value,
                "matched_expense_id": resolution.matched_expense_id,
                "imported": session.is_imported(tx_id),
            })
        return pd.DataFrame(rows, columns=[
            "transaction_id", "date", "description", "amount", "candidates", "best_expense_id",
            "best_date_distance", "resolution", "matched_expense_id", "imported",
        ])

    def export_reports_csv(self, reports: Iterable[PeriodReport]) -> io.BytesIO:
        """
        Export invoice period reports as a CSV file.

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = self.reports_frame(reports)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} invoice periods as CSV")
        return buffer

    def export_reports_excel(self, reports: Iterable[PeriodReport]) -> io.BytesIO:
        """
        Export invoice period reports as an Excel (.xlsx) file.

        The first sheet is the overview; each period gets a sheet with its
        expenses.
        """
        reports = list(reports)
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            self.reports_frame(reports).to_excel(writer, sheet_name="Invoices", index=False)
            for report in reports:
                self.expenses_frame(report).to_excel(writer, sheet_name=report.period.label, index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(reports)} invoice periods as Excel")
        return buffer

    def export_review_csv(self, session: ReconciliationSession) -> io.BytesIO:
        """Export the duplicate review of a statement as a CSV file."""
        df = self.review_frame(session)
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported review of {len(df)} statement transactions as CSV")
        return buffer
