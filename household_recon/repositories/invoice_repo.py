"""
repositories/invoice_repo.py
-----------------------------
Data access layer for recorded credit-card invoice amounts.
"""

from decimal import Decimal
from typing import Optional

from household_recon.db.connection import get_connection, release_connection, transaction
from household_recon.models.invoice import Invoice, InvoicePeriod
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)


class InvoiceRepository:
    """Repository for the ccm_invoices table."""

    def upsert(
        self,
        household_id: str,
        period: InvoicePeriod,
        actual_amount: Optional[Decimal],
        notes: Optional[str] = None,
    ) -> Invoice:
        """
        Set or update the actual amount of a period's invoice.

        Both members may edit the same period; the last write wins.
        """
        sql = """
            INSERT INTO ccm_invoices (household_id, period, actual_amount, notes)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (household_id, period)
            DO UPDATE SET actual_amount = EXCLUDED.actual_amount,
                          notes = EXCLUDED.notes,
                          updated_at = NOW()
            RETURNING id, updated_at;
        """
        with transaction("upsert invoice") as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (household_id, period.label, actual_amount, notes))
                row = cur.fetchone()
        logger.info(f"Recorded invoice {period} for household {household_id}: {actual_amount}")
        return Invoice(household_id, period, actual_amount, notes, id=row[0], updated_at=row[1])

    def get(self, household_id: str, period: InvoicePeriod) -> Optional[Invoice]:
        """Get the invoice for one period, if recorded."""
        sql = """
            SELECT id, period, actual_amount, notes, updated_at
            FROM ccm_invoices WHERE household_id = %s AND period = %s;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (household_id, period.label))
                row = cur.fetchone()
                return self._row_to_invoice(household_id, row) if row else None
        finally:
            release_connection(conn)

    def get_all(self, household_id: str) -> list[Invoice]:
        """Get every recorded invoice of a household, newest period first."""
        sql = """
            SELECT id, period, actual_amount, notes, updated_at
            FROM ccm_invoices WHERE household_id = %s ORDER BY period DESC;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (household_id,))
                return [self._row_to_invoice(household_id, r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def delete(self, household_id: str, period: InvoicePeriod) -> bool:
        """Delete the invoice of a period."""
        sql = "DELETE FROM ccm_invoices WHERE household_id = %s AND period = %s;"
        with transaction("delete invoice") as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (household_id, period.label))
                return cur.rowcount > 0

    @staticmethod
    def _row_to_invoice(household_id: str, row: tuple) -> Invoice:
        return Invoice(
            household_id=household_id,
            period=InvoicePeriod.parse(row[1]),
            actual_amount=row[2],
            notes=row[3],
            id=row[0],
            updated_at=row[4],
        )
