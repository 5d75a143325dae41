"""
repositories/expense_repo.py
-----------------------------
Data access layer for household expenses.
All SQL queries related to the `expenses` table live here.
"""

from datetime import date
from typing import Optional

from household_recon.db.connection import get_connection, release_connection, transaction
from household_recon.models.expense import CostAssignment, Expense, GroupPurchase, SwishRecipient
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)

EXPENSE_COLUMNS = """
    id, user_id, amount, date, cost_assignment, is_ccm, category, description,
    group_purchase_total, group_purchase_user_share, group_purchase_partner_share,
    group_purchase_swish_recipient, created_at
"""

INSERT_EXPENSE_SQL = """
    INSERT INTO expenses (
        household_id, user_id, amount, date, cost_assignment, is_ccm, category, description,
        group_purchase_total, group_purchase_user_share, group_purchase_partner_share,
        group_purchase_swish_recipient
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
    RETURNING id, created_at;
"""


def expense_params(household_id: str, expense: Expense) -> tuple:
    """Positional parameters for INSERT_EXPENSE_SQL."""
    purchase = expense.group_purchase
    return (
        household_id, expense.user_id, expense.amount, expense.date,
        expense.cost_assignment.value, expense.is_credit_line,
        expense.category, expense.description,
        purchase.total_amount if purchase else None,
        purchase.user_share if purchase else None,
        purchase.partner_share if purchase else None,
        purchase.swish_recipient.value if purchase and purchase.swish_recipient else None,
    )


class ExpenseRepository:
    """Repository for reads and inserts on the expenses table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, household_id: str, expense: Expense) -> Expense:
        """
        Insert a new expense.

        Args:
            household_id: Household the expense belongs to.
            expense: The validated Expense to persist.

        Returns:
            The same Expense with its `id` and `created_at` populated.
        """
        with transaction("add expense") as conn:
            with conn.cursor() as cur:
                cur.execute(INSERT_EXPENSE_SQL, expense_params(household_id, expense))
                row = cur.fetchone()
        expense.id = str(row[0])
        expense.created_at = row[1]
        logger.info(f"Added expense {expense.id} for household {household_id}")
        return expense

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, expense_id: str, household_id: str) -> Optional[Expense]:
        """Fetch a single expense by ID, scoped to a household."""
        sql = f"SELECT {EXPENSE_COLUMNS} FROM expenses WHERE id = %s AND household_id = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (expense_id, household_id))
                row = cur.fetchone()
                return self._row_to_expense(row) if row else None
        finally:
            release_connection(conn)

    def get_by_date_range(
        self, household_id: str, start: date, end: date, credit_line_only: bool = False
    ) -> list[Expense]:
        """
        Fetch a household's expenses within a date range.

        Args:
            household_id: Household scope.
            start: Start date (inclusive).
            end: End date (inclusive).
            credit_line_only: Only expenses charged on the credit card.

        Returns:
            Expenses ordered by date, then insertion.
        """
        sql = f"SELECT {EXPENSE_COLUMNS} FROM expenses WHERE household_id = %s AND date BETWEEN %s AND %s"
        if credit_line_only:
            sql += " AND is_ccm = TRUE"
        sql += " ORDER BY date, created_at, id;"

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (household_id, start, end))
                return [self._row_to_expense(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_expense(row: tuple) -> Expense:
        """Convert a database row tuple to an Expense domain object."""
        purchase = None
        if row[8] is not None:
            purchase = GroupPurchase(
                total_amount=row[8],
                user_share=row[9],
                partner_share=row[10],
                swish_recipient=SwishRecipient(row[11]) if row[11] else None,
            )
        return Expense(
            id=str(row[0]),
            user_id=row[1],
            amount=row[2],
            date=row[3],
            cost_assignment=CostAssignment(row[4]),
            is_credit_line=row[5],
            category=row[6],
            description=row[7],
            group_purchase=purchase,
            created_at=row[12],
        )
