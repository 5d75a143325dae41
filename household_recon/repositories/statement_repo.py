"""
repositories/statement_repo.py
-------------------------------
Data access layer for imported statement transactions.

Importing a statement line is at-most-once: the line is claimed with a
conditional update on `is_saved` and the expense is inserted in the same
database transaction, so a retried request cannot create a second expense.
"""

from typing import Optional

from household_recon.db.connection import get_connection, release_connection, transaction
from household_recon.models.expense import CostAssignment, Expense
from household_recon.models.statement import Resolution, ResolutionStatus, StatementTransaction
from household_recon.repositories.expense_repo import INSERT_EXPENSE_SQL, expense_params
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)


class StatementRepository:
    """Repository for the statement_transactions table."""

    def get_by_analysis(self, analysis_id: str) -> list[StatementTransaction]:
        """Fetch every line of one uploaded statement, ordered by date."""
        sql = """
            SELECT id, amount, date, description, category, cost_assignment, is_saved,
                   resolution, matched_expense_id
            FROM statement_transactions
            WHERE analysis_id = %s
            ORDER BY date, created_at, id;
        """
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (analysis_id,))
                return [self._row_to_transaction(r) for r in cur.fetchall()]
        finally:
            release_connection(conn)

    def save_resolution(
        self,
        tx_id: str,
        resolution: Resolution,
        category: Optional[str] = None,
        cost_assignment: Optional[CostAssignment] = None,
    ) -> bool:
        """
        Persist the duplicate-review decision of a transaction.

        For a handled transaction the inherited category and cost assignment
        are stored alongside the matched expense id.
        """
        if resolution.status is ResolutionStatus.UNRESOLVED:
            # A reopened line drops what it inherited from the undone match.
            sql = """
                UPDATE statement_transactions
                SET resolution = %s, matched_expense_id = %s,
                    category = NULL, cost_assignment = NULL
                WHERE id = %s AND is_saved = FALSE;
            """
            params = (resolution.status.value, None, tx_id)
        else:
            sql = """
                UPDATE statement_transactions
                SET resolution = %s, matched_expense_id = %s,
                    category = COALESCE(%s, category),
                    cost_assignment = COALESCE(%s, cost_assignment)
                WHERE id = %s AND is_saved = FALSE;
            """
            params = (
                resolution.status.value, resolution.matched_expense_id,
                category, cost_assignment.value if cost_assignment else None,
                tx_id,
            )
        with transaction("save resolution") as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                updated = cur.rowcount > 0
        logger.info(f"Saved resolution {resolution.status.value} for transaction {tx_id}")
        return updated

    def import_as_expense(self, household_id: str, tx_id: str, expense: Expense) -> Optional[Expense]:
        """
        Turn a statement line into an expense, at most once.

        Returns:
            The created Expense, or None if the line was already imported.
        """
        claim_sql = """
            UPDATE statement_transactions
            SET is_saved = TRUE
            WHERE id = %s AND is_saved = FALSE
            RETURNING id;
        """
        with transaction("import statement transaction") as conn:
            with conn.cursor() as cur:
                cur.execute(claim_sql, (tx_id,))
                if cur.fetchone() is None:
                    logger.info(f"Transaction {tx_id} already imported, skipping")
                    return None
                cur.execute(INSERT_EXPENSE_SQL, expense_params(household_id, expense))
                row = cur.fetchone()
        expense.id = str(row[0])
        expense.created_at = row[1]
        logger.info(f"Imported transaction {tx_id} as expense {expense.id}")
        return expense

    @staticmethod
    def _row_to_transaction(row: tuple) -> StatementTransaction:
        return StatementTransaction(
            id=str(row[0]),
            amount=row[1],
            date=row[2],
            description=row[3],
            category=row[4],
            cost_assignment=CostAssignment(row[5]) if row[5] else None,
            is_saved=row[6],
            resolution=_row_to_resolution(row[7], row[8]),
        )


def _row_to_resolution(status: Optional[str], matched_expense_id) -> Optional[Resolution]:
    if not status:
        return None
    if status == ResolutionStatus.HANDLED.value:
        # The matched expense was deleted; the line needs review again.
        if matched_expense_id is None:
            return Resolution.unresolved()
        return Resolution.handled(str(matched_expense_id))
    return Resolution(ResolutionStatus(status))
