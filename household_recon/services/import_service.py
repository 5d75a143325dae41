"""
services/import_service.py
--------------------------
Business logic for importing statement transactions as expenses.

Workflow:
    1. Load the statement lines and the expenses around their dates.
    2. Open a ReconciliationSession so the user can review duplicates.
    3. Persist each decision as it is made.
    4. Import the selected lines that passed review, at most once each.
"""

from datetime import timedelta
from typing import Iterable, Optional

from household_recon.config import DUPLICATE_DAYS_AFTER, DUPLICATE_DAYS_BEFORE
from household_recon.models.expense import CostAssignment, Expense
from household_recon.models.statement import StatementTransaction
from household_recon.repositories.expense_repo import ExpenseRepository
from household_recon.repositories.statement_repo import StatementRepository
from household_recon.services.group_purchase import validate_expense
from household_recon.services.reconciliation import ReconciliationSession
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)


class ImportService:
    """Coordinates duplicate review and import of one uploaded statement."""

    def __init__(
        self,
        expense_repo: Optional[ExpenseRepository] = None,
        statement_repo: Optional[StatementRepository] = None,
    ):
        self.expense_repo = expense_repo or ExpenseRepository()
        self.statement_repo = statement_repo or StatementRepository()

    def open_session(self, household_id: str, analysis_id: str) -> ReconciliationSession:
        """
        Start duplicate review for an uploaded statement.

        Expenses are fetched for the statement's date range widened by the
        matching window on both sides.
        """
        transactions = self.statement_repo.get_by_analysis(analysis_id)
        expenses: list[Expense] = []
        if transactions:
            start = min(tx.date for tx in transactions) - timedelta(days=DUPLICATE_DAYS_AFTER)
            end = max(tx.date for tx in transactions) + timedelta(days=DUPLICATE_DAYS_BEFORE)
            expenses = self.expense_repo.get_by_date_range(household_id, start, end)

        session = ReconciliationSession(transactions, expenses)
        logger.info(f"Opened reconciliation for analysis {analysis_id}: {session.summary()}")
        return session

    def dismiss(self, session: ReconciliationSession, tx_id: str) -> None:
        resolution = session.dismiss(tx_id)
        self.statement_repo.save_resolution(tx_id, resolution)

    def handle(self, session: ReconciliationSession, tx_id: str, expense_id: Optional[str] = None) -> None:
        """Confirm a duplicate and store the category and assignment it inherits."""
        resolution = session.handle(tx_id, expense_id)
        self.statement_repo.save_resolution(
            tx_id,
            resolution,
            category=session.inherited_category(tx_id),
            cost_assignment=session.inherited_cost_assignment(tx_id),
        )

    def undo(self, session: ReconciliationSession, tx_id: str) -> None:
        resolution = session.undo(tx_id)
        self.statement_repo.save_resolution(tx_id, resolution)

    def import_selected(
        self,
        session: ReconciliationSession,
        household_id: str,
        user_id: str,
        tx_ids: Iterable[str],
        is_credit_line: bool = False,
    ) -> list[Expense]:
        """
        Import the selected transactions as expenses.

        Lines that are still unresolved, were handled as duplicates, or were
        already imported are skipped.

        Returns:
            The expenses that were created.
        """
        created = []
        for tx_id in tx_ids:
            if not session.is_selectable(tx_id):
                logger.info(
                    f"Skipping transaction {tx_id}: {session.resolution(tx_id).status.value}"
                    f"{' (imported)' if session.is_imported(tx_id) else ''}"
                )
                continue

            tx = session.transactions[tx_id]
            expense = validate_expense(self._to_expense(tx, user_id, is_credit_line), allow_return=True)
            saved = self.statement_repo.import_as_expense(household_id, tx_id, expense)
            session.mark_imported(tx_id)
            if saved is not None:
                created.append(saved)

        logger.info(f"Imported {len(created)} transactions for household {household_id}")
        return created

    @staticmethod
    def _to_expense(tx: StatementTransaction, user_id: str, is_credit_line: bool) -> Expense:
        return Expense(
            user_id=user_id,
            amount=tx.amount,
            date=tx.date,
            cost_assignment=tx.cost_assignment or CostAssignment.SHARED,
            is_credit_line=is_credit_line,
            category=tx.category,
            description=tx.description,
        )
