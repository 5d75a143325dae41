"""
services/reconciliation.py
--------------------------
Duplicate-review state machine for one statement import session.

States per transaction:
    clear       no candidates, importable without review
    unresolved  has candidates, waiting for a user decision
    dismissed   user says "not a duplicate", importable
    handled     user confirmed a matched expense, never imported

Transitions:
    unresolved -> dismissed
    unresolved -> handled(expense_id)
    handled    -> unresolved   (undo)

Dismissal is final for the session.
"""

from typing import Iterable, Optional

from household_recon.models.expense import CostAssignment, Expense
from household_recon.models.statement import (
    DuplicateCandidate,
    Resolution,
    ResolutionStatus,
    StatementTransaction,
)
from household_recon.services.duplicate_matcher import find_candidates
from household_recon.utils.errors import InvalidTransitionError
from household_recon.utils.logger import get_logger

logger = get_logger(__name__)


class ReconciliationSession:
    """
    Tracks duplicate-review decisions for a batch of statement transactions.

    Candidates are recomputed from scratch by ``refresh``; decisions are kept
    as long as they still make sense for the new candidate lists.
    """

    def __init__(
        self,
        transactions: Iterable[StatementTransaction],
        expenses: Iterable[Expense],
        **match_options,
    ):
        self._match_options = match_options
        self._resolutions: dict[str, Resolution] = {}
        self._imported: set[str] = set()
        self.refresh(transactions, expenses)

    # ── Inputs ────────────────────────────────────────────

    def refresh(self, transactions: Iterable[StatementTransaction], expenses: Iterable[Expense]) -> None:
        """
        Recompute candidates for new inputs, keeping still-valid decisions.

        Decisions made in this session take precedence over the ones stored
        on the transactions.
        """
        self.transactions = {tx.id: tx for tx in transactions}
        self.expenses = list(expenses)
        self.candidates = find_candidates(self.transactions.values(), self.expenses, **self._match_options)

        previous = self._resolutions
        self._resolutions = {}
        for tx_id, tx in self.transactions.items():
            if tx.is_saved:
                self._imported.add(tx_id)
            self._resolutions[tx_id] = self._carry_over(tx_id, previous.get(tx_id, tx.resolution))

        logger.info(
            f"Reconciliation refreshed: {len(self.transactions)} transactions, "
            f"{len(self.candidates)} with duplicate candidates"
        )

    def _carry_over(self, tx_id: str, old: Optional[Resolution]) -> Resolution:
        candidates = self.candidates.get(tx_id, [])
        if old is not None:
            if old.status is ResolutionStatus.DISMISSED:
                return old
            if old.status is ResolutionStatus.HANDLED and any(
                c.expense_id == old.matched_expense_id for c in candidates
            ):
                return old
        return Resolution.unresolved() if candidates else Resolution.clear()

    # ── Queries ───────────────────────────────────────────

    def resolution(self, tx_id: str) -> Resolution:
        return self._resolutions[self._require(tx_id)]

    def candidates_for(self, tx_id: str) -> list[DuplicateCandidate]:
        return list(self.candidates.get(self._require(tx_id), []))

    def is_imported(self, tx_id: str) -> bool:
        return tx_id in self._imported

    def is_selectable(self, tx_id: str) -> bool:
        """True when the transaction may be selected for import."""
        return self.resolution(tx_id).allows_import() and not self.is_imported(tx_id)

    def importable_transactions(self) -> list[StatementTransaction]:
        return [tx for tx_id, tx in self.transactions.items() if self.is_selectable(tx_id)]

    def matched_expense(self, tx_id: str) -> Optional[Expense]:
        """The expense a handled transaction was matched to."""
        resolution = self.resolution(tx_id)
        if resolution.status is not ResolutionStatus.HANDLED:
            return None
        for candidate in self.candidates.get(tx_id, []):
            if candidate.expense_id == resolution.matched_expense_id:
                return candidate.expense
        return None

    def inherited_category(self, tx_id: str) -> Optional[str]:
        expense = self.matched_expense(tx_id)
        return expense.category if expense else None

    def inherited_cost_assignment(self, tx_id: str) -> Optional[CostAssignment]:
        expense = self.matched_expense(tx_id)
        return expense.cost_assignment if expense else None

    def summary(self) -> dict[str, int]:
        """Count transactions per resolution status, plus imported ones."""
        counts = {status.value: 0 for status in ResolutionStatus}
        for resolution in self._resolutions.values():
            counts[resolution.status.value] += 1
        counts["imported"] = len(self._imported & set(self.transactions))
        return counts

    # ── Decisions ─────────────────────────────────────────

    def dismiss(self, tx_id: str) -> Resolution:
        """Mark a transaction as not being a duplicate of any candidate."""
        self._expect(tx_id, ResolutionStatus.UNRESOLVED, "dismiss")
        self._resolutions[tx_id] = Resolution.dismissed()
        logger.info(f"Transaction {tx_id} dismissed as not a duplicate")
        return self._resolutions[tx_id]

    def handle(self, tx_id: str, expense_id: Optional[str] = None) -> Resolution:
        """
        Confirm that a transaction is the same event as one of its candidates.

        Args:
            tx_id: The statement transaction.
            expense_id: The chosen candidate; defaults to the top-ranked one.

        Raises:
            InvalidTransitionError: If the transaction is not unresolved or
                the expense is not among its candidates.
        """
        self._expect(tx_id, ResolutionStatus.UNRESOLVED, "handle")
        candidates = self.candidates[tx_id]
        if expense_id is None:
            expense_id = candidates[0].expense_id
        if not any(c.expense_id == expense_id for c in candidates):
            raise InvalidTransitionError(f"Expense {expense_id} is not a candidate for transaction {tx_id}")

        self._resolutions[tx_id] = Resolution.handled(expense_id)
        logger.info(f"Transaction {tx_id} handled as duplicate of expense {expense_id}")
        return self._resolutions[tx_id]

    def undo(self, tx_id: str) -> Resolution:
        """Reopen a handled transaction for candidate review."""
        self._expect(tx_id, ResolutionStatus.HANDLED, "undo")
        self._resolutions[tx_id] = Resolution.unresolved()
        logger.info(f"Transaction {tx_id} reopened for review")
        return self._resolutions[tx_id]

    def mark_imported(self, tx_id: str) -> bool:
        """
        Record that a transaction was imported.

        Returns:
            False if it had already been imported in this session.
        """
        if not self.is_selectable(tx_id):
            if self.is_imported(tx_id):
                return False
            raise InvalidTransitionError(
                f"Transaction {tx_id} is {self.resolution(tx_id).status.value} and cannot be imported"
            )
        self._imported.add(tx_id)
        return True

    # ── Helpers ───────────────────────────────────────────

    def _require(self, tx_id: str) -> str:
        if tx_id not in self.transactions:
            raise KeyError(f"Unknown transaction: {tx_id}")
        return tx_id

    def _expect(self, tx_id: str, status: ResolutionStatus, action: str) -> None:
        current = self.resolution(tx_id)
        if current.status is not status:
            raise InvalidTransitionError(
                f"Cannot {action} transaction {tx_id}: it is {current.status.value}"
            )
