"""
State Coordinator for RF Manager

This module owns the live application state and is the ONLY way to change
it. Every mutation follows the same cycle:

1. Copy the current state for rollback
2. Apply the change to working copies of the ledger / goals
3. Recalculate the derived snapshot from the full ledger
4. Swap the live state in one assignment
5. Register an undo entry holding the copy from step 1

DESIGN DECISION: If anything fails before step 4, the live state is the
object it was before the call. There is no partial mutation to unwind.

Mutations are serialised with a lock around the whole cycle. Persisting the
new state happens after the swap and can fail without failing the mutation.
"""

import threading
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar, Union
from uuid import UUID

from pydantic import ValidationError

from rf_manager.allocation import apply_overrides, split_funded_profit
from rf_manager.audit import AuditLogger, configure_logging
from rf_manager.config import get_settings
from rf_manager.engine import recalculate
from rf_manager.errors import (
    GoalNotFoundError,
    InvalidAllocationError,
    InvalidTransactionError,
    MalformedSnapshotError,
    RFManagerError,
)
from rf_manager.goals import GoalTracker
from rf_manager.ledger import LedgerStore
from rf_manager.models.audit import AuditEventType
from rf_manager.models.goal import Goal, LongTermGoal, ShortTermGoal
from rf_manager.models.ledger import (
    AllocationBucket,
    Transaction,
    TransactionKind,
    TransactionSource,
)
from rf_manager.models.snapshot import DerivedSnapshot
from rf_manager.models.state import AppState, LedgerSettings, TaxBracket
from rf_manager.services.storage import (
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
    document_to_state,
    state_to_document,
)
from rf_manager.tax import TaxSummary, summarize_tax
from rf_manager.undo import UndoBuffer, UndoEntry
from rf_manager.validation import MutationValidator, parse_amount


T = TypeVar("T")

Amount = Union[Decimal, int, float, str]

# Fields of a transaction an edit may change. `source` is fixed: moving an
# entry between accounts would change which rules apply to it.
EDITABLE_TRANSACTION_FIELDS = frozenset({
    "kind",
    "timestamp",
    "amount_usd",
    "exchange_rate",
    "allocation_split",
    "notes",
})


class StateCoordinator:
    """
    Orchestrates mutation -> recalculation -> snapshot replacement.

    Public mutation methods raise RFManagerError subclasses when a request is
    refused; in that case nothing changed and no undo entry was created.
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        undo_window_seconds: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
        default_exchange_rate: Optional[Decimal] = None,
        validator: Optional[MutationValidator] = None,
    ):
        settings = get_settings()
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or MutationValidator()
        self._undo = UndoBuffer(
            window_seconds=undo_window_seconds or settings.undo_window_seconds,
            clock=clock,
        )
        self._lock = threading.RLock()
        self._state = AppState(settings=LedgerSettings(
            exchange_rate_kes_per_usd=default_exchange_rate or settings.default_exchange_rate,
        ))

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def state(self) -> AppState:
        """A copy of the live state; changing it has no effect."""
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def snapshot(self) -> DerivedSnapshot:
        with self._lock:
            return self._state.derived.model_copy(deep=True)

    @property
    def transactions(self) -> list[Transaction]:
        with self._lock:
            return list(self._state.transactions)

    def estimate_tax(self) -> TaxSummary:
        with self._lock:
            return summarize_tax(
                self._state.derived,
                self._state.settings.custom_tax_brackets,
            )

    # =========================================================================
    # Core cycle
    # =========================================================================

    def _run_mutation(
        self,
        operation: str,
        apply: Callable[[LedgerStore, GoalTracker, AppState], tuple[str, T]],
        present: Optional[Callable[[AppState, T], Any]] = None,
    ) -> Any:
        """
        Run one mutation through the full cycle.

        `apply` works on fresh copies of the ledger and goals and returns
        (undo description, value to hand back to the caller). `present`, when
        given, turns that value into the result read from the rebuilt state
        before the lock is released.
        """
        with self._lock:
            current = self._state
            rollback = current.model_copy(deep=True)
            ledger = LedgerStore(current.transactions)
            goals = GoalTracker(current.short_term_goals, current.long_term_goals)

            try:
                description, result = apply(ledger, goals, current)
            except RFManagerError as e:
                self._audit.log_mutation_rejected(operation, e)
                raise
            except ValidationError as e:
                error = InvalidTransactionError(str(e))
                self._audit.log_mutation_rejected(operation, error)
                raise error from e

            self._state = self._rebuild(ledger.all(), goals, current.settings)
            self._undo.register(description, rollback)
            self._persist()
            if present is not None:
                return present(self._state, result)
            return result

    @staticmethod
    def _rebuild(
        transactions: Sequence[Transaction],
        goals: GoalTracker,
        settings: LedgerSettings,
    ) -> AppState:
        derived = recalculate(transactions, goals.short_term_goals, goals.long_term_goals)
        return AppState(
            transactions=list(transactions),
            short_term_goals=derived.short_term_goals,
            long_term_goals=derived.long_term_goals,
            settings=settings,
            derived=derived,
        )

    def _persist(self) -> None:
        """Write the live state to storage. Failures are logged, never raised."""
        if self._storage is None:
            return
        try:
            self._storage.save(state_to_document(self._state))
            self._audit.log_snapshot_saved(len(self._state.transactions))
        except (StorageError, OSError) as e:
            self._audit.log_save_failed(e)

    # =========================================================================
    # Ledger mutations
    # =========================================================================

    def add_funded_profit(
        self,
        amount: Amount,
        overrides: Optional[Mapping[Union[AllocationBucket, str], Amount]] = None,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record a funded profit and split it across the buckets.

        The split table follows Account A's milestone status at the time of
        entry. `overrides` are the user's edits from the staging step; any
        part lowered below its default sends the difference to long_term.
        """
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            parsed = parse_amount(amount)
            split = split_funded_profit(
                parsed,
                milestone_reached=current.derived.account_a.has_reached_milestone,
            )
            if overrides:
                split = apply_overrides(split, self._parse_overrides(overrides))
            txn = self._new_transaction(
                current,
                source=TransactionSource.FUNDED,
                kind=TransactionKind.PROFIT,
                amount=parsed,
                allocation_split=split,
                notes=notes,
                timestamp=timestamp,
            )
            ledger.append(txn)
            return f"Added funded profit of ${parsed:.2f}", txn

        txn = self._run_mutation("add_funded_profit", apply)
        self._audit.log_transaction_added(
            txn.id, txn.source.value, txn.kind.value, str(txn.amount_usd)
        )
        return txn

    def add_transaction(
        self,
        account: Union[TransactionSource, str],
        kind: Union[TransactionKind, str],
        amount: Amount,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        """
        Record a profit, loss, deposit or withdrawal on Account A or B.

        Raises:
            InvalidAmountError: amount not a positive number
            InsufficientBalanceError: withdrawal not covered by the balance
            InvalidTransactionError: unknown account or kind
        """
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            source, txn_kind = self._parse_account_request(account, kind)
            parsed = self._validator.validate_transaction_request(
                source, txn_kind, amount, current.derived,
            )
            txn = self._new_transaction(
                current,
                source=source,
                kind=txn_kind,
                amount=parsed,
                notes=notes,
                timestamp=timestamp,
            )
            ledger.append(txn)
            label = "Account A" if source == TransactionSource.ACCOUNT_A else "Account B"
            return f"Added {label} {txn_kind.value} of ${parsed:.2f}", txn

        txn = self._run_mutation("add_transaction", apply)
        self._audit.log_transaction_added(
            txn.id, txn.source.value, txn.kind.value, str(txn.amount_usd)
        )
        return txn

    def withdraw_from_account_b(self, amount: Amount) -> Transaction:
        """Withdraw from Account B; 30% of the amount stays in the account."""
        return self.add_transaction(
            TransactionSource.ACCOUNT_B,
            TransactionKind.WITHDRAWAL,
            amount,
            notes="Withdrawal with distribution",
        )

    def delete_transaction(self, transaction_id: UUID) -> Transaction:
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            removed = ledger.remove(transaction_id)
            return "Deleted transaction", removed

        removed = self._run_mutation("delete_transaction", apply)
        self._audit.log_transaction_deleted(removed.id)
        return removed

    def edit_transaction(self, transaction_id: UUID, patch: Mapping[str, Any]) -> Transaction:
        """
        Replace fields of a transaction and recalculate from scratch.

        A new amount on a funded profit re-splits it with the table the
        original split was made from, unless the patch carries its own split.
        A patch that makes the record a withdrawal, or changes a withdrawal's
        amount, is checked against the balance the account would have without
        the original record.

        Raises:
            TransactionNotFoundError: unknown id
            InvalidAmountError: patched amount not a positive number
            InsufficientBalanceError: edited withdrawal not covered
            InvalidTransactionError: patch touches a fixed field or breaks
                the transaction rules
        """
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            unknown = set(patch) - EDITABLE_TRANSACTION_FIELDS
            if unknown:
                raise InvalidTransactionError(
                    f"Fields cannot be edited: {', '.join(sorted(unknown))}"
                )
            original = ledger.get(transaction_id)
            clean = dict(patch)
            if "amount_usd" in clean:
                clean["amount_usd"] = parse_amount(clean["amount_usd"])
                if (
                    original.source == TransactionSource.FUNDED
                    and "allocation_split" not in clean
                ):
                    clean["allocation_split"] = split_funded_profit(
                        clean["amount_usd"],
                        milestone_reached=original.allocation_split.b_allocation is not None,
                    )

            others = [t for t in ledger.all() if t.id != transaction_id]
            updated = ledger.replace(transaction_id, clean)

            if updated.kind == TransactionKind.WITHDRAWAL and ({"kind", "amount_usd"} & set(patch)):
                self._validator.validate_withdrawal(
                    updated.source,
                    updated.amount_usd,
                    recalculate(others, [], []),
                )
            return "Edited transaction", updated

        updated = self._run_mutation("edit_transaction", apply)
        self._audit.log_transaction_edited(updated.id, sorted(patch))
        return updated

    # =========================================================================
    # Goal mutations
    # =========================================================================

    def add_short_term_goal(self, label: str, target: Amount) -> ShortTermGoal:
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            goal = goals.add_short_term(label, target)
            return f"Added short-term goal '{goal.label}'", goal.id

        goal = self._run_mutation("add_short_term_goal", apply, self._goal_in_state)
        self._audit.log_goal_changed(
            AuditEventType.GOAL_ADDED, goal.id, f"Added short-term goal '{goal.label}'",
            {"target": str(goal.target), "priority": goal.priority},
        )
        return goal

    def add_long_term_goal(self, label: str, target: Amount) -> LongTermGoal:
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            goal = goals.add_long_term(label, target)
            return f"Added long-term goal '{goal.label}'", goal.id

        goal = self._run_mutation("add_long_term_goal", apply, self._goal_in_state)
        self._audit.log_goal_changed(
            AuditEventType.GOAL_ADDED, goal.id, f"Added long-term goal '{goal.label}'",
            {"target": str(goal.target)},
        )
        return goal

    def edit_goal(
        self,
        goal_id: UUID,
        label: Optional[str] = None,
        target: Optional[Amount] = None,
    ) -> Goal:
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            goal = goals.edit(goal_id, label=label, target=target)
            return f"Edited goal '{goal.label}'", goal.id

        goal = self._run_mutation("edit_goal", apply, self._goal_in_state)
        self._audit.log_goal_changed(
            AuditEventType.GOAL_UPDATED, goal.id, f"Edited goal '{goal.label}'",
        )
        return goal

    def delete_goal(self, goal_id: UUID) -> Goal:
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            goal = goals.delete(goal_id)
            return f"Deleted goal '{goal.label}'", goal

        goal = self._run_mutation("delete_goal", apply)
        self._audit.log_goal_changed(
            AuditEventType.GOAL_DELETED, goal.id, f"Deleted goal '{goal.label}'",
        )
        return goal

    def reorder_short_term_goals(self, goal_ids: Sequence[UUID]) -> list[ShortTermGoal]:
        """Set short-term priorities by position: the first id becomes priority 1."""
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            goals.reorder(list(goal_ids))
            return "Reordered short-term goals", None

        active = self._run_mutation(
            "reorder_short_term_goals",
            apply,
            lambda state, _: [g.model_copy() for g in state.short_term_goals if g.is_active],
        )
        self._audit.log_goal_changed(
            AuditEventType.GOALS_REORDERED, None, "Reordered short-term goals",
            {"order": [str(goal_id) for goal_id in goal_ids]},
        )
        return active

    def force_new_long_term_target(self, goal_id: UUID, new_target: Amount) -> LongTermGoal:
        """
        Archive an achieved long-term goal and start a new one with the same
        label. The long_term bucket carries over, so the new goal's progress
        starts from the existing bucket total.
        """
        def apply(ledger: LedgerStore, goals: GoalTracker, current: AppState):
            goal = goals.force_new_target(goal_id, new_target)
            return f"Set new target for '{goal.label}'", goal.id

        goal = self._run_mutation("force_new_long_term_target", apply, self._goal_in_state)
        self._audit.log_goal_changed(
            AuditEventType.GOAL_RETARGETED, goal.id, f"Set new target for '{goal.label}'",
            {"archived_goal_id": str(goal_id), "target": str(goal.target)},
        )
        return goal

    # =========================================================================
    # Settings
    # =========================================================================

    def update_settings(
        self,
        exchange_rate_kes_per_usd: Optional[Amount] = None,
        custom_tax_brackets: Optional[Sequence[TaxBracket]] = None,
    ) -> LedgerSettings:
        """
        Change user settings.

        Existing transactions keep the rate they were entered with, so no
        recalculation is needed and no undo entry is created.
        """
        with self._lock:
            update: dict[str, Any] = {}
            try:
                if exchange_rate_kes_per_usd is not None:
                    update["exchange_rate_kes_per_usd"] = parse_amount(
                        exchange_rate_kes_per_usd, "exchange rate"
                    )
            except RFManagerError as e:
                self._audit.log_mutation_rejected("update_settings", e)
                raise
            if custom_tax_brackets is not None:
                update["custom_tax_brackets"] = list(custom_tax_brackets)

            settings = self._state.settings.model_copy(update=update)
            self._state = self._state.model_copy(update={"settings": settings})
            self._audit.log_settings_updated({k: str(v) for k, v in update.items()})
            self._persist()
            return settings

    # =========================================================================
    # Undo
    # =========================================================================

    def pending_undos(self) -> list[UndoEntry]:
        with self._lock:
            return self._undo.pending()

    def undo(self, entry_id: UUID) -> AppState:
        """
        Restore the state captured before the entry's mutation.

        This is a full replacement, not a reverse fold.

        Raises:
            UndoExpiredError: entry dismissed, used or timed out
        """
        with self._lock:
            entry = self._undo.take(entry_id)
            self._state = entry.previous_state
            self._audit.log_undo_applied(entry.id, entry.description)
            self._persist()
            return self._state.model_copy(deep=True)

    def dismiss_undo(self, entry_id: UUID) -> bool:
        with self._lock:
            dismissed = self._undo.dismiss(entry_id)
            if dismissed:
                self._audit.log_undo_dismissed(entry_id)
            return dismissed

    # =========================================================================
    # Import / export
    # =========================================================================

    def export_document(self) -> dict[str, Any]:
        with self._lock:
            return state_to_document(self._state)

    def import_document(self, document: Any) -> AppState:
        """
        Replace the whole state with a stored document and recalculate.

        Raises:
            MalformedSnapshotError: the live state is left untouched
        """
        with self._lock:
            try:
                parsed = document_to_state(document)
            except MalformedSnapshotError as e:
                self._audit.log_snapshot_import_failed(e)
                raise

            goals = GoalTracker(parsed.short_term_goals, parsed.long_term_goals)
            self._state = self._rebuild(parsed.transactions, goals, parsed.settings)
            self._audit.log_snapshot_imported(len(parsed.transactions))
            self._persist()
            return self._state.model_copy(deep=True)

    def load(self) -> AppState:
        """
        Load the stored document at startup.

        No stored document means a fresh, empty ledger.

        Raises:
            MalformedSnapshotError: the stored document is unusable
            StorageError: the backend could not be read
        """
        with self._lock:
            document = self._storage.load() if self._storage else None
            if document is None:
                return self._state.model_copy(deep=True)
            try:
                parsed = document_to_state(document)
            except MalformedSnapshotError as e:
                self._audit.log_snapshot_import_failed(e)
                raise
            goals = GoalTracker(parsed.short_term_goals, parsed.long_term_goals)
            self._state = self._rebuild(parsed.transactions, goals, parsed.settings)
            return self._state.model_copy(deep=True)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _parse_account_request(
        account: Union[TransactionSource, str],
        kind: Union[TransactionKind, str],
    ) -> tuple[TransactionSource, TransactionKind]:
        try:
            source = TransactionSource(account)
            txn_kind = TransactionKind(kind)
        except ValueError as e:
            raise InvalidTransactionError(str(e))
        if source == TransactionSource.FUNDED:
            raise InvalidTransactionError("Use add_funded_profit for funded profits")
        return source, txn_kind

    @staticmethod
    def _parse_overrides(
        overrides: Mapping[Union[AllocationBucket, str], Amount],
    ) -> dict[AllocationBucket, Decimal]:
        parsed = {}
        for bucket, value in overrides.items():
            try:
                key = AllocationBucket(bucket)
            except ValueError:
                raise InvalidAllocationError(f"Unknown allocation bucket: {bucket}")
            parsed[key] = parse_amount(value, key.value, allow_zero=True)
        return parsed

    @staticmethod
    def _new_transaction(
        current: AppState,
        source: TransactionSource,
        kind: TransactionKind,
        amount: Decimal,
        allocation_split=None,
        notes: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        fields: dict[str, Any] = {
            "source": source,
            "kind": kind,
            "amount_usd": amount,
            "exchange_rate": current.settings.exchange_rate_kes_per_usd,
            "allocation_split": allocation_split,
            "notes": notes,
        }
        if timestamp is not None:
            fields["timestamp"] = timestamp
        return Transaction(**fields)

    @staticmethod
    def _goal_in_state(state: AppState, goal_id: UUID) -> Goal:
        for goal in (*state.short_term_goals, *state.long_term_goals):
            if goal.id == goal_id:
                return goal.model_copy()
        raise GoalNotFoundError(f"Goal not found: {goal_id}")


def create_coordinator(use_storage: bool = True) -> StateCoordinator:
    """
    Factory function to create a ready-to-use coordinator.

    Args:
        use_storage: Whether to persist to the configured JSON file.
                    Set to False to run purely in memory.

    Returns:
        A coordinator with the stored state loaded
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    storage = JsonFileSnapshotStorage(settings.data_file) if use_storage else None
    coordinator = StateCoordinator(storage=storage, audit_logger=AuditLogger())
    coordinator.load()
    return coordinator
