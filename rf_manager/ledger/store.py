"""
Ledger Store

Ordered, in-memory collection of transactions. This is the single source of
truth every derived number is computed from.

The store only keeps records. It does not recalculate anything and it does
not persist anything; the coordinator does both.
"""

from typing import Any, Iterable, Mapping
from uuid import UUID

from rf_manager.errors import TransactionNotFoundError
from rf_manager.models.ledger import Transaction


class LedgerStore:
    """
    Append/remove/replace over an ordered list of transactions.

    Insertion order is preserved; it is the tiebreak for transactions that
    share a timestamp.
    """

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions: list[Transaction] = list(transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def _index_of(self, transaction_id: UUID) -> int:
        for idx, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return idx
        raise TransactionNotFoundError(f"Transaction not found: {transaction_id}")

    def get(self, transaction_id: UUID) -> Transaction:
        return self._transactions[self._index_of(transaction_id)]

    def append(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    def remove(self, transaction_id: UUID) -> Transaction:
        """Remove and return the transaction with this id."""
        return self._transactions.pop(self._index_of(transaction_id))

    def replace(self, transaction_id: UUID, patch: Mapping[str, Any]) -> Transaction:
        """
        Replace a transaction with a patched copy, in the same position.

        The merged record is validated again, so a patch cannot break the
        transaction rules. The id cannot be patched.

        Raises:
            TransactionNotFoundError: unknown id
            pydantic.ValidationError: the patched record is invalid
        """
        idx = self._index_of(transaction_id)
        current = self._transactions[idx]
        merged = {**current.model_dump(), **patch, "id": current.id}
        updated = Transaction.model_validate(merged)
        self._transactions[idx] = updated
        return updated

    def all(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)
