"""
Domain exceptions.

Every failure in the core is local and recoverable: the operation that
raised changed nothing, and the caller decides how to show the message.
"""


class RFManagerError(Exception):
    """Base exception for RF Manager."""
    pass


class InvalidAmountError(RFManagerError):
    """Amount is missing, non-numeric, non-finite or not positive."""
    pass


class InsufficientBalanceError(RFManagerError):
    """Withdrawal exceeds what the account holds."""
    pass


class CapacityExceededError(RFManagerError):
    """Too many active goals of one kind."""
    pass


class MalformedSnapshotError(RFManagerError):
    """A persisted document is missing fields or cannot be parsed."""
    pass


class InvalidAllocationError(RFManagerError):
    """An allocation override names a bucket the split does not have."""
    pass


class TransactionNotFoundError(RFManagerError):
    """No transaction with the given id."""
    pass


class GoalNotFoundError(RFManagerError):
    """No goal with the given id."""
    pass


class GoalStateError(RFManagerError):
    """The goal is not in a state that allows the requested operation."""
    pass


class UndoExpiredError(RFManagerError):
    """The undo entry was dismissed, already used, or timed out."""
    pass


class InvalidTransactionError(RFManagerError):
    """A transaction request or edit breaks the transaction rules."""
    pass
