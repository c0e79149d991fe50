"""
Mutation Validation

DESIGN DECISION: Every amount and every withdrawal is checked BEFORE the
ledger is touched. A rejected request is a no-op: nothing is appended,
nothing is recalculated, no undo entry is created.

Two checks:

AMOUNT:
- Must be numeric (Decimal, int, float or a numeric string)
- Must be finite
- Must be strictly positive

BALANCE (withdrawals only):
- No withdrawal while the account balance is zero or negative
- Account B withdrawals cannot exceed the current balance

IMPORTANT: Validation NEVER silently fixes issues. It raises with a message
the presentation layer can show as-is.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

from rf_manager.errors import InsufficientBalanceError, InvalidAmountError
from rf_manager.models.ledger import TransactionKind, TransactionSource
from rf_manager.models.snapshot import DerivedSnapshot


AmountInput = Union[Decimal, int, float, str]


def parse_amount(
    value: AmountInput,
    field: str = "amount",
    allow_zero: bool = False,
) -> Decimal:
    """
    Convert user input to a positive Decimal (or zero, with `allow_zero`).

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{field} must be a number")
    try:
        if isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(value.strip() if isinstance(value, str) else value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"{field} must be a number, got {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"{field} must be finite")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmountError(f"{field} must be greater than zero")
    return amount


class MutationValidator:
    """
    Checks a requested ledger mutation against the current derived state.

    Stateless apart from the snapshot it is given per call.
    """

    def validate_withdrawal(
        self,
        source: TransactionSource,
        amount: Decimal,
        snapshot: DerivedSnapshot,
    ) -> None:
        """
        Raises:
            InsufficientBalanceError: withdrawal not covered by the balance
        """
        if source == TransactionSource.ACCOUNT_A:
            balance = snapshot.account_a.balance
        elif source == TransactionSource.ACCOUNT_B:
            balance = snapshot.account_b.balance
        else:
            return

        if balance <= 0:
            raise InsufficientBalanceError(
                f"No balance available in {source.value} (balance {balance})"
            )
        if source == TransactionSource.ACCOUNT_B and amount > balance:
            raise InsufficientBalanceError(
                f"Withdrawal of {amount} exceeds {source.value} balance of {balance}"
            )

    def validate_transaction_request(
        self,
        source: TransactionSource,
        kind: TransactionKind,
        amount: AmountInput,
        snapshot: DerivedSnapshot,
    ) -> Decimal:
        """
        Validate a new account transaction and return the parsed amount.

        Raises:
            InvalidAmountError: bad amount
            InsufficientBalanceError: withdrawal not covered by the balance
        """
        parsed = parse_amount(amount)
        if kind == TransactionKind.WITHDRAWAL:
            self.validate_withdrawal(source, parsed, snapshot)
        return parsed
