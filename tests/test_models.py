"""
Tests for RF Manager models

Test strategy:
1. Unit tests for individual components (models, splits, engine)
2. Flow tests through the coordinator with in-memory storage
3. No files or network outside tmp_path
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from rf_manager.allocation import split_funded_profit
from rf_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from rf_manager.models.goal import LongTermGoal, ShortTermGoal
from rf_manager.models.ledger import (
    AllocationBucket,
    Transaction,
    TransactionKind,
    TransactionSource,
)
from rf_manager.models.snapshot import AllocationTotals
from rf_manager.models.state import TaxBracket


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_account_transaction_creation(self):
        """Test a plain Account A profit."""
        txn = Transaction(
            source=TransactionSource.ACCOUNT_A,
            kind=TransactionKind.PROFIT,
            amount_usd=Decimal("250"),
            exchange_rate=Decimal("130"),
        )
        assert txn.amount_usd == Decimal("250")
        assert txn.allocation_split is None
        assert txn.timestamp.tzinfo is not None

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Transaction(
                source=TransactionSource.ACCOUNT_B,
                kind=TransactionKind.DEPOSIT,
                amount_usd=Decimal("-1"),
                exchange_rate=Decimal("130"),
            )

    def test_funded_requires_split(self):
        """Test funded profit without an allocation split."""
        with pytest.raises(ValidationError, match="requires an allocation split"):
            Transaction(
                source=TransactionSource.FUNDED,
                kind=TransactionKind.PROFIT,
                amount_usd=Decimal("100"),
                exchange_rate=Decimal("130"),
            )

    def test_funded_only_allows_profit(self):
        """Test funded transactions cannot be withdrawals."""
        with pytest.raises(ValidationError, match="cannot be of kind"):
            Transaction(
                source=TransactionSource.FUNDED,
                kind=TransactionKind.WITHDRAWAL,
                amount_usd=Decimal("100"),
                exchange_rate=Decimal("130"),
                allocation_split=split_funded_profit(Decimal("100"), False),
            )

    def test_account_transaction_rejects_split(self):
        """Test only funded profit may carry a split."""
        with pytest.raises(ValidationError, match="Only funded profit"):
            Transaction(
                source=TransactionSource.ACCOUNT_A,
                kind=TransactionKind.PROFIT,
                amount_usd=Decimal("100"),
                exchange_rate=Decimal("130"),
                allocation_split=split_funded_profit(Decimal("100"), False),
            )

    def test_transaction_is_frozen(self):
        """Test transactions cannot be mutated in place."""
        txn = Transaction(
            source=TransactionSource.ACCOUNT_A,
            kind=TransactionKind.PROFIT,
            amount_usd=Decimal("1"),
            exchange_rate=Decimal("130"),
        )
        with pytest.raises(ValidationError):
            txn.amount_usd = Decimal("2")

    def test_naive_timestamp_becomes_utc(self):
        """Test naive timestamps are read as UTC."""
        txn = Transaction(
            source=TransactionSource.ACCOUNT_B,
            kind=TransactionKind.PROFIT,
            amount_usd=Decimal("1"),
            exchange_rate=Decimal("130"),
            timestamp=datetime(2025, 3, 1, 12, 0),
        )
        assert txn.timestamp == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_taxable_flags(self):
        """Test which transactions count as taxable."""
        funded = Transaction(
            source=TransactionSource.FUNDED,
            kind=TransactionKind.PROFIT,
            amount_usd=Decimal("100"),
            exchange_rate=Decimal("130"),
            allocation_split=split_funded_profit(Decimal("100"), False),
        )
        withdrawal = Transaction(
            source=TransactionSource.ACCOUNT_A,
            kind=TransactionKind.WITHDRAWAL,
            amount_usd=Decimal("10"),
            exchange_rate=Decimal("130"),
        )
        profit = Transaction(
            source=TransactionSource.ACCOUNT_B,
            kind=TransactionKind.PROFIT,
            amount_usd=Decimal("10"),
            exchange_rate=Decimal("130"),
        )
        assert funded.is_taxable is True
        assert withdrawal.is_taxable is True
        assert profit.is_taxable is False

    def test_serializes_with_document_keys(self):
        """Test camelCase keys and the amountUSD alias."""
        txn = Transaction(
            source=TransactionSource.FUNDED,
            kind=TransactionKind.PROFIT,
            amount_usd=Decimal("100"),
            exchange_rate=Decimal("130"),
            allocation_split=split_funded_profit(Decimal("100"), False),
        )
        data = txn.model_dump(mode="json", by_alias=True)
        assert "amountUSD" in data
        assert "exchangeRate" in data
        assert "allocationSplit" in data
        assert "shortTerm" in data["allocationSplit"]


class TestAllocationModels:
    """Tests for split and totals models."""

    def test_split_parts_skip_missing_b_allocation(self):
        """Test pre-milestone splits have no B part."""
        split = split_funded_profit(Decimal("100"), milestone_reached=False)
        assert AllocationBucket.B_ALLOCATION not in split.parts()
        assert split.total == Decimal("100")

    def test_totals_add_and_get(self):
        """Test bucket access through the enum."""
        totals = AllocationTotals()
        totals.add(AllocationBucket.CARD, Decimal("12.5"))
        totals.add(AllocationBucket.CARD, Decimal("2.5"))
        assert totals.get(AllocationBucket.CARD) == Decimal("15")
        assert totals.card == Decimal("15")
        assert len(totals.as_dict()) == 14


class TestGoalModels:
    """Tests for goal models."""

    def test_goal_defaults(self):
        """Test a new goal starts active with no progress."""
        goal = ShortTermGoal(label="Laptop", target=Decimal("800"))
        assert goal.priority == 1
        assert goal.progress == 0
        assert goal.is_active is True

    def test_goal_target_must_be_positive(self):
        """Test zero targets are rejected."""
        with pytest.raises(ValidationError):
            LongTermGoal(label="House", target=Decimal("0"))

    def test_priority_is_one_or_two(self):
        """Test priorities outside 1..2 are rejected."""
        with pytest.raises(ValidationError):
            ShortTermGoal(label="Trip", target=Decimal("100"), priority=3)


class TestTaxBracketModel:
    def test_max_below_min_rejected(self):
        with pytest.raises(ValidationError, match="Bracket max cannot be below min"):
            TaxBracket(min=Decimal("100"), max=Decimal("50"), rate=Decimal("0.1"))


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Test transaction added",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.transaction_added(
            transaction_id=uuid4(),
            source="funded",
            kind="profit",
            amount="1000",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["details"]["amount_usd"] == "1000"
        assert log_dict["is_user_action"] is True

    def test_mutation_rejected_is_warning(self):
        """Test AuditEventBuilder.mutation_rejected."""
        event = AuditEventBuilder.mutation_rejected(
            operation="add_transaction",
            error_type="InvalidAmountError",
            error_message="amount must be greater than zero",
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.details["operation"] == "add_transaction"
        assert event.error_message == "amount must be greater than zero"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
