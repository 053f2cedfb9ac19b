"""Integration tests for CreditLedger against SQLite"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from sqlmodel import select

from src.adapter.repositories import (
    SqlAlchemyCreditAccountRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemySettlementRecordRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.settlement_service import SettlementRejectedError, SettlementTransientError
from src.app.use_cases.credits.ledger import CreditLedger
from src.domain.base import utcnow
from src.domain.credit_transaction import CreditTransaction
from src.domain.settlement_record import SettlementRecord, SettlementStatus


def build_ledger(db_session, settlement_service=None, **kwargs):
    return CreditLedger(
        SqlAlchemyUnitOfWork(db_session),
        SqlAlchemyCreditAccountRepository(db_session),
        SqlAlchemyCreditTransactionRepository(db_session),
        settlement_repo=SqlAlchemySettlementRecordRepository(db_session),
        settlement_service=settlement_service,
        **kwargs,
    )


async def all_transactions(db_session, owner_id="user_1"):
    result = await db_session.execute(select(CreditTransaction).where(CreditTransaction.owner_id == owner_id))
    return list(result.scalars().all())


@pytest.mark.asyncio
class TestLocalLedger:

    async def test_deduct_until_insufficient(self, db_session, fund_account):
        """
        Given: Balance 5
        When: Deducting 3 twice
        Then: First leaves 2, second is an insufficient credit error and balance stays 2
        """
        # Arrange
        await fund_account("user_1", balance=5)
        ledger = build_ledger(db_session)

        # Act
        first = await ledger.deduct("user_1", 3, "ai_rename", resource_id=11)
        second = await ledger.deduct("user_1", 3, "ai_rename", resource_id=12)

        # Assert
        assert first.is_ok()
        assert first.value.balance_after == 2
        assert second.is_err()
        assert second.error.code == "INSUFFICIENT_CREDIT"
        assert await ledger.balance("user_1") == 2

        transactions = await all_transactions(db_session)
        assert len(transactions) == 1
        assert transactions[0].resource_id == 11

        account = await SqlAlchemyCreditAccountRepository(db_session).get_by_owner_id("user_1")
        assert account.used_total == 3

    async def test_balance_of_unknown_owner_is_zero(self, db_session):
        ledger = build_ledger(db_session)

        assert await ledger.balance("nobody") == 0
        assert await ledger.has_sufficient("nobody", 1) is False

    async def test_history_is_trimmed_to_max_transactions(self, db_session, fund_account):
        await fund_account("user_1", balance=10)
        ledger = build_ledger(db_session, max_transactions=3)

        for _ in range(5):
            result = await ledger.deduct("user_1", 1, "ai_rename")
            assert result.is_ok()

        history = await ledger.history("user_1", limit=20)
        assert history.value.total == 3
        assert [t.balance_after for t in history.value.transactions] == [5, 6, 7]
        assert await ledger.balance("user_1") == 5

    async def test_add_reset_and_stats(self, db_session, fund_account):
        await fund_account("user_1", balance=2)
        ledger = build_ledger(db_session)

        await ledger.add("user_1", 8, operation="manual_add")
        await ledger.deduct("user_1", 1, "ai_rename")
        reset = await ledger.reset("user_1", 4)
        stats = await ledger.stats("user_1")

        assert reset.value.previous_balance == 9
        assert reset.value.transaction.amount == -5
        assert stats.value.current_balance == 4
        assert stats.value.total_used == 1
        assert stats.value.total_transactions == 3
        assert stats.value.last_30_days_used == 1
        assert stats.value.last_30_days_added == 8

    async def test_timestamps_read_back_as_aware_utc(self, db_session, fund_account):
        """
        Given: An account created with a +02:00 timestamp
        When: The row is read back from the database
        Then: Its timestamps are timezone-aware UTC
        """
        # Arrange
        created_at = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        await fund_account("user_1", balance=5, created_at=created_at)
        db_session.expire_all()

        # Act
        account = await SqlAlchemyCreditAccountRepository(db_session).get_by_owner_id("user_1")

        # Assert
        assert account.created_at == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        assert account.created_at.tzinfo is timezone.utc
        assert account.last_updated.tzinfo is timezone.utc
        assert utcnow() - account.last_updated < timedelta(minutes=5)

    async def test_free_credits_granted_once(self, db_session):
        ledger = build_ledger(db_session, free_credits_amount=5)
        registered = utcnow() - timedelta(days=3)

        first = await ledger.initialize_free_credits("user_1", registered_at=registered)
        second = await ledger.initialize_free_credits("user_1", registered_at=registered)

        assert first.value.granted is True
        assert second.value.granted is False
        assert second.value.reason == "already_granted"
        assert await ledger.balance("user_1") == 5
        transactions = await all_transactions(db_session)
        assert [t.operation for t in transactions] == ["free_credits_init"]


@pytest.mark.asyncio
class TestSettledLedger:

    async def test_two_transient_failures_then_one_local_deduction(self, db_session, fund_account, settlement_stub):
        """
        Given: The settlement service times out twice, then confirms
        When: Deducting with max_retries=3
        Then: Exactly one local transaction exists and the record is committed
        """
        # Arrange
        await fund_account("user_1", balance=5)
        service = settlement_stub([
            SettlementTransientError("timeout"),
            SettlementTransientError("HTTP 503"),
            4,
        ])
        sleep = AsyncMock()
        ledger = build_ledger(db_session, service, sleep=sleep)

        # Act
        result = await ledger.deduct_with_remote_settlement("user_1", 1, "ai_rename", max_retries=3)

        # Assert
        assert result.is_ok()
        assert result.value.attempts == 3
        assert len({call["request_id"] for call in service.calls}) == 1
        assert await ledger.balance("user_1") == 4
        assert len(await all_transactions(db_session)) == 1

        record = await SqlAlchemySettlementRecordRepository(db_session).get_by_request_id(result.value.request_id)
        assert record.status == SettlementStatus.COMMITTED
        assert record.remote_balance == 4

    async def test_rejection_leaves_failed_record(self, db_session, fund_account, settlement_stub):
        await fund_account("user_1", balance=5)
        service = settlement_stub([SettlementRejectedError("no funds", reason="insufficient")])
        ledger = build_ledger(db_session, service, sleep=AsyncMock())

        result = await ledger.deduct_with_remote_settlement("user_1", 1, "ai_rename")

        assert result.error.code == "SETTLEMENT_INSUFFICIENT"
        assert await ledger.balance("user_1") == 5
        records = (await db_session.execute(select(SettlementRecord))).scalars().all()
        assert [r.status for r in records] == [SettlementStatus.FAILED]
