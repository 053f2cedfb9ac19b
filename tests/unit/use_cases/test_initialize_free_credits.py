"""Unit tests for InitializeFreeCredits use case"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.credits.initialize_free_credits import InitializeFreeCredits
from src.domain.credit_account import CreditAccount

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_account(created_at=NOW - timedelta(days=2), granted=False, balance=0):
    return CreditAccount(
        id=1,
        owner_id="user_1",
        balance=balance,
        used_total=0,
        free_credits_granted=granted,
        created_at=created_at,
        last_updated=created_at,
    )


@pytest.fixture
def mock_account_repo():
    repo = MagicMock()
    repo.get_by_owner_id = AsyncMock(return_value=make_account())
    repo.create = AsyncMock(side_effect=lambda a: a)
    repo.save = AsyncMock(side_effect=lambda a: a)
    return repo


@pytest.fixture
def mock_transaction_repo():
    repo = MagicMock()

    async def create(transaction):
        transaction.id = 10
        return transaction

    repo.create = AsyncMock(side_effect=create)
    repo.trim_to_latest = AsyncMock(return_value=0)
    return repo


def build(mock_uow, account_repo, transaction_repo, **kwargs):
    return InitializeFreeCredits(mock_uow, account_repo, transaction_repo, clock=lambda: NOW, **kwargs)


@pytest.mark.asyncio
class TestInitializeFreeCredits:

    async def test_grants_once(self, mock_uow, mock_account_repo, mock_transaction_repo):
        """
        Given: An account two days old that never received the grant
        When: Initializing free credits
        Then: 5 credits are added with operation free_credits_init and the flag is set
        """
        # Arrange
        account = make_account()
        mock_account_repo.get_by_owner_id.return_value = account
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo)

        # Act
        result = await use_case.execute("user_1")

        # Assert
        assert result.is_ok()
        assert result.value.granted is True
        assert result.value.amount == 5
        assert result.value.balance == 5
        assert account.free_credits_granted is True
        assert account.free_credits_granted_at == NOW
        transaction = mock_transaction_repo.create.await_args.args[0]
        assert transaction.operation == "free_credits_init"
        assert transaction.amount == 5
        mock_uow.commit.assert_awaited_once()

    async def test_second_call_is_noop(self, mock_uow, mock_account_repo, mock_transaction_repo):
        mock_account_repo.get_by_owner_id.return_value = make_account(granted=True, balance=3)
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo)

        result = await use_case.execute("user_1")

        assert result.is_ok()
        assert result.value.granted is False
        assert result.value.reason == "already_granted"
        assert result.value.balance == 3
        mock_transaction_repo.create.assert_not_called()

    async def test_not_granted_when_ai_disabled(self, mock_uow, mock_account_repo, mock_transaction_repo):
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo, ai_enabled=False)

        result = await use_case.execute("user_1")

        assert result.value.granted is False
        assert result.value.reason == "ai_disabled"

    async def test_new_account_is_too_new(self, mock_uow, mock_account_repo, mock_transaction_repo):
        mock_account_repo.get_by_owner_id.return_value = None
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo)

        result = await use_case.execute("user_1")

        assert result.value.granted is False
        assert result.value.reason == "account_too_new"
        mock_account_repo.create.assert_awaited_once()

    async def test_registration_date_overrides_account_age(
        self, mock_uow, mock_account_repo, mock_transaction_repo
    ):
        mock_account_repo.get_by_owner_id.return_value = make_account(created_at=NOW)
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo)

        result = await use_case.execute("user_1", registered_at=NOW - timedelta(hours=2))

        assert result.value.granted is True

    async def test_custom_amount_and_age(self, mock_uow, mock_account_repo, mock_transaction_repo):
        mock_account_repo.get_by_owner_id.return_value = make_account(created_at=NOW - timedelta(seconds=30))
        use_case = build(
            mock_uow, mock_account_repo, mock_transaction_repo, amount=10, min_account_age_seconds=0
        )

        result = await use_case.execute("user_1")

        assert result.value.granted is True
        assert result.value.amount == 10

    async def test_blank_owner(self, mock_uow, mock_account_repo, mock_transaction_repo):
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo)

        result = await use_case.execute("  ")

        assert result.is_err()
        assert result.error.code == "INVALID_OWNER"

    async def test_store_failure(self, mock_uow, mock_account_repo, mock_transaction_repo):
        mock_account_repo.get_by_owner_id.side_effect = Exception("connection lost")
        use_case = build(mock_uow, mock_account_repo, mock_transaction_repo)

        result = await use_case.execute("user_1")

        assert result.error.code == "FREE_CREDITS_FAILED"
        mock_uow.rollback.assert_awaited_once()
