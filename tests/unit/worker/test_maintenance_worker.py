"""Unit tests for MaintenanceWorker"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.worker.maintenance import MaintenanceWorker

MODULE = "src.worker.maintenance"


@pytest.fixture
def mock_session_factory():
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=session)


def cleanup_returning(deleted=0, error_message=None):
    result = MagicMock()
    result.is_err.return_value = error_message is not None
    result.value = MagicMock(deleted_count=deleted)
    result.error = MagicMock(message=error_message)
    use_case = MagicMock()
    use_case.execute = AsyncMock(return_value=result)
    return use_case


@pytest.mark.asyncio
@patch(f"{MODULE}.ApplicationConfig")
@patch(f"{MODULE}.SqlAlchemyUnitOfWork")
@patch(f"{MODULE}.SqlAlchemyCacheRepository")
@patch(f"{MODULE}.SqlAlchemyCreditTransactionRepository")
@patch(f"{MODULE}.SqlAlchemyAuditLogRepository")
@patch(f"{MODULE}.CacheManager")
@patch(f"{MODULE}.CleanupOldTransactions")
@patch(f"{MODULE}.create_async_engine")
@patch(f"{MODULE}.sessionmaker")
class TestMaintenanceWorkerRunOnce:

    async def test_run_once_purges_everything(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_cleanup_class,
        mock_cache_class,
        mock_audit_repo_class,
        mock_transaction_repo_class,
        mock_cache_repo_class,
        mock_uow_class,
        mock_app_config,
        mock_session_factory,
    ):
        """
        Given: Expired cache entries, old transactions and old audit events
        When: run_once is called
        Then: All three are removed and counted in the report
        """
        # Arrange
        mock_app_config.MAINTENANCE_TRANSACTION_RETENTION_DAYS = 90
        mock_app_config.MAINTENANCE_AUDIT_RETENTION_DAYS = 30
        mock_sessionmaker.return_value = mock_session_factory

        mock_cache_class.return_value.purge_expired = AsyncMock(return_value=4)
        mock_cleanup = cleanup_returning(deleted=12)
        mock_cleanup_class.return_value = mock_cleanup
        mock_audit_repo_class.return_value.delete_older_than = AsyncMock(return_value=3)
        mock_uow = MagicMock()
        mock_uow.commit = AsyncMock()
        mock_uow.rollback = AsyncMock()
        mock_uow_class.return_value = mock_uow

        # Act
        worker = MaintenanceWorker()
        report = await worker.run_once()

        # Assert
        assert report.cache_entries_purged == 4
        assert report.transactions_deleted == 12
        assert report.audit_events_deleted == 3
        mock_cleanup.execute.assert_awaited_once_with(days_to_keep=90)
        mock_uow.commit.assert_awaited_once()

    async def test_audit_failure_does_not_lose_other_counts(
        self,
        mock_sessionmaker,
        mock_create_engine,
        mock_cleanup_class,
        mock_cache_class,
        mock_audit_repo_class,
        mock_transaction_repo_class,
        mock_cache_repo_class,
        mock_uow_class,
        mock_app_config,
        mock_session_factory,
    ):
        # Arrange
        mock_sessionmaker.return_value = mock_session_factory
        mock_cache_class.return_value.purge_expired = AsyncMock(return_value=1)
        mock_cleanup_class.return_value = cleanup_returning(error_message="locked")
        mock_audit_repo_class.return_value.delete_older_than = AsyncMock(side_effect=Exception("locked"))
        mock_uow = MagicMock()
        mock_uow.commit = AsyncMock()
        mock_uow.rollback = AsyncMock()
        mock_uow_class.return_value = mock_uow

        # Act
        worker = MaintenanceWorker(transaction_retention_days=7, audit_retention_days=7)
        report = await worker.run_once()

        # Assert
        assert report.cache_entries_purged == 1
        assert report.transactions_deleted == 0
        assert report.audit_events_deleted == 0
        mock_uow.rollback.assert_awaited_once()


@pytest.mark.asyncio
class TestMaintenanceWorkerLifecycle:

    @patch(f"{MODULE}.ApplicationConfig")
    @patch(f"{MODULE}.asyncio.sleep")
    @patch(f"{MODULE}.create_async_engine")
    async def test_run_forever_sleeps_interval(self, mock_create_engine, mock_sleep, mock_app_config):
        mock_sleep.side_effect = KeyboardInterrupt("Test termination")

        worker = MaintenanceWorker()
        worker.run_once = AsyncMock(side_effect=Exception("disk full"))

        with pytest.raises(KeyboardInterrupt):
            await worker.run_forever(interval_seconds=3600)

        worker.run_once.assert_awaited_once()
        mock_sleep.assert_called_once_with(3600)

    @patch(f"{MODULE}.ApplicationConfig")
    @patch(f"{MODULE}.create_async_engine")
    async def test_shutdown_disposes_engine(self, mock_create_engine, mock_app_config):
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()
        mock_create_engine.return_value = mock_engine

        worker = MaintenanceWorker()
        await worker.shutdown()

        mock_engine.dispose.assert_awaited_once()
