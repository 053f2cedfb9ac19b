"""Maintenance Background Worker

Housekeeping that keeps the store bounded:
- expired cache entries
- credit transactions past the retention period
- audit events past the retention period
"""

import asyncio
import logging
from datetime import timedelta
from typing import Optional
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyCacheRepository,
    SqlAlchemyCreditTransactionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.cache_manager import CacheManager
from src.app.use_cases.credits import CleanupOldTransactions
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


class MaintenanceReport(BaseModel):
    cache_entries_purged: int = 0
    transactions_deleted: int = 0
    audit_events_deleted: int = 0


class MaintenanceWorker:
    """
    Usage:
        worker = MaintenanceWorker()
        report = await worker.run_once()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        transaction_retention_days: Optional[int] = None,
        audit_retention_days: Optional[int] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.transaction_retention_days = (
            transaction_retention_days or ApplicationConfig.MAINTENANCE_TRANSACTION_RETENTION_DAYS
        )
        self.audit_retention_days = audit_retention_days or ApplicationConfig.MAINTENANCE_AUDIT_RETENTION_DAYS

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("MaintenanceWorker initialized")

    async def run_once(self) -> MaintenanceReport:
        report = MaintenanceReport()

        async with self.async_session_factory() as session:
            uow = SqlAlchemyUnitOfWork(session)

            # Step 1: Expired cache entries
            cache = CacheManager(uow, SqlAlchemyCacheRepository(session))
            report.cache_entries_purged = await cache.purge_expired()

            # Step 2: Old credit transactions
            cleanup = CleanupOldTransactions(uow, SqlAlchemyCreditTransactionRepository(session))
            result = await cleanup.execute(days_to_keep=self.transaction_retention_days)
            if result.is_err():
                logger.error(f"Transaction cleanup failed: {result.error.message}")
            else:
                report.transactions_deleted = result.value.deleted_count

            # Step 3: Old audit events
            audit_repo = SqlAlchemyAuditLogRepository(session)
            cutoff = utcnow() - timedelta(days=self.audit_retention_days)
            try:
                report.audit_events_deleted = await audit_repo.delete_older_than(cutoff)
                await uow.commit()
            except Exception as e:
                await uow.rollback()
                logger.error(f"Audit event cleanup failed: {e}")

        logger.info(
            f"Maintenance complete: {report.cache_entries_purged} cache entries, "
            f"{report.transactions_deleted} transactions, {report.audit_events_deleted} audit events removed"
        )
        return report

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting maintenance loop with {interval_seconds}s interval")

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Maintenance cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("MaintenanceWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.maintenance --once
        python -m src.worker.maintenance --interval 86400
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Maintenance Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.MAINTENANCE_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    args = parser.parse_args()

    worker = MaintenanceWorker()

    try:
        if args.once:
            report = await worker.run_once()
            print(f"Maintenance complete: {report.model_dump()}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
