"""Settlement Reconciliation Background Worker

Periodically reports remote credit settlements that never reached the local
ledger. Records are only reported; an operator decides how to repair them.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.settlement_record_repository import SqlAlchemySettlementRecordRepository
from src.app.use_cases.credits import ReconcileSettlements, SettlementReconciliationDTO
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


class SettlementReconcilerWorker:
    """
    Background worker for settlement reconciliation

    Usage:
        # Run once
        worker = SettlementReconcilerWorker()
        report = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=900)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        stale_after_seconds: Optional[int] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.stale_after_seconds = stale_after_seconds or ApplicationConfig.RECONCILIATION_STALE_AFTER_SECONDS

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("SettlementReconcilerWorker initialized")

    async def run_once(self) -> SettlementReconciliationDTO:
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Settlement reconciliation is disabled, skipping")
            return SettlementReconciliationDTO(
                checked_at=utcnow(),
                remote_confirmed_uncommitted=[],
                pending_unresolved=[],
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            settlement_repo = SqlAlchemySettlementRecordRepository(session)
            use_case = ReconcileSettlements(settlement_repo)

            result = await use_case.execute(stale_after_seconds=self.stale_after_seconds)

            if result.is_err():
                logger.error(f"Settlement reconciliation failed: {result.error.message}")
                raise RuntimeError(f"Settlement reconciliation failed: {result.error.message}")

            report = result.value

            # Charged remotely, never recorded locally
            if report.remote_confirmed_uncommitted:
                logger.error(
                    f"ALERT: {len(report.remote_confirmed_uncommitted)} settlements confirmed remotely "
                    f"but missing from the local ledger"
                )
                for s in report.remote_confirmed_uncommitted:
                    logger.error(
                        f"  - request {s.request_id}: owner={s.owner_id}, amount={s.amount}, "
                        f"operation={s.operation}, remote_balance={s.remote_balance}, age={s.age_seconds}s, "
                        f"error={s.error_message}"
                    )

            if report.pending_unresolved:
                logger.warning(
                    f"{len(report.pending_unresolved)} settlements still pending after "
                    f"{self.stale_after_seconds}s"
                )
                for s in report.pending_unresolved:
                    logger.warning(
                        f"  - request {s.request_id}: owner={s.owner_id}, amount={s.amount}, "
                        f"attempts={s.attempts}, age={s.age_seconds}s"
                    )

            return report

    async def run_forever(self, interval_seconds: int = 900):
        logger.info(f"Starting continuous settlement reconciliation with {interval_seconds}s interval")

        while True:
            try:
                report = await self.run_once()
                logger.info(
                    f"Settlement reconciliation cycle complete. "
                    f"{report.needs_attention} settlements need attention "
                    f"({report.execution_time_ms}ms)"
                )
            except Exception as e:
                logger.error(f"Settlement reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("SettlementReconcilerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.settlement_reconciler --once
        python -m src.worker.settlement_reconciler --interval 900
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Settlement Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    parser.add_argument(
        "--stale-after", type=int, default=None,
        help="Seconds after which an unfinished settlement is reported"
    )
    args = parser.parse_args()

    worker = SettlementReconcilerWorker(stale_after_seconds=args.stale_after)

    try:
        if args.once:
            report = await worker.run_once()
            print("Settlement reconciliation complete:")
            print(f"  Confirmed remotely, not committed: {len(report.remote_confirmed_uncommitted)}")
            print(f"  Pending: {len(report.pending_unresolved)}")
            print(f"  Execution time: {report.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
