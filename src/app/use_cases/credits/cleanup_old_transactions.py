"""CleanupOldTransactions Use Case

Age-based retention for the transaction log, run by the maintenance worker.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.base import utcnow
from .dtos import CleanupResultDTO

logger = logging.getLogger(__name__)


class CleanupOldTransactions:

    def __init__(
        self,
        uow: UnitOfWork,
        transaction_repo: CreditTransactionRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.transaction_repo = transaction_repo
        self.clock = clock

    async def execute(self, days_to_keep: int = 90) -> Result[CleanupResultDTO]:
        if days_to_keep < 1:
            return Return.err(
                Error(
                    code="INVALID_RETENTION",
                    message="days_to_keep must be at least 1",
                    reason=f"days_to_keep={days_to_keep}",
                )
            )

        cutoff = self.clock() - timedelta(days=days_to_keep)
        try:
            deleted = await self.transaction_repo.delete_older_than(cutoff)
            await self.uow.commit()
            if deleted:
                logger.info(f"Removed {deleted} credit transactions older than {cutoff.isoformat()}")
            return Return.ok(CleanupResultDTO(deleted_count=deleted, cutoff=cutoff))
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CLEANUP_TRANSACTIONS_FAILED",
                    message="Failed to clean up old transactions",
                    reason=str(e),
                )
            )
