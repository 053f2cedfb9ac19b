"""GetCreditStats Use Case"""

from datetime import datetime, timedelta
from typing import Callable

from libs.result import Result, Return, Error
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.base import utcnow
from src.domain.credit_transaction import TransactionType
from .dtos import CreditStatsDTO


class GetCreditStats:
    """
    Use Case: Usage statistics of one account

    Read-only; an owner without an account gets all-zero stats.
    """

    def __init__(
        self,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.clock = clock

    async def execute(self, owner_id: str) -> Result[CreditStatsDTO]:
        try:
            account = await self.account_repo.get_by_owner_id(owner_id)
            if account is None:
                return Return.ok(
                    CreditStatsDTO(
                        owner_id=owner_id,
                        current_balance=0,
                        total_used=0,
                        free_credits_initialized=False,
                        last_updated=None,
                        total_transactions=0,
                        last_30_days_used=0,
                        last_30_days_added=0,
                    )
                )

            since = self.clock() - timedelta(days=30)
            used = await self.transaction_repo.sum_since(owner_id, TransactionType.DEDUCT, since)
            added = await self.transaction_repo.sum_since(owner_id, TransactionType.ADD, since)
            total = await self.transaction_repo.count_by_owner(owner_id)

            return Return.ok(
                CreditStatsDTO(
                    owner_id=owner_id,
                    current_balance=account.balance,
                    total_used=account.used_total,
                    free_credits_initialized=account.free_credits_granted,
                    last_updated=account.last_updated,
                    total_transactions=total,
                    last_30_days_used=used,
                    last_30_days_added=added,
                )
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="CREDIT_STATS_FAILED",
                    message="Failed to compute credit statistics",
                    reason=str(e),
                )
            )
