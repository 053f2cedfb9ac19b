"""InitializeFreeCredits Use Case

One-time starting grant for new users.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.base import as_utc, utcnow
from src.domain.credit_transaction import TransactionType
from .dtos import FreeCreditsResultDTO
from .ledger_entry_writer import DEFAULT_MAX_TRANSACTIONS, LedgerEntryWriter, validate_owner

logger = logging.getLogger(__name__)

DEFAULT_FREE_CREDITS = 5
DEFAULT_MIN_ACCOUNT_AGE_SECONDS = 3600


class InitializeFreeCredits:
    """
    Use Case: Grant free credits exactly once per account

    Business Rules:
    1. Idempotent: an account that already received the grant gets nothing
    2. Only granted while AI features are enabled
    3. The account (or user registration when known) must be at least
       min_account_age_seconds old
    4. The grant is an ``add`` transaction with operation free_credits_init

    Not being eligible is not an error: the result carries granted=False and
    the reason.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
        amount: int = DEFAULT_FREE_CREDITS,
        min_account_age_seconds: int = DEFAULT_MIN_ACCOUNT_AGE_SECONDS,
        ai_enabled: bool = True,
        max_transactions: int = DEFAULT_MAX_TRANSACTIONS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.writer = LedgerEntryWriter(account_repo, transaction_repo, max_transactions, clock)
        self.amount = max(1, int(amount))
        self.min_account_age = timedelta(seconds=max(0, int(min_account_age_seconds)))
        self.ai_enabled = ai_enabled
        self.clock = clock

    async def execute(self, owner_id: str, registered_at: Optional[datetime] = None) -> Result[FreeCreditsResultDTO]:
        invalid = validate_owner(owner_id)
        if invalid:
            return Return.err(invalid)

        try:
            account = await self.writer.get_or_create_account(owner_id, for_update=True)

            reason = self._ineligibility_reason(account, registered_at)
            if reason:
                balance = account.balance
                await self.uow.commit()
                logger.debug(f"Free credits not granted to {owner_id}: {reason}")
                return Return.ok(
                    FreeCreditsResultDTO(owner_id=owner_id, granted=False, balance=balance, reason=reason)
                )

            transaction = await self.writer.apply(
                account,
                TransactionType.ADD,
                amount=self.amount,
                new_balance=account.balance + self.amount,
                operation="free_credits_init",
            )
            account.free_credits_granted = True
            account.free_credits_granted_at = self.clock()
            await self.writer.account_repo.save(account)
            await self.uow.commit()

            logger.info(f"Granted {self.amount} free credits to {owner_id}")
            return Return.ok(
                FreeCreditsResultDTO(
                    owner_id=owner_id,
                    granted=True,
                    amount=self.amount,
                    balance=transaction.balance_after,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="FREE_CREDITS_FAILED",
                    message="Failed to initialize free credits",
                    reason=str(e),
                )
            )

    def _ineligibility_reason(self, account, registered_at: Optional[datetime]) -> Optional[str]:
        if account.free_credits_granted:
            return "already_granted"
        if not self.ai_enabled:
            return "ai_disabled"
        reference = registered_at or account.created_at
        if reference is None or as_utc(self.clock()) - as_utc(reference) < self.min_account_age:
            return "account_too_new"
        return None
