"""ResetCredits Use Case

Privileged overwrite of an owner's balance.
"""

import logging
from datetime import datetime
from typing import Callable

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.base import utcnow
from src.domain.credit_transaction import TransactionType
from .dtos import ResetCreditsCommandDTO, ResetResultDTO
from .ledger_entry_writer import (
    DEFAULT_MAX_TRANSACTIONS,
    LedgerEntryWriter,
    to_transaction_dto,
    validate_owner,
)

logger = logging.getLogger(__name__)


class ResetCredits:
    """
    Use Case: Reset an owner's balance to a given value

    Business Rules:
    1. new_balance is a non-negative integer
    2. The reset transaction amount is new_balance - previous balance
    3. Resetting to the current balance is a no-op: no transaction is written
    4. used_total is left untouched
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
        max_transactions: int = DEFAULT_MAX_TRANSACTIONS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.writer = LedgerEntryWriter(account_repo, transaction_repo, max_transactions, clock)

    async def execute(self, command: ResetCreditsCommandDTO) -> Result[ResetResultDTO]:
        invalid = validate_owner(command.owner_id)
        if invalid:
            return Return.err(invalid)

        new_balance = command.new_balance
        if isinstance(new_balance, bool) or not isinstance(new_balance, int) or new_balance < 0:
            return Return.err(
                Error(
                    code="INVALID_AMOUNT",
                    message="Invalid balance: must be a non-negative integer",
                    reason=f"new_balance={new_balance!r}",
                )
            )

        try:
            account = await self.writer.get_or_create_account(command.owner_id, for_update=True)
            previous_balance = account.balance

            if previous_balance == new_balance:
                await self.uow.commit()
                return Return.ok(
                    ResetResultDTO(
                        owner_id=command.owner_id,
                        previous_balance=previous_balance,
                        new_balance=new_balance,
                        transaction=None,
                    )
                )

            transaction = await self.writer.apply(
                account,
                TransactionType.RESET,
                amount=new_balance - previous_balance,
                new_balance=new_balance,
                operation="admin_reset",
            )
            await self.uow.commit()

            logger.warning(
                f"Credit balance of {command.owner_id} reset from {previous_balance} to {new_balance}"
            )
            return Return.ok(
                ResetResultDTO(
                    owner_id=command.owner_id,
                    previous_balance=previous_balance,
                    new_balance=new_balance,
                    transaction=to_transaction_dto(transaction),
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="RESET_CREDITS_FAILED",
                    message="Failed to reset credits",
                    reason=str(e),
                )
            )
