"""AddCredits Use Case"""

import logging
from datetime import datetime
from typing import Callable

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.base import utcnow
from src.domain.credit_transaction import TransactionType
from .dtos import AddCreditsCommandDTO, CreditTransactionResponseDTO
from .ledger_entry_writer import (
    DEFAULT_MAX_TRANSACTIONS,
    LedgerEntryWriter,
    to_transaction_dto,
    validate_amount,
    validate_operation,
    validate_owner,
)

logger = logging.getLogger(__name__)


class AddCredits:
    """
    Use Case: Add credits to an owner's balance

    Creates the account if needed and appends an ``add`` transaction.
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

    async def execute(self, command: AddCreditsCommandDTO) -> Result[CreditTransactionResponseDTO]:
        invalid = (
            validate_owner(command.owner_id)
            or validate_amount(command.amount)
            or validate_operation(command.operation)
        )
        if invalid:
            return Return.err(invalid)

        try:
            account = await self.writer.get_or_create_account(command.owner_id, for_update=True)

            transaction = await self.writer.apply(
                account,
                TransactionType.ADD,
                amount=command.amount,
                new_balance=account.balance + command.amount,
                operation=command.operation,
            )
            await self.uow.commit()

            logger.info(
                f"Added {command.amount} credits to {command.owner_id} "
                f"via {command.operation} (balance={transaction.balance_after})"
            )
            return Return.ok(to_transaction_dto(transaction))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="ADD_CREDITS_FAILED",
                    message="Failed to add credits",
                    reason=str(e),
                )
            )
