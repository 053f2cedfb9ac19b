"""DeductCredit Use Case

Deducts credits from an owner's local balance with pessimistic locking.
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
from .dtos import DeductCommandDTO, CreditTransactionResponseDTO
from .ledger_entry_writer import (
    DEFAULT_MAX_TRANSACTIONS,
    LedgerEntryWriter,
    insufficient_credit_error,
    to_transaction_dto,
    validate_amount,
    validate_operation,
    validate_owner,
)

logger = logging.getLogger(__name__)


class DeductCredit:
    """
    Use Case: Deduct credits from an owner's balance

    Business Rules:
    1. Amount is a positive integer, operation is a known credit operation
    2. Sufficient balance: balance >= amount, otherwise nothing changes
    3. Atomic: transaction row and balance update commit together
    4. Pessimistic locking: SELECT FOR UPDATE on the account row

    Flow:
    1. Validate input
    2. Get (or lazily create) the account with lock
    3. Check balance
    4. Append transaction, update balance and used_total
    5. Commit
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

    async def execute(self, command: DeductCommandDTO) -> Result[CreditTransactionResponseDTO]:
        invalid = (
            validate_owner(command.owner_id)
            or validate_amount(command.amount)
            or validate_operation(command.operation)
        )
        if invalid:
            return Return.err(invalid)

        try:
            # Step 1: Lock the account row
            account = await self.writer.get_or_create_account(command.owner_id, for_update=True)

            # Step 2: Validate sufficient balance
            if account.balance < command.amount:
                balance = account.balance
                await self.uow.rollback()
                logger.info(
                    f"Insufficient credits for {command.owner_id}: "
                    f"balance={balance}, required={command.amount}"
                )
                return Return.err(insufficient_credit_error(balance, command.amount))

            # Step 3: Append transaction and move the balance
            transaction = await self.writer.apply(
                account,
                TransactionType.DEDUCT,
                amount=command.amount,
                new_balance=account.balance - command.amount,
                operation=command.operation,
                resource_id=command.resource_id,
            )

            # Step 4: Commit
            await self.uow.commit()

            logger.info(
                f"Deducted {command.amount} credits from {command.owner_id} "
                f"for {command.operation} (balance={transaction.balance_after})"
            )
            return Return.ok(to_transaction_dto(transaction))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DEDUCT_CREDIT_FAILED",
                    message="Failed to deduct credit",
                    reason=str(e),
                )
            )
