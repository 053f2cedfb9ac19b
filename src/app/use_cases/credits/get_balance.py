"""GetBalance Use Case

Returns an owner's balance, creating the account on first access.
"""

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from .dtos import BalanceResponseDTO
from .ledger_entry_writer import LedgerEntryWriter, validate_owner


class GetBalance:

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
    ):
        self.uow = uow
        self.writer = LedgerEntryWriter(account_repo, transaction_repo)

    async def execute(self, owner_id: str) -> Result[BalanceResponseDTO]:
        invalid = validate_owner(owner_id)
        if invalid:
            return Return.err(invalid)

        try:
            account = await self.writer.get_or_create_account(owner_id)
            await self.uow.commit()

            return Return.ok(
                BalanceResponseDTO(
                    owner_id=account.owner_id,
                    balance=account.balance,
                    used_total=account.used_total,
                    free_credits_granted=account.free_credits_granted,
                    last_updated=account.last_updated,
                )
            )
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="GET_BALANCE_FAILED",
                    message="Failed to retrieve credit balance",
                    reason=str(e),
                )
            )
