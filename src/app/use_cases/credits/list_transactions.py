"""ListTransactions Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from .dtos import TransactionListResponseDTO
from .ledger_entry_writer import to_transaction_dto


class ListTransactions:

    def __init__(self, transaction_repo: CreditTransactionRepository):
        self.transaction_repo = transaction_repo

    async def execute(self, owner_id: str, limit: int = 20, offset: int = 0) -> Result[TransactionListResponseDTO]:
        if limit < 1 or limit > 100 or offset < 0:
            return Return.err(
                Error(
                    code="INVALID_PAGINATION",
                    message="limit must be between 1 and 100 and offset must be >= 0",
                    reason=f"limit={limit}, offset={offset}",
                )
            )

        try:
            transactions = await self.transaction_repo.list_by_owner(owner_id, limit=limit, offset=offset)
            total = await self.transaction_repo.count_by_owner(owner_id)
            return Return.ok(
                TransactionListResponseDTO(
                    owner_id=owner_id,
                    transactions=[to_transaction_dto(t) for t in transactions],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_TRANSACTIONS_FAILED",
                    message="Failed to list transactions",
                    reason=str(e),
                )
            )
