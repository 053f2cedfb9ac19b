"""Shared write path for ledger mutations

Every balance change goes through LedgerEntryWriter.apply so that the
transaction row and the account update always happen together.
"""

from datetime import datetime
from typing import Callable, Optional

from libs.result import Error
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.base import utcnow
from src.domain.credit_account import CreditAccount
from src.domain.credit_transaction import CreditTransaction, TransactionType
from .dtos import ALLOWED_OPERATIONS, CreditTransactionResponseDTO

DEFAULT_MAX_TRANSACTIONS = 100


class LedgerEntryWriter:

    def __init__(
        self,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
        max_transactions: int = DEFAULT_MAX_TRANSACTIONS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.max_transactions = max_transactions
        self.clock = clock

    async def get_or_create_account(self, owner_id: str, for_update: bool = False) -> CreditAccount:
        account = await self.account_repo.get_by_owner_id(owner_id, for_update=for_update)
        if account is None:
            now = self.clock()
            account = await self.account_repo.create(
                CreditAccount(owner_id=owner_id, balance=0, used_total=0, created_at=now, last_updated=now)
            )
        return account

    async def apply(
        self,
        account: CreditAccount,
        transaction_type: TransactionType,
        amount: int,
        new_balance: int,
        operation: str,
        resource_id: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> CreditTransaction:
        """
        Append the transaction and move the account to ``new_balance``

        Caller holds the account lock and commits.
        """
        now = self.clock()
        transaction = CreditTransaction(
            account_id=account.id,
            owner_id=account.owner_id,
            transaction_type=transaction_type,
            amount=amount,
            balance_before=account.balance,
            balance_after=new_balance,
            operation=operation,
            resource_id=resource_id,
            idempotency_key=idempotency_key,
            created_at=now,
        )
        created = await self.transaction_repo.create(transaction)

        account.balance = new_balance
        if transaction_type == TransactionType.DEDUCT:
            account.used_total += amount
        account.last_updated = now
        await self.account_repo.save(account)

        await self.transaction_repo.trim_to_latest(account.id, self.max_transactions)
        return created


def validate_owner(owner_id: str) -> Optional[Error]:
    if not owner_id or not str(owner_id).strip():
        return Error(code="INVALID_OWNER", message="Owner id is required")
    return None


def validate_amount(amount) -> Optional[Error]:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        return Error(
            code="INVALID_AMOUNT",
            message="Invalid credit amount: must be a positive integer",
            reason=f"amount={amount!r}",
        )
    return None


def validate_operation(operation: str) -> Optional[Error]:
    if operation not in ALLOWED_OPERATIONS:
        return Error(
            code="INVALID_OPERATION",
            message=f"Invalid credit operation: {operation}",
            reason=f"allowed={sorted(ALLOWED_OPERATIONS)}",
        )
    return None


def insufficient_credit_error(balance: int, required: int) -> Error:
    shortfall = required - balance
    return Error(
        code="INSUFFICIENT_CREDIT",
        message=(
            f"You need {shortfall} more credits to perform this operation. "
            f"Current balance: {balance}, required: {required}"
        ),
        reason=f"balance={balance}, required={required}",
    )


def to_transaction_dto(transaction: CreditTransaction) -> CreditTransactionResponseDTO:
    transaction_type = transaction.transaction_type
    return CreditTransactionResponseDTO(
        transaction_id=transaction.id,
        owner_id=transaction.owner_id,
        transaction_type=getattr(transaction_type, "value", transaction_type),
        amount=transaction.amount,
        balance_before=transaction.balance_before,
        balance_after=transaction.balance_after,
        operation=transaction.operation,
        resource_id=transaction.resource_id,
        idempotency_key=transaction.idempotency_key,
        created_at=transaction.created_at,
    )
