"""CreditLedger facade

Single entry point over the credit use cases for the rename orchestrator and
the API layer. Expected outcomes come back as Result values; unexpected store
failures on the read paths raise LedgerFailure.
"""

from datetime import datetime
from typing import Callable, Optional

from libs.backoff import Sleeper, default_sleep
from libs.result import Result
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.settlement_service import RemoteSettlementService
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.settlement_record_repository import SettlementRecordRepository
from src.domain.base import generate_uuid, utcnow
from src.domain.errors import LedgerFailure
from .add_credits import AddCredits
from .check_credits import CheckCredits
from .deduct_credit import DeductCredit
from .deduct_credit_with_settlement import DeductCreditWithSettlement
from .dtos import (
    AddCreditsCommandDTO,
    CreditStatsDTO,
    CreditTransactionResponseDTO,
    DeductCommandDTO,
    FreeCreditsResultDTO,
    ResetCreditsCommandDTO,
    ResetResultDTO,
    SettlementDeductCommandDTO,
    SettlementResultDTO,
    TransactionListResponseDTO,
)
from .get_balance import GetBalance
from .get_credit_stats import GetCreditStats
from .initialize_free_credits import (
    DEFAULT_FREE_CREDITS,
    DEFAULT_MIN_ACCOUNT_AGE_SECONDS,
    InitializeFreeCredits,
)
from .ledger_entry_writer import DEFAULT_MAX_TRANSACTIONS
from .list_transactions import ListTransactions
from .reset_credits import ResetCredits


class CreditLedger:

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
        settlement_repo: Optional[SettlementRecordRepository] = None,
        settlement_service: Optional[RemoteSettlementService] = None,
        max_transactions: int = DEFAULT_MAX_TRANSACTIONS,
        free_credits_amount: int = DEFAULT_FREE_CREDITS,
        free_credits_min_account_age_seconds: int = DEFAULT_MIN_ACCOUNT_AGE_SECONDS,
        ai_enabled: bool = True,
        sleep: Sleeper = default_sleep,
        backoff_base: float = 1.0,
        request_id_factory: Callable[[], str] = generate_uuid,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.settlement_repo = settlement_repo
        self.settlement_service = settlement_service
        self.max_transactions = max_transactions
        self.free_credits_amount = free_credits_amount
        self.free_credits_min_account_age_seconds = free_credits_min_account_age_seconds
        self.ai_enabled = ai_enabled
        self.sleep = sleep
        self.backoff_base = backoff_base
        self.request_id_factory = request_id_factory
        self.clock = clock

    @property
    def settlement_configured(self) -> bool:
        return self.settlement_service is not None and self.settlement_repo is not None

    async def balance(self, owner_id: str) -> int:
        result = await GetBalance(self.uow, self.account_repo, self.transaction_repo).execute(owner_id)
        if result.is_err():
            raise LedgerFailure(result.error)
        return result.value.balance

    async def has_sufficient(self, owner_id: str, amount: int) -> bool:
        result = await CheckCredits(self.account_repo).execute(owner_id, amount)
        if result.is_err():
            raise LedgerFailure(result.error)
        return result.value

    async def deduct(
        self,
        owner_id: str,
        amount: int,
        operation: str,
        resource_id: Optional[int] = None,
    ) -> Result[CreditTransactionResponseDTO]:
        use_case = DeductCredit(
            self.uow, self.account_repo, self.transaction_repo, self.max_transactions, self.clock
        )
        return await use_case.execute(
            DeductCommandDTO(owner_id=owner_id, amount=amount, operation=operation, resource_id=resource_id)
        )

    async def deduct_with_remote_settlement(
        self,
        owner_id: str,
        amount: int,
        operation: str,
        resource_id: Optional[int] = None,
        max_retries: int = 3,
    ) -> Result[SettlementResultDTO]:
        use_case = DeductCreditWithSettlement(
            self.uow,
            self.account_repo,
            self.transaction_repo,
            self.settlement_repo,
            self.settlement_service,
            max_transactions=self.max_transactions,
            sleep=self.sleep,
            backoff_base=self.backoff_base,
            request_id_factory=self.request_id_factory,
            clock=self.clock,
        )
        return await use_case.execute(
            SettlementDeductCommandDTO(
                owner_id=owner_id,
                amount=amount,
                operation=operation,
                resource_id=resource_id,
                max_retries=max_retries,
            )
        )

    async def add(self, owner_id: str, amount: int, operation: str = "manual_add") -> Result[CreditTransactionResponseDTO]:
        use_case = AddCredits(self.uow, self.account_repo, self.transaction_repo, self.max_transactions, self.clock)
        return await use_case.execute(AddCreditsCommandDTO(owner_id=owner_id, amount=amount, operation=operation))

    async def reset(self, owner_id: str, new_balance: int) -> Result[ResetResultDTO]:
        use_case = ResetCredits(self.uow, self.account_repo, self.transaction_repo, self.max_transactions, self.clock)
        return await use_case.execute(ResetCreditsCommandDTO(owner_id=owner_id, new_balance=new_balance))

    async def initialize_free_credits(
        self, owner_id: str, registered_at: Optional[datetime] = None
    ) -> Result[FreeCreditsResultDTO]:
        use_case = InitializeFreeCredits(
            self.uow,
            self.account_repo,
            self.transaction_repo,
            amount=self.free_credits_amount,
            min_account_age_seconds=self.free_credits_min_account_age_seconds,
            ai_enabled=self.ai_enabled,
            max_transactions=self.max_transactions,
            clock=self.clock,
        )
        return await use_case.execute(owner_id, registered_at=registered_at)

    async def stats(self, owner_id: str) -> Result[CreditStatsDTO]:
        return await GetCreditStats(self.account_repo, self.transaction_repo, self.clock).execute(owner_id)

    async def history(self, owner_id: str, limit: int = 20, offset: int = 0) -> Result[TransactionListResponseDTO]:
        return await ListTransactions(self.transaction_repo).execute(owner_id, limit=limit, offset=offset)
