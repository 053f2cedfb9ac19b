"""DeductCreditWithSettlement Use Case

Charges the remote credit service first and commits the local deduction only
after the remote side confirmed it.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from libs.backoff import Sleeper, backoff_delay, default_sleep
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.settlement_service import (
    RemoteSettlementService,
    SettlementConfirmation,
    SettlementNotConfiguredError,
    SettlementRejectedError,
    SettlementTransientError,
)
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.settlement_record_repository import SettlementRecordRepository
from src.domain.base import generate_uuid, utcnow
from src.domain.credit_transaction import TransactionType
from src.domain.settlement_record import SettlementRecord, SettlementStatus
from .dtos import SettlementDeductCommandDTO, SettlementResultDTO
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

REJECTION_CODES = {
    "auth": "SETTLEMENT_AUTH_FAILED",
    "bad_request": "SETTLEMENT_BAD_REQUEST",
    "insufficient": "SETTLEMENT_INSUFFICIENT",
    "declined": "SETTLEMENT_DECLINED",
}

MAX_RETRY_AFTER_SECONDS = 60.0


class DeductCreditWithSettlement:
    """
    Use Case: Deduct credits through the remote settlement service

    Business Rules:
    1. Local pre-check first: an owner who cannot afford the charge never
       reaches the remote service
    2. One request_id per deduction, sent on every attempt so the remote side
       can deduplicate retries
    3. Transient failures (timeout, connection, 5xx, 429, malformed response)
       are retried with exponential backoff (1s, 2s, 4s ...)
    4. Terminal failures (auth, bad request, insufficient on the server,
       declined) and missing configuration abort immediately
    5. Local ledger is mutated exactly once, and only after remote confirmation
    6. Every request is tracked in a SettlementRecord:
       pending -> remote_confirmed -> committed, or pending -> failed.
       A crash between confirmation and local commit leaves the record in
       remote_confirmed, where the reconciliation worker reports it.

    max_retries is the total number of remote attempts; at least one is made.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: CreditAccountRepository,
        transaction_repo: CreditTransactionRepository,
        settlement_repo: SettlementRecordRepository,
        settlement_service: Optional[RemoteSettlementService],
        max_transactions: int = DEFAULT_MAX_TRANSACTIONS,
        sleep: Sleeper = default_sleep,
        backoff_base: float = 1.0,
        request_id_factory: Callable[[], str] = generate_uuid,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.writer = LedgerEntryWriter(account_repo, transaction_repo, max_transactions, clock)
        self.transaction_repo = transaction_repo
        self.settlement_repo = settlement_repo
        self.settlement_service = settlement_service
        self.sleep = sleep
        self.backoff_base = backoff_base
        self.request_id_factory = request_id_factory
        self.clock = clock

    async def execute(self, command: SettlementDeductCommandDTO) -> Result[SettlementResultDTO]:
        invalid = (
            validate_owner(command.owner_id)
            or validate_amount(command.amount)
            or validate_operation(command.operation)
        )
        if invalid:
            return Return.err(invalid)

        if self.settlement_service is None:
            return Return.err(
                Error(
                    code="SETTLEMENT_NOT_CONFIGURED",
                    message="Credit settlement service is not configured",
                )
            )

        try:
            # Step 1: Local pre-check, no lock held across the remote call
            account = await self.writer.get_or_create_account(command.owner_id)
            if account.balance < command.amount:
                balance = account.balance
                await self.uow.commit()
                return Return.err(insufficient_credit_error(balance, command.amount))

            # Step 2: Persist the pending settlement before the first remote call
            record = await self.settlement_repo.create(
                SettlementRecord(
                    request_id=self.request_id_factory(),
                    owner_id=command.owner_id,
                    amount=command.amount,
                    operation=command.operation,
                    resource_id=command.resource_id,
                    status=SettlementStatus.PENDING,
                    created_at=self.clock(),
                    updated_at=self.clock(),
                )
            )
            await self.uow.commit()

            # Step 3: Remote round trip with bounded retry
            outcome = await self._settle_remotely(command, record)
            if isinstance(outcome, Error):
                await self._mark(record, SettlementStatus.FAILED, error_message=outcome.message)
                return Return.err(outcome)
            confirmation = outcome

            await self._mark(
                record,
                SettlementStatus.REMOTE_CONFIRMED,
                remote_balance=confirmation.remaining_balance,
                remote_transaction_id=confirmation.transaction_id,
            )

            # Step 4: Local commit
            return await self._commit_locally(command, record, confirmation)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SETTLEMENT_DEDUCT_FAILED",
                    message="Failed to deduct credit through settlement",
                    reason=str(e),
                )
            )

    async def _settle_remotely(self, command: SettlementDeductCommandDTO, record: SettlementRecord):
        """Returns a SettlementConfirmation or the terminal Error"""
        total_attempts = max(1, command.max_retries)
        last_error: Optional[Exception] = None

        for attempt in range(1, total_attempts + 1):
            record.attempts = attempt
            try:
                confirmation = await self.settlement_service.deduct(
                    owner_id=command.owner_id,
                    amount=command.amount,
                    request_id=record.request_id,
                    operation=command.operation,
                    attempt=attempt,
                )
            except SettlementNotConfiguredError as e:
                return Error(code="SETTLEMENT_NOT_CONFIGURED", message=str(e))
            except SettlementRejectedError as e:
                logger.warning(
                    f"Settlement {record.request_id} rejected ({e.reason}) for {command.owner_id}: {e}"
                )
                return Error(
                    code=REJECTION_CODES.get(e.reason, "SETTLEMENT_DECLINED"),
                    message=str(e),
                    reason=e.reason,
                )
            except SettlementTransientError as e:
                last_error = e
                logger.warning(
                    f"Settlement {record.request_id} attempt {attempt}/{total_attempts} failed: {e}"
                )
                if attempt < total_attempts:
                    delay = backoff_delay(attempt, base_delay=self.backoff_base)
                    if e.retry_after is not None:
                        delay = min(max(delay, float(e.retry_after)), MAX_RETRY_AFTER_SECONDS)
                    await self.sleep(delay)
                continue

            if not confirmation.confirmed:
                return Error(
                    code="SETTLEMENT_DECLINED",
                    message="Credit service did not confirm the deduction",
                    reason=f"request_id={record.request_id}",
                )
            return confirmation

        return Error(
            code="SETTLEMENT_UNAVAILABLE",
            message=f"Credit service unavailable after {total_attempts} attempts",
            reason=str(last_error) if last_error else None,
        )

    async def _commit_locally(
        self,
        command: SettlementDeductCommandDTO,
        record: SettlementRecord,
        confirmation: SettlementConfirmation,
    ) -> Result[SettlementResultDTO]:
        request_id = record.request_id
        try:
            existing = await self.transaction_repo.get_by_idempotency_key(request_id)
            if existing is None:
                account = await self.writer.get_or_create_account(command.owner_id, for_update=True)
                if account.balance < command.amount:
                    balance = account.balance
                    await self.uow.rollback()
                    message = (
                        f"Remote settlement {request_id} confirmed but local balance {balance} "
                        f"no longer covers {command.amount}"
                    )
                    logger.error(message)
                    await self._annotate(request_id, message)
                    return Return.err(Error(code="LOCAL_COMMIT_FAILED", message=message))

                transaction = await self.writer.apply(
                    account,
                    TransactionType.DEDUCT,
                    amount=command.amount,
                    new_balance=account.balance - command.amount,
                    operation=command.operation,
                    resource_id=command.resource_id,
                    idempotency_key=request_id,
                )
            else:
                transaction = existing

            record.status = SettlementStatus.COMMITTED
            record.updated_at = self.clock()
            await self.settlement_repo.save(record)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            message = f"Remote settlement {request_id} confirmed but local commit failed: {e}"
            logger.error(message)
            await self._annotate(request_id, message)
            return Return.err(Error(code="LOCAL_COMMIT_FAILED", message=message, reason=str(e)))

        if confirmation.remaining_balance is not None and confirmation.remaining_balance != transaction.balance_after:
            logger.warning(
                f"Balance mismatch for {command.owner_id} after settlement {request_id}: "
                f"remote={confirmation.remaining_balance}, local={transaction.balance_after}"
            )

        return Return.ok(
            SettlementResultDTO(
                request_id=request_id,
                attempts=record.attempts,
                transaction=to_transaction_dto(transaction),
                remote_balance=confirmation.remaining_balance,
                remote_transaction_id=confirmation.transaction_id,
            )
        )

    async def _mark(self, record: SettlementRecord, status: SettlementStatus, **fields):
        record.status = status
        record.updated_at = self.clock()
        for name, value in fields.items():
            setattr(record, name, value)
        await self.settlement_repo.save(record)
        await self.uow.commit()

    async def _annotate(self, request_id: str, message: str):
        """Attach an error to a settlement that stays remote_confirmed"""
        record = await self.settlement_repo.get_by_request_id(request_id)
        if record is None:
            return
        record.error_message = message
        record.updated_at = self.clock()
        await self.settlement_repo.save(record)
        await self.uow.commit()
