"""ReconcileSettlements Use Case

Reports remote settlements that never reached the local ledger. Nothing is
repaired automatically: a remote_confirmed record means the owner was charged
remotely but not locally, and an operator decides what to do.
"""

import time
from datetime import datetime, timedelta
from typing import Callable, List

from libs.result import Result, Return, Error
from src.app.repositories.settlement_record_repository import SettlementRecordRepository
from src.domain.base import as_utc, utcnow
from src.domain.settlement_record import SettlementRecord, SettlementStatus
from .dtos import SettlementReconciliationDTO, StuckSettlementDTO


class ReconcileSettlements:

    def __init__(
        self,
        settlement_repo: SettlementRecordRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settlement_repo = settlement_repo
        self.clock = clock

    async def execute(self, stale_after_seconds: int = 300, limit: int = 100) -> Result[SettlementReconciliationDTO]:
        started = time.monotonic()
        now = self.clock()
        cutoff = now - timedelta(seconds=stale_after_seconds)

        try:
            confirmed = await self.settlement_repo.list_by_status(
                SettlementStatus.REMOTE_CONFIRMED, updated_before=cutoff, limit=limit
            )
            pending = await self.settlement_repo.list_by_status(
                SettlementStatus.PENDING, updated_before=cutoff, limit=limit
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="SETTLEMENT_RECONCILIATION_FAILED",
                    message="Failed to load settlement records",
                    reason=str(e),
                )
            )

        return Return.ok(
            SettlementReconciliationDTO(
                checked_at=now,
                remote_confirmed_uncommitted=self._to_dtos(confirmed, now),
                pending_unresolved=self._to_dtos(pending, now),
                execution_time_ms=int((time.monotonic() - started) * 1000),
            )
        )

    @staticmethod
    def _to_dtos(records: List[SettlementRecord], now: datetime) -> List[StuckSettlementDTO]:
        return [
            StuckSettlementDTO(
                request_id=r.request_id,
                owner_id=r.owner_id,
                amount=r.amount,
                operation=r.operation,
                status=getattr(r.status, "value", r.status),
                attempts=r.attempts,
                remote_balance=r.remote_balance,
                error_message=r.error_message,
                age_seconds=int((as_utc(now) - as_utc(r.created_at)).total_seconds()),
            )
            for r in records
        ]
