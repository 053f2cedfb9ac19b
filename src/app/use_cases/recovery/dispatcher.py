"""Fallback Dispatcher

Classifies a failure once, logs it with context, audits security-relevant
failures and hands it to the strategy registered for its kind.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, Optional

from src.app.repositories.audit_log_repository import AuditLogRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.audit_event import AuditEvent
from src.domain.errors import ErrorKind, RenameError
from .classifier import ErrorClassifier
from .dtos import BulkSummaryDTO, ErrorEnvelope, FailureContext
from .strategies import (
    FallbackStrategy,
    GenericErrorResponse,
    ValidationErrorResponse,
    generic_failure_envelope,
)

logger = logging.getLogger(__name__)

# Kinds the user should see as warnings rather than errors in the logs
EXPECTED_KINDS = {ErrorKind.CREDIT, ErrorKind.VALIDATION}


class FallbackDispatcher:

    def __init__(
        self,
        classifier: Optional[ErrorClassifier] = None,
        uow: Optional[UnitOfWork] = None,
        audit_repo: Optional[AuditLogRepository] = None,
    ):
        self.classifier = classifier or ErrorClassifier()
        self.uow = uow
        self.audit_repo = audit_repo
        self.strategies: Dict[ErrorKind, FallbackStrategy] = {
            ErrorKind.VALIDATION: ValidationErrorResponse(),
            ErrorKind.SYSTEM: GenericErrorResponse(),
        }

    def register(self, kind: ErrorKind, strategy: FallbackStrategy):
        self.strategies[kind] = strategy

    async def handle(self, failure: Exception, context: FailureContext) -> ErrorEnvelope:
        kind = self.classifier.classify(failure)
        self._log(failure, kind, context)
        await self._audit(failure, context)

        strategy = self.strategies.get(kind) or self.strategies[ErrorKind.SYSTEM]
        try:
            envelope = await strategy.handle(failure, kind, context)
        except Exception as secondary:
            logger.error(
                f"Recovery strategy {strategy.name} failed for {context.operation} "
                f"(resource={context.resource_id}, owner={context.owner_id}). "
                f"Original {kind.value}: {failure!r}; strategy failure: {secondary!r}",
                exc_info=secondary,
            )
            envelope = generic_failure_envelope(kind, context)

        if envelope.error_kind is None and not envelope.success:
            envelope.error_kind = kind

        if not envelope.success and isinstance(failure, RenameError):
            envelope.details.setdefault("code", failure.code)

        # The rename was applied before the failure; the caller must still see the new name
        committed = context.state.get("committed_filename")
        if committed and envelope.filename is None:
            envelope.filename = committed
            envelope.details.setdefault("rename_committed", True)
        return envelope

    def _log(self, failure: Exception, kind: ErrorKind, context: FailureContext):
        message = (
            f"{kind.value} during {context.operation}: resource={context.resource_id}, "
            f"owner={context.owner_id}, batch={context.bulk_batch_id}, error={failure}"
        )
        if kind in EXPECTED_KINDS:
            logger.warning(message)
        elif kind == ErrorKind.SYSTEM:
            logger.error(message, exc_info=failure if isinstance(failure, BaseException) else None)
        else:
            logger.error(message)

    async def _audit(self, failure: Exception, context: FailureContext):
        event_type = getattr(failure, "audit_event", None)
        if not event_type or self.audit_repo is None:
            return

        details = {
            "operation": context.operation,
            "resource_id": context.resource_id,
            "message": str(failure),
        }
        retry_after = getattr(failure, "retry_after", None)
        if retry_after is not None:
            details["retry_after"] = retry_after

        try:
            await self.audit_repo.record(
                AuditEvent(event_type=event_type, owner_id=context.owner_id, details=details)
            )
            if self.uow is not None:
                await self.uow.commit()
        except Exception as e:
            logger.exception(f"Failed to persist audit event {event_type} for {context.owner_id}: {e}")
            if self.uow is not None:
                await self.uow.rollback()


def summarize_bulk(envelopes: Iterable[ErrorEnvelope]) -> BulkSummaryDTO:
    envelopes = list(envelopes)
    successful = [e for e in envelopes if e.success]
    failed = [e for e in envelopes if not e.success]
    errors_by_kind = Counter(e.error_kind.value for e in failed if e.error_kind is not None)

    return BulkSummaryDTO(
        total=len(envelopes),
        successful_count=len(successful),
        failed_count=len(failed),
        fallback_count=sum(1 for e in successful if e.fallback_strategy_used),
        errors_by_kind=dict(errors_by_kind),
    )
