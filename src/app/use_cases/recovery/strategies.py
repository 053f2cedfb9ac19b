"""Built-in recovery strategies

Rename-specific strategies (basic rename fallback, metadata-only analysis) live
with the rename pipeline and are registered by the orchestrator.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from src.app.services.ai_feature_gate import AIFeatureGate
from src.domain.errors import ErrorKind
from .dtos import ErrorEnvelope, FailureContext

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "An unexpected error occurred. Please try again or rename the file manually."


class FallbackStrategy(ABC):
    name: str = "fallback"

    @abstractmethod
    async def handle(self, failure: Exception, kind: ErrorKind, context: FailureContext) -> ErrorEnvelope:
        pass


def generic_failure_envelope(
    kind: ErrorKind,
    context: FailureContext,
    message: str = GENERIC_FAILURE_MESSAGE,
) -> ErrorEnvelope:
    return ErrorEnvelope(
        success=False,
        error_kind=kind,
        message=message,
        manual_path_available=True,
        fallback_strategy_used="generic_error_response",
        resource_id=context.resource_id,
    )


class DisableAIFeatures(FallbackStrategy):
    """Configuration problems switch AI off process-wide until re-enabled"""

    name = "disable_ai_features"

    def __init__(self, gate: AIFeatureGate):
        self.gate = gate

    async def handle(self, failure, kind, context):
        self.gate.disable(str(failure))
        return ErrorEnvelope(
            success=False,
            error_kind=kind,
            message=(
                "AI features have been temporarily disabled due to a configuration problem. "
                "You can still rename files manually."
            ),
            manual_path_available=True,
            fallback_strategy_used=self.name,
            resource_id=context.resource_id,
            details={"reason": str(failure)},
        )


class ShowCreditError(FallbackStrategy):
    """No rename, report balance and shortfall. Never retried."""

    name = "show_credit_error"

    def __init__(self, ledger=None):
        self.ledger = ledger

    async def handle(self, failure, kind, context):
        balance: Optional[int] = getattr(failure, "balance", None)
        shortfall: Optional[int] = getattr(failure, "shortfall", None)

        if balance is None and self.ledger is not None and context.owner_id:
            balance = await self.ledger.balance(context.owner_id)

        return ErrorEnvelope(
            success=False,
            error_kind=kind,
            message=str(failure) or "Insufficient credits",
            manual_path_available=True,
            fallback_strategy_used=self.name,
            resource_id=context.resource_id,
            current_balance=balance,
            shortfall=shortfall,
        )


class ValidationErrorResponse(FallbackStrategy):
    """Reject the input. Malformed input has no manual path either."""

    name = "validation_error_response"

    async def handle(self, failure, kind, context):
        return ErrorEnvelope(
            success=False,
            error_kind=kind,
            message=str(failure),
            manual_path_available=False,
            fallback_strategy_used=self.name,
            resource_id=context.resource_id,
        )


class GenericErrorResponse(FallbackStrategy):
    name = "generic_error_response"

    async def handle(self, failure, kind, context):
        envelope = generic_failure_envelope(kind, context)
        retry_after = getattr(failure, "retry_after", None)
        if retry_after is not None:
            envelope.message = str(failure)
            envelope.retry_after = retry_after
        return envelope
