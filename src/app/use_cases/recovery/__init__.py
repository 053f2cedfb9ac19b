from .dtos import AIAvailabilityDTO, BulkSummaryDTO, ErrorEnvelope, FailureContext
from .classifier import ErrorClassifier
from .strategies import (
    DisableAIFeatures,
    FallbackStrategy,
    GenericErrorResponse,
    ShowCreditError,
    ValidationErrorResponse,
    generic_failure_envelope,
)
from .dispatcher import FallbackDispatcher, summarize_bulk
from .check_availability import CheckAIAvailability

__all__ = [
    "AIAvailabilityDTO",
    "BulkSummaryDTO",
    "ErrorEnvelope",
    "FailureContext",
    "ErrorClassifier",
    "DisableAIFeatures",
    "FallbackStrategy",
    "GenericErrorResponse",
    "ShowCreditError",
    "ValidationErrorResponse",
    "generic_failure_envelope",
    "FallbackDispatcher",
    "summarize_bulk",
    "CheckAIAvailability",
]
