"""Failure taxonomy for rename operations

Every failure that reaches the orchestrator boundary is mapped onto exactly one
ErrorKind. Exceptions raised by collaborators carry their kind; ledger results
carry an error code that maps onto a kind.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration_error"
    AI_SERVICE = "ai_service_error"
    CONTENT_ANALYSIS = "content_analysis_error"
    CREDIT = "credit_error"
    VALIDATION = "validation_error"
    SYSTEM = "system_error"


# Ledger error codes -> kind. Unlisted codes are system errors.
LEDGER_ERROR_KINDS = {
    "INVALID_AMOUNT": ErrorKind.VALIDATION,
    "INVALID_OWNER": ErrorKind.VALIDATION,
    "INVALID_OPERATION": ErrorKind.VALIDATION,
    "INSUFFICIENT_CREDIT": ErrorKind.CREDIT,
    "SETTLEMENT_INSUFFICIENT": ErrorKind.CREDIT,
    "SETTLEMENT_NOT_CONFIGURED": ErrorKind.CONFIGURATION,
    "SETTLEMENT_AUTH_FAILED": ErrorKind.CONFIGURATION,
    "SETTLEMENT_BAD_REQUEST": ErrorKind.SYSTEM,
    "SETTLEMENT_UNAVAILABLE": ErrorKind.SYSTEM,
    "LOCAL_COMMIT_FAILED": ErrorKind.SYSTEM,
}


class RenameError(Exception):
    """Base class for failures with a known kind"""

    kind: ErrorKind = ErrorKind.SYSTEM
    code: str = "SYSTEM_ERROR"
    audit_event: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(RenameError):
    kind = ErrorKind.CONFIGURATION
    code = "CONFIGURATION_ERROR"


class AIServiceError(RenameError):
    kind = ErrorKind.AI_SERVICE
    code = "AI_SERVICE_ERROR"


class ContentAnalysisError(RenameError):
    kind = ErrorKind.CONTENT_ANALYSIS
    code = "CONTENT_ANALYSIS_ERROR"


class ValidationFailure(RenameError):
    kind = ErrorKind.VALIDATION
    code = "VALIDATION_ERROR"


class ResourceNotFound(ValidationFailure):
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_id: int):
        super().__init__(f"Invalid media resource: {resource_id} does not exist")
        self.resource_id = resource_id


class SystemFailure(RenameError):
    kind = ErrorKind.SYSTEM


class CreditError(RenameError):
    kind = ErrorKind.CREDIT
    code = "INSUFFICIENT_CREDIT"

    def __init__(self, message: str, balance: Optional[int] = None, required: Optional[int] = None):
        super().__init__(message)
        self.balance = balance
        self.required = required

    @property
    def shortfall(self) -> Optional[int]:
        if self.balance is None or self.required is None:
            return None
        return max(self.required - self.balance, 0)


class RateLimitExceeded(RenameError):
    kind = ErrorKind.SYSTEM
    code = "RATE_LIMIT_EXCEEDED"
    audit_event = "rate_limit_exceeded"

    def __init__(self, operation: str, retry_after: int):
        super().__init__(
            f"Rate limit exceeded for {operation}. Please wait {retry_after} seconds before trying again."
        )
        self.operation = operation
        self.retry_after = retry_after


class PermissionDenied(RenameError):
    kind = ErrorKind.SYSTEM
    code = "PERMISSION_DENIED"
    audit_event = "permission_denied"


class LedgerFailure(RenameError):
    """Wraps a ledger ``Error`` result so it can travel through the dispatcher"""

    def __init__(self, error, balance: Optional[int] = None, required: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.kind = LEDGER_ERROR_KINDS.get(error.code, ErrorKind.SYSTEM)
        self.balance = balance
        self.required = required

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def shortfall(self) -> Optional[int]:
        if self.balance is None or self.required is None:
            return None
        return max(self.required - self.balance, 0)
