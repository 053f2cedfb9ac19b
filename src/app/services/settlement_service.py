"""Remote Settlement Service Interface

Defines the contract for charging credits on the remote credit service before
the local ledger is mutated.
"""

from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel, Field


class SettlementConfirmation(BaseModel):
    confirmed: bool = Field(..., description="Remote service accepted the deduction")
    request_id: str = Field(..., description="Echo of the caller-generated request id")
    remaining_balance: Optional[int] = Field(default=None, description="Balance reported by the remote service")
    transaction_id: Optional[str] = Field(default=None, description="Remote transaction identifier")


class SettlementError(Exception):
    """Base class for settlement failures"""


class SettlementNotConfiguredError(SettlementError):
    """Endpoint or credentials missing. Never retried."""


class SettlementTransientError(SettlementError):
    """Timeout, connection failure, 5xx, 429 or malformed response. Retried with backoff."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class SettlementRejectedError(SettlementError):
    """
    Terminal rejection by the remote service. Never retried.

    reason is one of: auth, bad_request, insufficient, declined
    """

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class RemoteSettlementService(ABC):

    @abstractmethod
    async def deduct(
        self,
        owner_id: str,
        amount: int,
        request_id: str,
        operation: str,
        attempt: int = 1,
    ) -> SettlementConfirmation:
        """
        Deduct credits on the remote service

        The same request_id is sent on every retry so the remote side can
        deduplicate.

        Raises:
            SettlementNotConfiguredError, SettlementTransientError, SettlementRejectedError
        """
        pass
