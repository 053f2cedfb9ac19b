"""Data Transfer Objects for failure recovery

ErrorEnvelope is the uniform result of every rename-side operation, whether it
succeeded, degraded to a fallback, or failed.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.errors import ErrorKind


class ErrorEnvelope(BaseModel):
    success: bool = Field(..., description="Operation completed (possibly through a fallback)")
    error_kind: Optional[ErrorKind] = Field(default=None, description="Classified failure kind, if any")
    message: str = Field(default="", description="Human readable outcome")
    manual_path_available: bool = Field(
        default=True,
        description="Whether the user can still rename manually (False only for invalid input)"
    )
    fallback_strategy_used: Optional[str] = Field(default=None, description="Recovery strategy that produced this result")

    method: Optional[str] = Field(default=None, description="ai, manual or fallback")
    resource_id: Optional[int] = None
    filename: Optional[str] = Field(default=None, description="Filename applied by the rename")
    suggestions: List[str] = Field(default_factory=list)
    credits_used: int = 0
    current_balance: Optional[int] = None
    shortfall: Optional[int] = None
    retry_after: Optional[int] = Field(default=None, description="Seconds until a rate limited call may be retried")
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error_kind": "credit_error",
                "message": "You need 1 more credits to perform this operation. Current balance: 0, required: 1",
                "manual_path_available": True,
                "fallback_strategy_used": "show_credit_error",
                "resource_id": 1187,
                "current_balance": 0,
                "shortfall": 1,
            }
        }


class FailureContext(BaseModel):
    """Where a failure happened; handed to the recovery strategy"""

    owner_id: Optional[str] = None
    operation: str
    resource_id: Optional[int] = None
    resource: Optional[Any] = Field(default=None, description="Loaded MediaResource, when available")
    selected_name: Optional[str] = None
    suggestion_count: Optional[int] = None
    fallback_enabled: bool = True
    bulk_batch_id: Optional[str] = None
    state: Dict[str, Any] = Field(default_factory=dict, description="Partial pipeline results")


class BulkSummaryDTO(BaseModel):
    total: int
    successful_count: int
    failed_count: int
    fallback_count: int
    errors_by_kind: Dict[str, int] = Field(default_factory=dict)


class AIAvailabilityDTO(BaseModel):
    available: bool
    reason: Optional[str] = None
    balance: Optional[int] = None
    gate: Dict[str, Any] = Field(default_factory=dict)
