"""Data Transfer Objects for Rename Use Cases"""

from typing import List, Optional
from pydantic import BaseModel, Field

from src.app.use_cases.credits.dtos import CreditStatsDTO
from src.app.use_cases.recovery.dtos import BulkSummaryDTO, ErrorEnvelope


class RenameOptions(BaseModel):
    """
    Per-request tuning of a rename

    Out-of-range values are rejected (validation error), not clamped.
    """

    max_retries: int = Field(default=3, ge=0, le=5, description="Remote settlement attempts")
    timeout: int = Field(default=30, ge=5, le=120, description="Name generation timeout in seconds")
    fallback_enabled: bool = Field(default=True, description="Allow metadata-based fallbacks")
    cache_enabled: bool = Field(default=True, description="Use cached analysis/context/suggestions")


class BulkRenameResultDTO(BaseModel):
    batch_id: str = Field(..., description="Identifier shared by all history records of the batch")
    results: List[ErrorEnvelope] = Field(default_factory=list, description="One envelope per resource, input order")
    summary: BulkSummaryDTO


class CreditStatusDTO(BaseModel):
    owner_id: str
    balance: int
    stats: CreditStatsDTO
    ai_available: bool
    ai_unavailable_reason: Optional[str] = None
