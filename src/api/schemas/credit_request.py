"""Request schemas for Credits API"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AddCreditsRequestSchema(BaseModel):
    amount: int = Field(..., gt=0, description="Credits to add (must be > 0)")
    operation: str = Field(default="manual_add", description="Ledger operation label")


class ResetCreditsRequestSchema(BaseModel):
    new_balance: int = Field(..., ge=0, description="Balance after the reset")


class FreeCreditsRequestSchema(BaseModel):
    """Admin grant; the registration time comes from the user directory"""

    registered_at: Optional[datetime] = Field(
        default=None,
        description="When the user account was registered; defaults to the credit account creation time"
    )
