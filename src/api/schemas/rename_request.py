"""Request schemas for Media API

Pydantic models for validating incoming HTTP requests. Name and option rules
are enforced by the orchestrator so that violations come back as envelopes.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class RenameRequestSchema(BaseModel):
    """
    Request schema for an AI rename

    Used for POST /media/{resource_id}/rename endpoint.
    """

    selected_name: Optional[str] = Field(
        default=None,
        description="Name chosen from earlier suggestions; generated when omitted"
    )
    options: Optional[Dict[str, Any]] = Field(
        default=None,
        description="max_retries (0-5), timeout (5-120), fallback_enabled, cache_enabled"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "selected_name": "red-bicycle-city-street",
                "options": {"max_retries": 3, "timeout": 30},
            }
        }


class ManualRenameRequestSchema(BaseModel):
    new_name: str = Field(..., description="New filename, path and extension are ignored")


class SuggestionsRequestSchema(BaseModel):
    count: int = Field(default=3, description="Number of suggestions (1-5)")
    options: Optional[Dict[str, Any]] = None


class BulkRenameRequestSchema(BaseModel):
    """
    Request schema for a bulk rename

    Used for POST /media/rename-bulk endpoint.
    """

    resource_ids: List[int] = Field(default_factory=list, description="Media resources, processed in order")
    options: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "resource_ids": [1187, 1188, 1190],
                "options": {"fallback_enabled": True},
            }
        }
