"""Media Resource Domain Entity

Catalog row for an uploaded media file. ``filename`` is the logical name
(without extension) that a rename replaces.
"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import Field, Column
from sqlalchemy import JSON, Text
from src.domain.base import BaseModel, IdType, UTCDateTime, utcnow

SUPPORTED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
})


class MediaResource(BaseModel, table=True):
    __tablename__ = "media_resources"

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    owner_id: str = Field(index=True)
    filename: str = Field(index=True, description="File name without extension")
    extension: str = Field(default="", description="Extension without the dot")
    mime_type: str

    title: Optional[str] = None
    alt_text: Optional[str] = None
    caption: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    tags: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    modified_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)
    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utcnow)

    @property
    def full_filename(self) -> str:
        if self.extension:
            return f"{self.filename}.{self.extension}"
        return self.filename

    @property
    def is_supported(self) -> bool:
        return self.mime_type in SUPPORTED_MIME_TYPES
