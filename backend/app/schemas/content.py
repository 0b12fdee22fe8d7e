"""
Pydantic schemas for the content-library endpoints.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.content import ContentType


class ContentItemCreate(BaseModel):
    """Request schema for manually adding an item to the library."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(default="", description="Body (Markdown)")
    content_type: ContentType
    topic_area: Optional[str] = Field(default=None, max_length=255)
    keywords: List[str] = Field(default_factory=list)
    is_saved: bool = True

    @field_validator("keywords")
    @classmethod
    def strip_keywords(cls, v: List[str]) -> List[str]:
        """Drop blank keywords and surrounding whitespace."""
        return [k.strip() for k in v if k and k.strip()]


class ContentItemUpdate(BaseModel):
    """Manual edit: only title and body can change."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None


class ContentItemResponse(BaseModel):
    """Response schema for a content item."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    content: str
    content_type: ContentType
    topic_area: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    is_saved: bool
    created_at: datetime
    updated_at: datetime


class ContentListResponse(BaseModel):
    """Response schema for a page of library items."""

    items: List[ContentItemResponse]
    total: int
    limit: int
    offset: int


class ContentStatsResponse(BaseModel):
    """Saved-item counts per content type."""

    pillar: int = 0
    support: int = 0
    meta: int = 0
    social: int = 0


class ErrorResponse(BaseModel):
    """Error envelope returned by every endpoint on failure."""

    success: bool = False
    error: str
