"""
Content Library API Routes

This module provides REST API endpoints for the content library:
- List, search and count items
- Add items manually
- Edit title/body
- Delete social posts
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import ContentStoreDep
from app.core.logging import get_logger
from app.schemas.content import (
    ContentItemCreate,
    ContentItemResponse,
    ContentItemUpdate,
    ContentListResponse,
    ContentStatsResponse,
    ErrorResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/content", tags=["content"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get("", response_model=ContentListResponse)
async def list_content(
    store: ContentStoreDep,
    content_type: Optional[str] = Query(default=None, description="Type filter ('all' = none)"),
    search: Optional[str] = Query(default=None, description="Match title, topic or keyword"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    """List library items, newest first."""
    items, total = await store.list(
        content_type=content_type,
        search=search,
        limit=limit,
        offset=offset,
    )

    return ContentListResponse(
        items=[ContentItemResponse.model_validate(i) for i in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=ContentItemResponse, status_code=status.HTTP_201_CREATED)
async def create_content(payload: ContentItemCreate, store: ContentStoreDep):
    """Add an item to the library manually."""
    item = await store.create(
        title=payload.title,
        content=payload.content,
        content_type=payload.content_type,
        topic_area=payload.topic_area,
        keywords=payload.keywords,
        is_saved=payload.is_saved,
    )
    return ContentItemResponse.model_validate(item)


@router.get("/stats", response_model=ContentStatsResponse)
async def content_stats(store: ContentStoreDep):
    """Saved-item counts per content type."""
    return ContentStatsResponse(**await store.stats())


@router.get("/{content_id}", response_model=ContentItemResponse, responses=NOT_FOUND)
async def get_content(content_id: uuid.UUID, store: ContentStoreDep):
    item = await store.get(content_id)
    return ContentItemResponse.model_validate(item)


@router.patch("/{content_id}", response_model=ContentItemResponse, responses=NOT_FOUND)
async def update_content(
    content_id: uuid.UUID,
    payload: ContentItemUpdate,
    store: ContentStoreDep,
):
    """
    Edit an item's title and/or body.

    The existing embedding is not refreshed.
    """
    item = await store.update(content_id, title=payload.title, content=payload.content)
    logger.info("content_updated", content_id=str(content_id))
    return ContentItemResponse.model_validate(item)


@router.delete(
    "/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND},
)
async def delete_content(content_id: uuid.UUID, store: ContentStoreDep):
    """Delete a social post. Other content types cannot be deleted."""
    await store.delete(content_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
