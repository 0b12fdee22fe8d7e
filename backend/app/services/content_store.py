"""
Content Store

Persistence for content-library items: create, fetch, list, edit, delete and
per-type statistics, plus the query the embedding backfill uses to find items
that still need a vector.

Every database failure surfaces as StoreError.
"""

import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ContentNotFoundError, ContentValidationError, StoreError
from app.core.logging import get_logger
from app.models.content import ContentEmbedding, ContentItem, ContentType


logger = get_logger(__name__)


class ContentStore:
    """Service for reading and writing content-library items."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========================================
    # Writes
    # ========================================

    async def create(
        self,
        title: str,
        content: str,
        content_type: ContentType,
        topic_area: Optional[str] = None,
        keywords: Optional[Sequence[str]] = None,
        is_saved: bool = True,
    ) -> ContentItem:
        """
        Insert a new item and commit.

        Raises:
            StoreError: If the insert fails
        """
        item = ContentItem(
            title=title,
            content=content or "",
            content_type=ContentType(content_type),
            topic_area=topic_area,
            keywords=list(keywords or []),
            is_saved=is_saved,
        )

        try:
            self.db.add(item)
            await self.db.commit()
            await self.db.refresh(item)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("content_create_failed", content_type=str(content_type), error=str(e))
            raise StoreError(f"Failed to save content: {e}") from e

        logger.info("content_created", content_id=str(item.id), content_type=item.content_type.value)
        return item

    async def update(
        self,
        content_id: uuid.UUID,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> ContentItem:
        """
        Edit an item's title and/or body. Other fields are immutable.

        The item's embedding is left as-is.
        """
        item = await self.get(content_id)

        if title is not None:
            item.title = title
        if content is not None:
            item.content = content

        try:
            await self.db.commit()
            await self.db.refresh(item)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("content_update_failed", content_id=str(content_id), error=str(e))
            raise StoreError(f"Failed to update content: {e}") from e

        return item

    async def delete(self, content_id: uuid.UUID) -> None:
        """
        Hard-delete an item. Only social posts may be deleted.

        Raises:
            ContentNotFoundError: If the item does not exist
            ContentValidationError: If the item is not a social post
        """
        item = await self.get(content_id)

        if item.content_type != ContentType.SOCIAL:
            raise ContentValidationError(
                f"Only social content can be deleted (item is {item.content_type.value})"
            )

        try:
            await self.db.delete(item)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("content_delete_failed", content_id=str(content_id), error=str(e))
            raise StoreError(f"Failed to delete content: {e}") from e

        logger.info("content_deleted", content_id=str(content_id))

    # ========================================
    # Reads
    # ========================================

    async def get(self, content_id: uuid.UUID) -> ContentItem:
        """
        Fetch one item by id.

        Raises:
            ContentNotFoundError: If no item has this id
        """
        try:
            item = await self.db.get(ContentItem, content_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load content: {e}") from e

        if item is None:
            raise ContentNotFoundError(f"Content {content_id} not found")

        return item

    async def list(
        self,
        content_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ContentItem], int]:
        """
        List items newest first.

        Args:
            content_type: Restrict to one type ("all"/None = every type)
            search: Case-insensitive match on title, topic area or any keyword
            limit: Page size
            offset: Rows to skip

        Returns:
            (items, total matching rows)
        """
        filters = []

        if content_type and content_type != "all":
            try:
                filters.append(ContentItem.content_type == ContentType(content_type))
            except ValueError:
                raise ContentValidationError(f"Invalid content type: {content_type}") from None

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            filters.append(
                or_(
                    ContentItem.title.ilike(pattern),
                    ContentItem.topic_area.ilike(pattern),
                    func.array_to_string(ContentItem.keywords, " ").ilike(pattern),
                )
            )

        query = (
            select(ContentItem)
            .where(*filters)
            .order_by(ContentItem.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = select(func.count()).select_from(ContentItem).where(*filters)

        try:
            result = await self.db.execute(query)
            items = list(result.scalars().all())
            total = (await self.db.execute(count_query)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list content: {e}") from e

        return items, total

    async def stats(self) -> Dict[str, int]:
        """Count saved items per content type (every type present, zero if none)."""
        query = (
            select(ContentItem.content_type, func.count())
            .where(ContentItem.is_saved.is_(True))
            .group_by(ContentItem.content_type)
        )

        try:
            rows = (await self.db.execute(query)).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to compute content stats: {e}") from e

        counts = {value: 0 for value in ContentType.values()}
        for content_type, count in rows:
            counts[ContentType(content_type).value] = count
        return counts

    async def list_unembedded(self) -> List[ContentItem]:
        """Items with a non-empty body and no embedding row, oldest first."""
        query = (
            select(ContentItem)
            .outerjoin(ContentEmbedding, ContentEmbedding.content_id == ContentItem.id)
            .where(
                ContentEmbedding.id.is_(None),
                func.length(func.trim(ContentItem.content)) > 0,
            )
            .order_by(ContentItem.created_at.asc())
        )

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list unembedded content: {e}") from e

        return list(result.scalars().all())
