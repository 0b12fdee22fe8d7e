"""
Embedding Store

Writes embedding rows with insert-if-absent semantics. The unique constraint
on content_id plus ``ON CONFLICT DO NOTHING`` means the backfill and the
post-save embedding can race freely without producing duplicates.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StoreError
from app.core.logging import get_logger
from app.models.content import ContentEmbedding, ContentItem


logger = get_logger(__name__)


@dataclass(frozen=True)
class EmbeddingSource:
    """
    Column values of a content item, read while the row is loaded.

    A rollback expires every ORM instance in the session and an async
    session cannot reload them implicitly, so loops that may roll back
    work from these snapshots instead of the instances.
    """

    id: uuid.UUID
    content_type: str
    topic_area: Optional[str]
    keywords: List[str]
    embedding_text: str

    @classmethod
    def from_item(cls, item: ContentItem) -> "EmbeddingSource":
        return cls(
            id=item.id,
            content_type=getattr(item.content_type, "value", item.content_type),
            topic_area=item.topic_area,
            keywords=list(item.keywords or []),
            embedding_text=item.embedding_text,
        )


class EmbeddingStore:
    """Service for reading and writing content embeddings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, content_id: uuid.UUID) -> bool:
        query = select(ContentEmbedding.id).where(ContentEmbedding.content_id == content_id)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to check embedding: {e}") from e
        return result.first() is not None

    async def count(self) -> int:
        try:
            result = await self.db.execute(select(func.count()).select_from(ContentEmbedding))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count embeddings: {e}") from e
        return result.scalar_one()

    async def insert_if_absent(
        self,
        item: Union[ContentItem, EmbeddingSource],
        content_text: str,
        embedding: Sequence[float],
        model: Optional[str] = None,
    ) -> bool:
        """
        Store an embedding for ``item`` unless one already exists.

        The insert runs in a savepoint and is committed on success, so a
        failure leaves the session usable for the next item.

        Returns:
            True if a row was written, False if the item already had one

        Raises:
            StoreError: If the insert fails
        """
        content_id = item.id
        content_type = getattr(item.content_type, "value", item.content_type)

        stmt = (
            insert(ContentEmbedding)
            .values(
                content_id=content_id,
                content_text=content_text,
                content_type=content_type,
                topic_area=item.topic_area,
                keywords=list(item.keywords or []),
                embedding=list(embedding),
                embedding_metadata={
                    "generated_at": datetime.now(timezone.utc).isoformat(),
                    "model": model,
                },
            )
            .on_conflict_do_nothing(index_elements=["content_id"])
            .returning(ContentEmbedding.id)
        )

        try:
            async with self.db.begin_nested():
                result = await self.db.execute(stmt)
                created = result.first() is not None
        except SQLAlchemyError as e:
            logger.error("embedding_insert_failed", content_id=str(content_id), error=str(e))
            raise StoreError(f"Failed to store embedding: {e}") from e

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("embedding_commit_failed", content_id=str(content_id), error=str(e))
            raise StoreError(f"Failed to store embedding: {e}") from e

        if created:
            logger.info("embedding_stored", content_id=str(content_id), model=model)
        else:
            logger.info("embedding_already_present", content_id=str(content_id))

        return created
