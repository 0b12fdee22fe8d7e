"""
Similarity Search Service

Finds content-library items close to a query vector using pgvector cosine
distance over content_embeddings.

Search Flow:
------------
1. Ranked query: filter by type/topic, drop empty bodies, keep rows with
   similarity >= threshold, order by distance, truncate to limit.
2. If the ranked query fails (extension or operator missing, database
   error) the service degrades to an unranked sample of at most ``limit``
   rows. Those results carry ``similarity_score=None`` and the outcome is
   tagged ``method="fallback"``.
3. If the fallback also fails, SearchUnavailableError is raised.

Similarity = 1 - cosine_distance.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Literal, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import ConfigProvider, get_config_provider
from app.core.exceptions import SearchUnavailableError
from app.core.logging import get_logger
from app.models.content import ALL_CONTENT_TYPES, ContentEmbedding, ContentItem
from app.services.embedder import EmbeddingService


logger = get_logger(__name__)


SearchMethod = Literal["vector_search", "fallback"]


@dataclass
class SimilarityResult:
    content_id: uuid.UUID
    title: str
    excerpt: str
    content_type: str
    topic_area: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    similarity_score: Optional[float] = None
    created_at: Optional[datetime] = None

    @property
    def is_scored(self) -> bool:
        return self.similarity_score is not None


@dataclass
class SearchOutcome:
    results: List[SimilarityResult]
    method: SearchMethod = "vector_search"

    @property
    def degraded(self) -> bool:
        return self.method == "fallback"


def make_excerpt(content_text: str, length: int = 200) -> str:
    """First ``length`` characters of the embedded text, followed by '...'."""
    return (content_text or "")[:length] + "..."


def _scope(value: Optional[str]) -> Optional[str]:
    """Treat None, blank and 'all' as unscoped."""
    if value is None or not value.strip() or value == ALL_CONTENT_TYPES:
        return None
    return value


class SimilaritySearchService:
    """
    Vector similarity search over the content library.

    Usage:
    ------
    service = SimilaritySearchService(db, embedder)

    outcome = await service.search_text("desk booking", content_type="pillar")
    for result in outcome.results:
        print(result.title, result.similarity_score)
    """

    def __init__(
        self,
        db: AsyncSession,
        embedder: Optional[EmbeddingService] = None,
        config: Optional[ConfigProvider] = None,
    ):
        self.db = db
        self.embedder = embedder
        self.config = config or get_config_provider()
        self.excerpt_chars = self.config.get("RAG_EXCERPT_CHARS") or 200

    async def search_text(
        self,
        query: str,
        content_type: Optional[str] = None,
        topic_area: Optional[str] = None,
        limit: int = 5,
        min_similarity: float = 0.7,
    ) -> SearchOutcome:
        """
        Embed ``query`` and search with the resulting vector.

        Raises:
            ContentValidationError: If query is empty
            EmbeddingProviderError: If the query cannot be embedded
            SearchUnavailableError: If neither ranked nor fallback search runs
        """
        if self.embedder is None:
            raise RuntimeError("SimilaritySearchService needs an embedder for text queries")

        query_vector = await self.embedder.embed_text(query)
        return await self.search(
            query_vector,
            content_type=content_type,
            topic_area=topic_area,
            limit=limit,
            min_similarity=min_similarity,
        )

    async def search(
        self,
        query_vector: Sequence[float],
        content_type: Optional[str] = None,
        topic_area: Optional[str] = None,
        limit: int = 5,
        min_similarity: float = 0.7,
    ) -> SearchOutcome:
        """
        Return library items similar to ``query_vector``.

        Args:
            query_vector: Embedding of the query
            content_type: Type filter (None/'all' = any type)
            topic_area: Topic filter (None/'all' = any topic)
            limit: Maximum results
            min_similarity: Minimum similarity (0-1)

        Returns:
            SearchOutcome; an empty result list when nothing qualifies
        """
        content_type = _scope(content_type)
        topic_area = _scope(topic_area)

        try:
            results = await self._ranked_search(
                query_vector, content_type, topic_area, limit, min_similarity
            )
            logger.info(
                "similarity_search_completed",
                method="vector_search",
                results=len(results),
                content_type=content_type,
                topic_area=topic_area,
            )
            return SearchOutcome(results=results, method="vector_search")

        except SQLAlchemyError as e:
            logger.warning(
                "similarity_search_degraded",
                error=str(e),
                error_type=type(e).__name__,
            )

        try:
            results = await self._fallback_search(content_type, topic_area, limit)
        except SQLAlchemyError as e:
            logger.error("similarity_search_unavailable", error=str(e))
            raise SearchUnavailableError(f"Search failed: {e}") from e

        logger.info("similarity_search_completed", method="fallback", results=len(results))
        return SearchOutcome(results=results, method="fallback")

    def _filters(self, content_type: Optional[str], topic_area: Optional[str]) -> List[Any]:
        filters = [func.length(func.trim(ContentItem.content)) > 0]
        if content_type:
            filters.append(ContentEmbedding.content_type == content_type)
        if topic_area:
            filters.append(ContentEmbedding.topic_area == topic_area)
        return filters

    def _columns(self) -> List[Any]:
        return [
            ContentEmbedding.content_id,
            ContentEmbedding.content_text,
            ContentEmbedding.content_type,
            ContentEmbedding.topic_area,
            ContentEmbedding.keywords,
            ContentItem.title,
            ContentItem.created_at,
        ]

    async def _ranked_search(
        self,
        query_vector: Sequence[float],
        content_type: Optional[str],
        topic_area: Optional[str],
        limit: int,
        min_similarity: float,
    ) -> List[SimilarityResult]:
        # Lower distance = higher similarity
        distance = ContentEmbedding.embedding.cosine_distance(list(query_vector))

        query = (
            select(*self._columns(), distance.label("distance"))
            .join(ContentItem, ContentItem.id == ContentEmbedding.content_id)
            .where(*self._filters(content_type, topic_area))
            .where((1 - distance) >= min_similarity)
            .order_by(distance)
            .limit(limit)
        )

        # Savepoint keeps the session usable if pgvector rejects the query
        async with self.db.begin_nested():
            rows = (await self.db.execute(query)).all()

        return [self._to_result(row, 1.0 - float(row.distance)) for row in rows]

    async def _fallback_search(
        self,
        content_type: Optional[str],
        topic_area: Optional[str],
        limit: int,
    ) -> List[SimilarityResult]:
        query = (
            select(*self._columns())
            .join(ContentItem, ContentItem.id == ContentEmbedding.content_id)
            .where(*self._filters(content_type, topic_area))
            .limit(limit)
        )

        rows = (await self.db.execute(query)).all()
        return [self._to_result(row, None) for row in rows]

    def _to_result(self, row: Any, score: Optional[float]) -> SimilarityResult:
        return SimilarityResult(
            content_id=row.content_id,
            title=row.title or "Untitled",
            excerpt=make_excerpt(row.content_text, self.excerpt_chars),
            content_type=row.content_type,
            topic_area=row.topic_area,
            keywords=list(row.keywords or []),
            similarity_score=score,
            created_at=row.created_at,
        )
