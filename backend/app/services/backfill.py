"""
Bulk Embedding Backfill

Embeds every content item that has a body but no embedding yet. Items are
processed one at a time with a short delay between them; one failing item
is recorded and the batch moves on.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from app.core.config import ConfigProvider, get_config_provider
from app.core.exceptions import ContentPilotError, ContentValidationError
from app.core.logging import get_logger
from app.services.content_store import ContentStore
from app.services.embedder import EmbeddingService
from app.services.embedding_store import EmbeddingSource, EmbeddingStore


logger = get_logger(__name__)


@dataclass
class BackfillItemOutcome:
    content_id: uuid.UUID
    status: Literal["success", "error"]
    error: Optional[str] = None


@dataclass
class BackfillReport:
    results: List[BackfillItemOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.status == "success")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "error")


class EmbeddingBackfill:
    """
    Creates missing embeddings for the content library.

    Running it twice in a row writes nothing on the second run.
    """

    def __init__(
        self,
        content_store: ContentStore,
        embedding_store: EmbeddingStore,
        embedder: EmbeddingService,
        config: Optional[ConfigProvider] = None,
        delay_seconds: Optional[float] = None,
    ):
        self.content_store = content_store
        self.embedding_store = embedding_store
        self.embedder = embedder
        self.config = config or get_config_provider()

        if delay_seconds is None:
            delay_seconds = self.config.get("BACKFILL_DELAY_SECONDS")
        self.delay_seconds = 0.1 if delay_seconds is None else float(delay_seconds)

    async def embed_one(self, content_id: uuid.UUID) -> bool:
        """
        Embed a single item unless it already has an embedding.

        Returns:
            True if a new embedding was stored, False if one already existed

        Raises:
            ContentNotFoundError: If the item does not exist
            ContentValidationError: If the item has no body to embed
            EmbeddingProviderError: If the provider fails
            StoreError: If the embedding cannot be saved
        """
        item = await self.content_store.get(content_id)

        if not item.has_body:
            raise ContentValidationError(f"Content {content_id} has no body to embed")

        if await self.embedding_store.exists(content_id):
            logger.info("embedding_already_present", content_id=str(content_id))
            return False

        text = item.embedding_text
        vector = await self.embedder.embed_text(text)
        return await self.embedding_store.insert_if_absent(
            item,
            content_text=text,
            embedding=vector,
            model=self.embedder.model_name,
        )

    async def run(self) -> BackfillReport:
        """
        Embed all items lacking an embedding.

        Returns:
            BackfillReport with one entry per item attempted. Items that a
            concurrent writer embedded first are not listed.

        Raises:
            StoreError: If the list of pending items cannot be loaded
        """
        pending = [
            EmbeddingSource.from_item(item)
            for item in await self.content_store.list_unembedded()
        ]
        report = BackfillReport()

        logger.info("backfill_started", pending=len(pending))

        for index, source in enumerate(pending):
            content_id = source.id
            if index > 0 and self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)

            try:
                vector = await self.embedder.embed_text(source.embedding_text)
                created = await self.embedding_store.insert_if_absent(
                    source,
                    content_text=source.embedding_text,
                    embedding=vector,
                    model=self.embedder.model_name,
                )

            except ContentPilotError as e:
                logger.warning(
                    "backfill_item_failed",
                    content_id=str(content_id),
                    error=e.message,
                    error_type=type(e).__name__,
                )
                report.results.append(
                    BackfillItemOutcome(content_id=content_id, status="error", error=e.message)
                )
                continue

            if created:
                report.results.append(BackfillItemOutcome(content_id=content_id, status="success"))
            else:
                logger.info("backfill_item_already_embedded", content_id=str(content_id))

        logger.info(
            "backfill_completed",
            processed=report.processed,
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report
