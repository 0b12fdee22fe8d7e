"""
Celery tasks for content-library embeddings.

This module contains background tasks for:
- Backfilling embeddings for every item that lacks one (also on a beat schedule)
- Embedding a single freshly saved item (post-save embedding in worker mode)
"""

import asyncio
import concurrent.futures
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from celery import Task
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.core.exceptions import ContentNotFoundError, ContentValidationError
from app.core.logging import get_logger
from app.services.backfill import EmbeddingBackfill
from app.services.content_store import ContentStore
from app.services.embedder import EmbeddingService
from app.services.embedding_store import EmbeddingStore
from app.workers.celery_app import celery_app

logger = get_logger(__name__)


# ========================================
# Async Helper
# ========================================

def run_async(coro):
    """
    Run async coroutine, handling both event loop and no event loop scenarios.

    This helper allows tasks to work in both:
    - Production (Celery worker with no event loop) - uses asyncio.run()
    - Tests (pytest with existing event loop) - runs in thread pool
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No event loop running - we're in a Celery worker
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor() as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()


@asynccontextmanager
async def task_backfill() -> AsyncIterator[EmbeddingBackfill]:
    """
    Build a backfill service bound to a task-local session and embedder.

    Each task run gets its own event loop, so connections and HTTP clients
    are created per run and closed afterwards.
    """
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    embedder = EmbeddingService()

    try:
        await embedder.initialize()
        async with session_factory() as db:
            backfill = EmbeddingBackfill(
                content_store=ContentStore(db),
                embedding_store=EmbeddingStore(db),
                embedder=embedder,
            )
            yield backfill
    finally:
        await embedder.shutdown()
        await engine.dispose()


# ========================================
# Base Task Class
# ========================================

class EmbeddingTask(Task):
    """Base task class with retry logic and error handling."""

    autoretry_for = (Exception,)
    dont_autoretry_for = (ContentNotFoundError, ContentValidationError)
    retry_kwargs = {'max_retries': 3}
    retry_backoff = True
    retry_backoff_max = 600  # 10 minutes
    retry_jitter = True


# ========================================
# Main Tasks
# ========================================

@celery_app.task(
    base=EmbeddingTask,
    name='embedding.bulk_generate',
    bind=True,
)
def bulk_generate(self) -> dict:
    """
    Embed every content item that has a body but no embedding.

    Per-item failures are reported in the result, not raised.

    Returns:
        {
            'success': True,
            'processed': int,
            'results': [{'content_id': str, 'status': 'success'|'error', 'error': str|None}]
        }
    """
    async def _run():
        async with task_backfill() as backfill:
            return await backfill.run()

    report = run_async(_run())

    return {
        'success': True,
        'processed': report.processed,
        'results': [
            {
                'content_id': str(r.content_id),
                'status': r.status,
                'error': r.error,
            }
            for r in report.results
        ],
    }


@celery_app.task(
    base=EmbeddingTask,
    name='embedding.embed_content_item',
    bind=True,
)
def embed_content_item(self, content_id: str) -> dict:
    """
    Embed one content item (no-op if it already has an embedding).

    Args:
        content_id: UUID of the ContentItem, as a string

    Returns:
        {'success': bool, 'content_id': str, 'created': bool, 'error': str (on skip)}
    """
    async def _run():
        async with task_backfill() as backfill:
            return await backfill.embed_one(uuid.UUID(content_id))

    try:
        created = run_async(_run())
    except (ContentNotFoundError, ContentValidationError) as e:
        logger.warning("embedding_skipped", content_id=content_id, error=e.message)
        return {'success': False, 'content_id': content_id, 'created': False, 'error': e.message}

    logger.info("embed_content_item_completed", content_id=content_id, created=created)
    return {'success': True, 'content_id': content_id, 'created': created}
