"""
Celery tasks for background processing.
"""

from app.tasks.embedding_tasks import (
    bulk_generate,
    embed_content_item,
)

__all__ = [
    "bulk_generate",
    "embed_content_item",
]
