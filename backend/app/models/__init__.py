"""
Database Models

This module contains all SQLAlchemy ORM models for the application.

Import models from this module to ensure they're registered with SQLAlchemy:

    from app.models import ContentItem, ContentEmbedding

This ensures that:
1. Alembic can detect all models for migrations
2. Relationships work correctly
"""

from app.models.content import (
    ALL_CONTENT_TYPES,
    ContentEmbedding,
    ContentItem,
    ContentType,
)

__all__ = [
    "ALL_CONTENT_TYPES",
    "ContentEmbedding",
    "ContentItem",
    "ContentType",
]
