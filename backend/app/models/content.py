"""
Content Models

This module contains the content-library models for ContentPilot.

Models Included:
----------------
1. ContentType (Enum) - The four kinds of marketing content we generate
2. ContentItem - A piece of content in the library (generated or hand-written)
3. ContentEmbedding - Embedding vector of a ContentItem for similarity search

Database Tables:
----------------
- content_library: Stores content items
- content_embeddings: One embedding row per content item (unique content_id)

Relationships:
--------------
- ContentItem (1) ←→ (0..1) ContentEmbedding
"""

import enum
import uuid
from typing import Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import Boolean, Enum, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.config import settings
from app.db.base import Base, BaseModel, String50, String255, TimestampMixin


# ================================
# Enums
# ================================

class ContentType(str, enum.Enum):
    """
    Enum for the content types the dashboard manages.

    Content Types:
    --------------
    1. PILLAR: Long-form expert guides (1500+ words)
    2. SUPPORT: Support pages / explainer articles
    3. META: SEO meta tags for a page
    4. SOCIAL: LinkedIn-style social posts
    """

    PILLAR = "pillar"
    SUPPORT = "support"
    META = "meta"
    SOCIAL = "social"

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


# Filter wildcard accepted by search endpoints ("no content-type filter")
ALL_CONTENT_TYPES = "all"


# ================================
# Content Item Model
# ================================

class ContentItem(Base, TimestampMixin):
    """
    A piece of marketing content in the library.

    Table: content_library
    ----------------------
    Items are created by the generation orchestrator or manually through the
    library API. Manual edits may only touch ``title`` and ``content``.

    Items with an empty ``content`` body are excluded from embedding and
    retrieval.
    """

    __tablename__ = "content_library"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Opaque unique identifier generated at creation"
    )

    title: Mapped[str] = mapped_column(
        String255,
        nullable=False,
        default="",
        comment="Content title"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Content body (Markdown)"
    )

    content_type: Mapped[ContentType] = mapped_column(
        Enum(
            ContentType,
            name="content_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        index=True,
        comment="pillar, support, meta or social"
    )

    topic_area: Mapped[Optional[str]] = mapped_column(
        String255,
        nullable=True,
        index=True,
        comment="Free-text topic label (e.g. 'desk booking')"
    )

    keywords: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        comment="Ordered list of target keywords"
    )

    is_saved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the item was saved to the library"
    )

    # ================================
    # Relationships
    # ================================

    embedding: Mapped[Optional["ContentEmbedding"]] = relationship(
        "ContentEmbedding",
        back_populates="content_item",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"ContentItem(id={self.id}, type={self.content_type}, "
            f"title='{(self.title or '')[:40]}')"
        )

    @property
    def embedding_text(self) -> str:
        """Text that gets embedded for this item: title, blank line, body."""
        return f"{self.title or ''}\n\n{self.content or ''}".strip()

    @property
    def has_body(self) -> bool:
        return bool(self.content and self.content.strip())


# ================================
# Content Embedding Model
# ================================

class ContentEmbedding(BaseModel):
    """
    Embedding of one ContentItem, with denormalised metadata for filtered search.

    Table: content_embeddings
    -------------------------
    - content_id is unique: at most one embedding per content item. Writers
      use INSERT ... ON CONFLICT DO NOTHING so concurrent backfill and
      post-save embedding can never create duplicates.
    - content_type / topic_area / keywords are copies of the item's values at
      embedding time so similarity search can filter without a join.
    - Rows are never updated in place.

    Vector Search:
    --------------
    ``embedding`` is a pgvector column with an HNSW cosine index (created in
    the Alembic migration). Similarity is ``1 - cosine_distance``.
    """

    __tablename__ = "content_embeddings"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("content_library.id", ondelete="CASCADE"),
        nullable=False,
        comment="Content item this embedding belongs to"
    )

    content_text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Exact text that was embedded (title + body)"
    )

    content_type: Mapped[str] = mapped_column(
        String50,
        nullable=False,
        index=True,
        comment="Denormalised content type"
    )

    topic_area: Mapped[Optional[str]] = mapped_column(
        String255,
        nullable=True,
        index=True,
        comment="Denormalised topic area"
    )

    keywords: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        comment="Denormalised keywords"
    )

    embedding = mapped_column(
        Vector(settings.EMBEDDING_DIMENSION),
        nullable=False,
        comment="Embedding vector (dimension fixed by the embedding model)"
    )

    embedding_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata",
        JSONB,
        nullable=True,
        comment="Generation timestamp and model identifier"
    )

    content_item: Mapped["ContentItem"] = relationship(
        "ContentItem",
        back_populates="embedding",
    )

    __table_args__ = (
        UniqueConstraint("content_id", name="uq_content_embeddings_content_id"),
    )

    def __repr__(self) -> str:
        return f"ContentEmbedding(id={self.id}, content_id={self.content_id})"
