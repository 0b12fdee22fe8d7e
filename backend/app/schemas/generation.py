"""
Pydantic schemas for the generation, similarity-search and embedding endpoints.

``content_type`` is accepted as a plain string on requests; membership in
the enumerated set is checked by the orchestrator so that an unrecognised
type is reported as a domain validation failure before any provider call.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.config import settings


# ========================================
# Generation
# ========================================

class GenerationRequest(BaseModel):
    """Request schema for generating a piece of content."""

    content_type: str = Field(
        default="pillar",
        description="pillar, support, meta or social",
        examples=["pillar"],
    )
    primary_keyword: str = Field(
        default="",
        description="Main keyword the content is about",
        max_length=255,
        examples=["desk booking"],
    )
    related_keywords: str = Field(
        default="",
        description="Comma-separated related keywords",
        max_length=2000,
        examples=["hot desking, office utilization"],
    )
    topic_area: Optional[str] = Field(
        default=None,
        description="Topic area used to scope style references",
        max_length=255,
    )
    target_url: Optional[str] = Field(
        default=None,
        description="URL the content should reference",
        max_length=2000,
    )
    social_context: Optional[str] = Field(
        default=None,
        description="Extra context for social posts",
        max_length=4000,
    )
    title: Optional[str] = Field(
        default=None,
        description="Title to store the content under (synthesised when omitted)",
        max_length=255,
    )
    use_rag: bool = Field(
        default=True,
        description="Steer generation with similar items from the content library",
    )

    @property
    def related_keyword_list(self) -> List[str]:
        return [k.strip() for k in self.related_keywords.split(",") if k.strip()]


class GenerationMetadata(BaseModel):
    """Echo of the request parameters plus generation timestamp."""

    content_type: str
    primary_keyword: str
    topic_area: Optional[str] = None
    generated_at: datetime


class GenerationResponse(BaseModel):
    """Response schema for a generation request."""

    success: bool = True
    content: str = Field(description="Generated content (Markdown)")
    content_id: Optional[uuid.UUID] = Field(default=None, description="Id of the saved content item")
    rag_used: bool = Field(description="Whether style references were added to the prompt")
    similar_content_found: int = Field(ge=0, description="Number of style references used")
    word_count: int = Field(ge=0, description="Word count of the returned content")
    extended: bool = Field(default=False, description="Whether the pillar extension step ran")
    metadata: GenerationMetadata


# ========================================
# Similarity Search
# ========================================

class SearchRequest(BaseModel):
    """Request schema for similarity search over the content library."""

    query: str = Field(min_length=1, max_length=4000, description="Search text")
    content_type: Optional[str] = Field(default=None, description="Type filter ('all' = none)")
    topic_area: Optional[str] = Field(default=None, description="Topic filter ('all' = none)")
    limit: int = Field(default_factory=lambda: settings.RAG_SEARCH_DEFAULT_LIMIT, ge=1, le=50)
    similarity_threshold: float = Field(
        default_factory=lambda: settings.RAG_SEARCH_DEFAULT_THRESHOLD, ge=0.0, le=1.0
    )


class SimilarityResultSchema(BaseModel):
    """A content-library row close to the query."""

    model_config = ConfigDict(from_attributes=True)

    content_id: uuid.UUID
    title: str
    excerpt: str
    content_type: str
    topic_area: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    similarity_score: Optional[float] = Field(
        default=None,
        description="1 - cosine distance; null on degraded (fallback) results",
    )
    created_at: Optional[datetime] = None


class SearchResponse(BaseModel):
    """Response schema for similarity search."""

    success: bool = True
    query: str
    results: List[SimilarityResultSchema]
    count: int
    similarity_threshold: float
    method: Literal["vector_search", "fallback"]


# ========================================
# Embeddings
# ========================================

class EmbeddingActionRequest(BaseModel):
    """Request schema for the embeddings endpoint."""

    action: Literal["bulk_generate", "generate_embedding"]
    content_id: Optional[uuid.UUID] = Field(
        default=None,
        description="Required for generate_embedding",
    )


class BackfillItemResult(BaseModel):
    """Outcome of one backfill item."""

    content_id: uuid.UUID
    status: Literal["success", "error"]
    error: Optional[str] = None


class BackfillResponse(BaseModel):
    """Response schema for bulk embedding backfill."""

    success: bool = True
    processed: int = Field(ge=0)
    results: List[BackfillItemResult]


class EmbedItemResponse(BaseModel):
    """Response schema for embedding a single content item."""

    success: bool = True
    content_id: uuid.UUID
    created: bool = Field(description="False when an embedding already existed")
