"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from app.schemas.content import (
    ContentItemCreate,
    ContentItemResponse,
    ContentItemUpdate,
    ContentListResponse,
    ContentStatsResponse,
    ErrorResponse,
)
from app.schemas.generation import (
    BackfillItemResult,
    BackfillResponse,
    EmbedItemResponse,
    EmbeddingActionRequest,
    GenerationMetadata,
    GenerationRequest,
    GenerationResponse,
    SearchRequest,
    SearchResponse,
    SimilarityResultSchema,
)

__all__ = [
    # Content library
    "ContentItemCreate",
    "ContentItemResponse",
    "ContentItemUpdate",
    "ContentListResponse",
    "ContentStatsResponse",
    "ErrorResponse",
    # Generation / search / embeddings
    "BackfillItemResult",
    "BackfillResponse",
    "EmbedItemResponse",
    "EmbeddingActionRequest",
    "GenerationMetadata",
    "GenerationRequest",
    "GenerationResponse",
    "SearchRequest",
    "SearchResponse",
    "SimilarityResultSchema",
]
