"""Business logic services."""

from app.services.backfill import BackfillReport, EmbeddingBackfill
from app.services.content_store import ContentStore
from app.services.embedder import (
    EmbeddingService,
    get_embedding_service,
    shutdown_embedding_service,
)
from app.services.embedding_store import EmbeddingStore
from app.services.generation import (
    GenerationClient,
    get_generation_client,
    shutdown_generation_client,
)
from app.services.orchestrator import GenerationOrchestrator, GenerationResult
from app.services.similarity import SearchOutcome, SimilarityResult, SimilaritySearchService

__all__ = [
    "BackfillReport",
    "EmbeddingBackfill",
    "ContentStore",
    "EmbeddingService",
    "get_embedding_service",
    "shutdown_embedding_service",
    "EmbeddingStore",
    "GenerationClient",
    "get_generation_client",
    "shutdown_generation_client",
    "GenerationOrchestrator",
    "GenerationResult",
    "SearchOutcome",
    "SimilarityResult",
    "SimilaritySearchService",
]
