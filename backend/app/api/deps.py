"""
Service Dependencies for FastAPI Routes

Each request gets services bound to its own database session. The provider
clients (embedding, generation) are process-wide singletons. The embedding
client is set up on first use, so requests that never embed do not depend
on the embedding provider being configured.

Tests replace any of these through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends

from app.db.deps import DBSession
from app.services.backfill import EmbeddingBackfill
from app.services.content_store import ContentStore
from app.services.embedder import EmbeddingService, get_embedding_service
from app.services.embedding_store import EmbeddingStore
from app.services.generation import GenerationClient, get_generation_client
from app.services.orchestrator import GenerationOrchestrator
from app.services.similarity import SimilaritySearchService


def get_embedder() -> EmbeddingService:
    return get_embedding_service()


def get_generator() -> GenerationClient:
    return get_generation_client()


def get_content_store(db: DBSession) -> ContentStore:
    return ContentStore(db)


def get_embedding_store(db: DBSession) -> EmbeddingStore:
    return EmbeddingStore(db)


def get_search_service(
    db: DBSession,
    embedder: EmbeddingService = Depends(get_embedder),
) -> SimilaritySearchService:
    return SimilaritySearchService(db, embedder)


def get_orchestrator(
    content_store: ContentStore = Depends(get_content_store),
    embedding_store: EmbeddingStore = Depends(get_embedding_store),
    search: SimilaritySearchService = Depends(get_search_service),
    generator: GenerationClient = Depends(get_generator),
    embedder: EmbeddingService = Depends(get_embedder),
) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        content_store=content_store,
        embedding_store=embedding_store,
        search=search,
        generator=generator,
        embedder=embedder,
    )


def get_backfill(
    content_store: ContentStore = Depends(get_content_store),
    embedding_store: EmbeddingStore = Depends(get_embedding_store),
    embedder: EmbeddingService = Depends(get_embedder),
) -> EmbeddingBackfill:
    return EmbeddingBackfill(
        content_store=content_store,
        embedding_store=embedding_store,
        embedder=embedder,
    )


ContentStoreDep = Annotated[ContentStore, Depends(get_content_store)]
SearchServiceDep = Annotated[SimilaritySearchService, Depends(get_search_service)]
OrchestratorDep = Annotated[GenerationOrchestrator, Depends(get_orchestrator)]
BackfillDep = Annotated[EmbeddingBackfill, Depends(get_backfill)]
