"""
API Endpoint Tests

Exercises the HTTP surface with services swapped for in-memory fakes through
``app.dependency_overrides``:
- POST /api/v1/content/generate
- POST /api/v1/rag/search
- POST /api/v1/embeddings
- /api/v1/content library CRUD and stats
- Error envelope and status mapping
"""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from app.api.deps import (
    get_backfill,
    get_content_store,
    get_embedding_store,
    get_generator,
    get_orchestrator,
    get_search_service,
)
from app.core.config import settings
from app.core.exceptions import (
    GenerationProviderError,
    SearchUnavailableError,
    StoreError,
)
from app.db.deps import get_db, get_db_override
from app.main import app
from app.models.content import ContentType
from app.services import embedder as embedder_module
from app.services.backfill import EmbeddingBackfill
from app.services.orchestrator import GenerationOrchestrator
from app.services.similarity import SearchOutcome
from tests.fakes import (
    FakeContentStore,
    FakeEmbedder,
    FakeEmbeddingStore,
    FakeGenerator,
    FakeSearch,
    make_item,
    make_result,
)


API = "/api/v1"


# ========================================
# Fixtures
# ========================================

@pytest.fixture
def library():
    return FakeContentStore([
        make_item(title="Desk Booking Guide", content_type=ContentType.PILLAR),
        make_item(title="Hot Desk Launch Post", content_type=ContentType.SOCIAL, keywords=["hot desking"]),
    ])


@pytest.fixture
def use_orchestrator(test_config):
    """Install an orchestrator built from fakes; returns the pieces."""

    def install(generator=None, search=None, content_store=None):
        store = content_store or FakeContentStore()
        parts = {
            "content_store": store,
            "embedding_store": FakeEmbeddingStore(store),
            "search": search or FakeSearch(),
            "generator": generator or FakeGenerator(),
            "embedder": FakeEmbedder(),
        }
        app.dependency_overrides[get_orchestrator] = lambda: GenerationOrchestrator(
            config=test_config, **parts
        )
        return parts

    return install


# ========================================
# Root / Health
# ========================================

@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert "version" in response.json()


@pytest.mark.asyncio
async def test_health_reports_database_down(client: AsyncClient):
    with patch("app.main.check_db_health", AsyncMock(return_value=False)):
        response = await client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "disconnected"
    assert data["vector_extension"] == "missing"
    assert "generation" in data["providers"]


@pytest.mark.asyncio
async def test_health_ok(client: AsyncClient):
    with patch("app.main.check_db_health", AsyncMock(return_value=True)), \
            patch("app.main.check_vector_extension", AsyncMock(return_value=True)):
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["vector_extension"] == "installed"


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client: AsyncClient):
    response = await client.get(f"{API}/does-not-exist")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_openapi_documents_error_envelope():
    schema = app.openapi()

    assert "ErrorResponse" in schema["components"]["schemas"]
    assert "502" in schema["paths"][f"{API}/content/generate"]["post"]["responses"]
    assert "503" in schema["paths"][f"{API}/rag/search"]["post"]["responses"]


# ========================================
# Generation
# ========================================

@pytest.mark.asyncio
async def test_generate_content(client: AsyncClient, use_orchestrator):
    parts = use_orchestrator(
        search=FakeSearch(outcome=SearchOutcome(results=[make_result(score=0.88)])),
    )

    response = await client.post(f"{API}/content/generate", json={
        "content_type": "support",
        "primary_keyword": "desk booking",
        "related_keywords": "hot desking",
        "topic_area": "workplace",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["content"] == "Generated content"
    assert data["rag_used"] is True
    assert data["similar_content_found"] == 1
    assert data["metadata"]["content_type"] == "support"
    assert data["metadata"]["primary_keyword"] == "desk booking"
    assert data["metadata"]["topic_area"] == "workplace"
    assert uuid.UUID(data["content_id"]) in parts["content_store"].items


@pytest.mark.asyncio
async def test_generate_invalid_type_is_400(client: AsyncClient, use_orchestrator):
    parts = use_orchestrator()

    response = await client.post(f"{API}/content/generate", json={
        "content_type": "video",
        "primary_keyword": "desk booking",
    })

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "video" in response.json()["error"]
    assert parts["generator"].calls == []


@pytest.mark.asyncio
async def test_generate_missing_keyword_is_400(client: AsyncClient, use_orchestrator):
    use_orchestrator()

    response = await client.post(f"{API}/content/generate", json={"content_type": "meta"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "primary_keyword is required"}


@pytest.mark.asyncio
async def test_generate_provider_failure_is_502(client: AsyncClient, use_orchestrator):
    use_orchestrator(generator=FakeGenerator(
        error=GenerationProviderError("openai API error: rate limited", provider="openai"),
    ))

    response = await client.post(f"{API}/content/generate", json={
        "content_type": "meta",
        "primary_keyword": "desk booking",
    })

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "openai API error: rate limited"}


@pytest.mark.asyncio
async def test_generate_store_failure_is_500(client: AsyncClient, use_orchestrator):
    use_orchestrator(content_store=FakeContentStore(fail_on_create=True))

    response = await client.post(f"{API}/content/generate", json={
        "content_type": "meta",
        "primary_keyword": "desk booking",
    })

    assert response.status_code == 500
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_generate_without_embedding_provider(client: AsyncClient, monkeypatch):
    """Generation succeeds when the embedding provider is not configured."""
    monkeypatch.setattr(settings, "EMBEDDING_PROVIDER", "openai")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "POST_SAVE_EMBEDDING_MODE", "inline")
    monkeypatch.setattr(embedder_module, "_embedding_service", None)

    store = FakeContentStore()
    embedding_store = FakeEmbeddingStore(store)
    app.dependency_overrides[get_generator] = lambda: FakeGenerator()
    app.dependency_overrides[get_content_store] = lambda: store
    app.dependency_overrides[get_embedding_store] = lambda: embedding_store
    app.dependency_overrides[get_search_service] = lambda: FakeSearch()

    response = await client.post(f"{API}/content/generate", json={
        "content_type": "social",
        "primary_keyword": "desk booking",
        "use_rag": False,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert uuid.UUID(data["content_id"]) in store.items
    assert embedding_store.rows == {}


@pytest.mark.asyncio
async def test_generate_malformed_body_is_422(client: AsyncClient, use_orchestrator):
    use_orchestrator()

    response = await client.post(f"{API}/content/generate", json={"use_rag": "sometimes"})

    assert response.status_code == 422
    assert response.json()["success"] is False


# ========================================
# Similarity Search
# ========================================

@pytest.mark.asyncio
async def test_search(client: AsyncClient):
    search = FakeSearch(outcome=SearchOutcome(results=[
        make_result(title="Hot Desking 101", score=0.9),
        make_result(title="Room Booking", score=0.75),
    ]))
    app.dependency_overrides[get_search_service] = lambda: search

    response = await client.post(f"{API}/rag/search", json={
        "query": "desk booking",
        "content_type": "all",
        "limit": 2,
        "similarity_threshold": 0.7,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["method"] == "vector_search"
    assert data["similarity_threshold"] == 0.7
    assert [r["title"] for r in data["results"]] == ["Hot Desking 101", "Room Booking"]
    assert search.calls[0]["limit"] == 2


@pytest.mark.asyncio
async def test_search_defaults_come_from_settings(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "RAG_SEARCH_DEFAULT_LIMIT", 7)
    monkeypatch.setattr(settings, "RAG_SEARCH_DEFAULT_THRESHOLD", 0.55)
    search = FakeSearch()
    app.dependency_overrides[get_search_service] = lambda: search

    response = await client.post(f"{API}/rag/search", json={"query": "desk booking"})

    assert response.status_code == 200
    assert response.json()["similarity_threshold"] == 0.55
    assert search.calls[0]["limit"] == 7
    assert search.calls[0]["min_similarity"] == 0.55


@pytest.mark.asyncio
async def test_search_fallback_results_are_unscored(client: AsyncClient):
    search = FakeSearch(outcome=SearchOutcome(results=[make_result(score=None)], method="fallback"))
    app.dependency_overrides[get_search_service] = lambda: search

    response = await client.post(f"{API}/rag/search", json={"query": "desk booking"})

    data = response.json()
    assert data["method"] == "fallback"
    assert data["results"][0]["similarity_score"] is None


@pytest.mark.asyncio
async def test_search_unavailable_is_503(client: AsyncClient):
    search = FakeSearch(error=SearchUnavailableError("Search failed: connection refused"))
    app.dependency_overrides[get_search_service] = lambda: search

    response = await client.post(f"{API}/rag/search", json={"query": "desk booking"})

    assert response.status_code == 503
    assert response.json() == {"success": False, "error": "Search failed: connection refused"}


@pytest.mark.asyncio
async def test_search_empty_query_is_422(client: AsyncClient):
    app.dependency_overrides[get_search_service] = lambda: FakeSearch()

    response = await client.post(f"{API}/rag/search", json={"query": ""})

    assert response.status_code == 422


# ========================================
# Embeddings
# ========================================

@pytest.fixture
def use_backfill(library, test_config):
    embedding_store = FakeEmbeddingStore(library)
    backfill = EmbeddingBackfill(
        content_store=library,
        embedding_store=embedding_store,
        embedder=FakeEmbedder(),
        config=test_config,
    )
    app.dependency_overrides[get_backfill] = lambda: backfill
    return embedding_store


@pytest.mark.asyncio
async def test_bulk_generate(client: AsyncClient, use_backfill):
    first = await client.post(f"{API}/embeddings", json={"action": "bulk_generate"})
    second = await client.post(f"{API}/embeddings", json={"action": "bulk_generate"})

    assert first.status_code == 200
    assert first.json()["processed"] == 2
    assert {r["status"] for r in first.json()["results"]} == {"success"}
    assert second.json() == {"success": True, "processed": 0, "results": []}


@pytest.mark.asyncio
async def test_generate_single_embedding(client: AsyncClient, use_backfill, library):
    content_id = str(next(iter(library.items)))

    response = await client.post(f"{API}/embeddings", json={
        "action": "generate_embedding",
        "content_id": content_id,
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "content_id": content_id, "created": True}


@pytest.mark.asyncio
async def test_generate_embedding_requires_content_id(client: AsyncClient, use_backfill):
    response = await client.post(f"{API}/embeddings", json={"action": "generate_embedding"})

    assert response.status_code == 400
    assert "content_id" in response.json()["error"]


@pytest.mark.asyncio
async def test_generate_embedding_unknown_item_is_404(client: AsyncClient, use_backfill):
    response = await client.post(f"{API}/embeddings", json={
        "action": "generate_embedding",
        "content_id": str(uuid.uuid4()),
    })

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unknown_embedding_action_is_422(client: AsyncClient, use_backfill):
    response = await client.post(f"{API}/embeddings", json={"action": "reindex"})

    assert response.status_code == 422


# ========================================
# Content Library
# ========================================

@pytest.fixture
def use_library(library):
    app.dependency_overrides[get_content_store] = lambda: library
    return library


@pytest.mark.asyncio
async def test_list_content(client: AsyncClient, use_library):
    response = await client.get(f"{API}/content")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert len(data["items"]) == 2


@pytest.mark.asyncio
async def test_list_content_filters(client: AsyncClient, use_library):
    by_type = await client.get(f"{API}/content", params={"content_type": "social"})
    by_search = await client.get(f"{API}/content", params={"search": "hot desking"})

    assert [i["title"] for i in by_type.json()["items"]] == ["Hot Desk Launch Post"]
    assert [i["title"] for i in by_search.json()["items"]] == ["Hot Desk Launch Post"]


@pytest.mark.asyncio
async def test_create_content(client: AsyncClient, use_library):
    response = await client.post(f"{API}/content", json={
        "title": "Meeting Room Etiquette",
        "content": "Book the room, show up, leave on time.",
        "content_type": "support",
        "keywords": ["meeting rooms", " "],
    })

    assert response.status_code == 201
    data = response.json()
    assert data["content_type"] == "support"
    assert data["keywords"] == ["meeting rooms"]
    assert uuid.UUID(data["id"]) in use_library.items


@pytest.mark.asyncio
async def test_saved_social_item_reads_back_unchanged(client: AsyncClient, use_library):
    body = "Hot desks are open from Monday.\n\n**Book yours** in the app #hybridwork"
    created = await client.post(f"{API}/content", json={
        "title": "Hot Desk Launch",
        "content": body,
        "content_type": "social",
    })

    fetched = await client.get(f"{API}/content/{created.json()['id']}")

    assert created.status_code == 201
    assert fetched.status_code == 200
    data = fetched.json()
    assert data["title"] == "Hot Desk Launch"
    assert data["content"] == body
    assert data["content_type"] == "social"


@pytest.mark.asyncio
async def test_content_stats(client: AsyncClient, use_library):
    response = await client.get(f"{API}/content/stats")

    assert response.status_code == 200
    assert response.json() == {"pillar": 1, "support": 0, "meta": 0, "social": 1}


@pytest.mark.asyncio
async def test_get_missing_content_is_404(client: AsyncClient, use_library):
    response = await client.get(f"{API}/content/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_update_content(client: AsyncClient, use_library):
    item = make_item(title="Old title")
    use_library.items[item.id] = item

    response = await client.patch(f"{API}/content/{item.id}", json={"title": "New title"})

    assert response.status_code == 200
    assert response.json()["title"] == "New title"
    assert response.json()["content"] == item.content


@pytest.mark.asyncio
async def test_delete_social_content(client: AsyncClient, use_library):
    item = make_item(content_type=ContentType.SOCIAL)
    use_library.items[item.id] = item

    response = await client.delete(f"{API}/content/{item.id}")

    assert response.status_code == 204
    assert item.id not in use_library.items


@pytest.mark.asyncio
async def test_delete_pillar_content_is_400(client: AsyncClient, use_library):
    item = make_item(content_type=ContentType.PILLAR)
    use_library.items[item.id] = item

    response = await client.delete(f"{API}/content/{item.id}")

    assert response.status_code == 400
    assert item.id in use_library.items


@pytest.mark.asyncio
async def test_store_error_is_500(client: AsyncClient):
    class BrokenStore(FakeContentStore):
        async def stats(self):
            raise StoreError("Failed to compute content stats: connection refused")

    app.dependency_overrides[get_content_store] = lambda: BrokenStore()

    response = await client.get(f"{API}/content/stats")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Failed to compute content stats: connection refused",
    }


@pytest.mark.asyncio
async def test_content_route_with_real_store(client: AsyncClient):
    """The real ContentStore dependency runs against an overridden session."""
    item = make_item(title="Desk Booking Guide")
    session = MagicMock()
    session.get = AsyncMock(return_value=item)
    app.dependency_overrides[get_db] = get_db_override(session)

    response = await client.get(f"{API}/content/{item.id}")

    assert response.status_code == 200
    assert response.json()["title"] == "Desk Booking Guide"
    session.get.assert_awaited_once()
