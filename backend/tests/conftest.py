"""
Pytest configuration and fixtures.

This file is automatically discovered by pytest and provides
shared fixtures for all test modules.

The suite runs without PostgreSQL or provider credentials: services are
exercised against the fakes in ``tests.fakes``, and API tests swap those
fakes in through FastAPI dependency overrides.

References:
-----------
- Pytest Fixtures: https://docs.pytest.org/en/stable/fixture.html
- FastAPI Testing: https://fastapi.tiangolo.com/advanced/testing-dependencies/
"""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_FORMAT", "text")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import DictConfigProvider
from tests.fakes import (
    EMBEDDING_DIMENSION,
    FakeContentStore,
    FakeEmbedder,
    FakeEmbeddingStore,
)


# ================================
# Fixtures
# ================================

@pytest.fixture
def test_config() -> DictConfigProvider:
    """Configuration with fast timings and default thresholds."""
    return DictConfigProvider({
        "RAG_EXEMPLAR_LIMIT": 3,
        "RAG_EXEMPLAR_THRESHOLD": 0.6,
        "RAG_EXCERPT_CHARS": 200,
        "PILLAR_MIN_WORDS": 1500,
        "EXTENSION_MAX_TOKENS": 3000,
        "POST_SAVE_EMBEDDING_MODE": "inline",
        "BACKFILL_DELAY_SECONDS": 0,
        "EMBEDDING_DIMENSION": EMBEDDING_DIMENSION,
        "EMBEDDING_RETRY_BACKOFF_SECONDS": 0,
    })


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def embedding_store(content_store) -> FakeEmbeddingStore:
    return FakeEmbeddingStore(content_store)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing FastAPI endpoints.

    Tests set ``app.dependency_overrides`` for the services they need;
    overrides are cleared afterwards.

    Usage:
        async def test_something(client: AsyncClient):
            response = await client.get("/api/v1/content")
            assert response.status_code == 200
    """
    from app.main import app

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
