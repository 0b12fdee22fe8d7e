"""
Tests for embedding Celery tasks.

This module tests:
- Bulk backfill task result shape
- Single-item embedding task (created, no-op, skipped)
- Enqueueing from the orchestrator's worker mode
- Beat schedule registration

Tasks are called directly (synchronously); ``task_backfill`` is patched to
yield a backfill service built on in-memory fakes.
"""

import uuid
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest

from app.services.backfill import EmbeddingBackfill
from app.services.orchestrator import _enqueue_embedding_task
from app.tasks.embedding_tasks import bulk_generate, embed_content_item
from app.workers.celery_app import celery_app
from tests.fakes import FakeContentStore, FakeEmbedder, FakeEmbeddingStore, make_item


# ========================================
# Fixtures
# ========================================

@pytest.fixture
def library():
    """Three items: two healthy, one that the embedder fails on."""
    return [
        make_item(title="Desk Booking Guide"),
        make_item(title="POISON Meeting Rooms"),
        make_item(title="Hybrid Work Policy"),
    ]


@pytest.fixture
def patched_backfill(library, test_config):
    store = FakeContentStore(library)
    embedding_store = FakeEmbeddingStore(store)
    backfill = EmbeddingBackfill(
        content_store=store,
        embedding_store=embedding_store,
        embedder=FakeEmbedder(fail_on="POISON"),
        config=test_config,
    )

    @asynccontextmanager
    async def fake_task_backfill():
        yield backfill

    with patch("app.tasks.embedding_tasks.task_backfill", fake_task_backfill):
        yield embedding_store


# ========================================
# bulk_generate
# ========================================

def test_bulk_generate_reports_each_item(patched_backfill, library):
    result = bulk_generate()

    assert result["success"] is True
    assert result["processed"] == 3

    by_id = {r["content_id"]: r for r in result["results"]}
    assert by_id[str(library[0].id)] == {"content_id": str(library[0].id), "status": "success", "error": None}
    assert by_id[str(library[1].id)]["status"] == "error"
    assert by_id[str(library[1].id)]["error"]
    assert by_id[str(library[2].id)]["status"] == "success"


def test_bulk_generate_second_run_only_retries_failures(patched_backfill, library):
    bulk_generate()
    result = bulk_generate()

    assert result["processed"] == 1
    assert result["results"][0]["content_id"] == str(library[1].id)


# ========================================
# embed_content_item
# ========================================

def test_embed_content_item_creates_once(patched_backfill, library):
    content_id = str(library[0].id)

    first = embed_content_item(content_id)
    second = embed_content_item(content_id)

    assert first == {"success": True, "content_id": content_id, "created": True}
    assert second == {"success": True, "content_id": content_id, "created": False}


def test_embed_content_item_unknown_id_is_skipped(patched_backfill):
    content_id = str(uuid.uuid4())

    result = embed_content_item(content_id)

    assert result["success"] is False
    assert result["created"] is False
    assert "not found" in result["error"]


# ========================================
# Enqueueing / Registration
# ========================================

def test_enqueue_embedding_task_sends_string_id():
    content_id = uuid.uuid4()

    with patch.object(embed_content_item, "delay") as delay:
        _enqueue_embedding_task(content_id)

    delay.assert_called_once_with(str(content_id))


def test_tasks_registered():
    assert "embedding.bulk_generate" in celery_app.tasks
    assert "embedding.embed_content_item" in celery_app.tasks


def test_backfill_on_beat_schedule():
    entry = celery_app.conf.beat_schedule["backfill-missing-embeddings"]

    assert entry["task"] == "embedding.bulk_generate"
