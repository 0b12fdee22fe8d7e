#!/usr/bin/env python3
"""
Backfill embeddings for the content library and optionally run a test search.

This script:
1. Reports how many items and embeddings exist
2. Embeds every item that has a body but no embedding
3. Optionally runs a similarity search to check the index

Usage:
    python scripts/backfill_embeddings.py
    python scripts/backfill_embeddings.py --search "desk booking" --type pillar
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.exceptions import ContentPilotError
from app.core.logging import setup_logging
from app.db.session import AsyncSessionLocal, close_db
from app.services.backfill import EmbeddingBackfill
from app.services.content_store import ContentStore
from app.services.embedder import EmbeddingService
from app.services.embedding_store import EmbeddingStore
from app.services.similarity import SimilaritySearchService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill content-library embeddings")
    parser.add_argument("--search", help="Run a similarity search after the backfill")
    parser.add_argument("--type", dest="content_type", default=None, help="Content type filter")
    parser.add_argument("--limit", type=int, default=5)
    parser.add_argument("--threshold", type=float, default=0.7)
    parser.add_argument("--skip-backfill", action="store_true")
    return parser.parse_args()


async def main() -> int:
    args = parse_args()

    print("=" * 70)
    print("Content Library Embedding Backfill")
    print("=" * 70)

    embedder = EmbeddingService()

    try:
        await embedder.initialize()

        async with AsyncSessionLocal() as db:
            content_store = ContentStore(db)
            embedding_store = EmbeddingStore(db)

            stats = await content_store.stats()
            print(f"\n📚 Saved items: {stats}")
            print(f"🧮 Embeddings before: {await embedding_store.count()}")

            if not args.skip_backfill:
                backfill = EmbeddingBackfill(content_store, embedding_store, embedder)
                report = await backfill.run()

                print(f"\n✅ Processed {report.processed} items "
                      f"({report.succeeded} embedded, {report.failed} failed)")
                for result in report.results:
                    if result.status == "error":
                        print(f"   ❌ {result.content_id}: {result.error}")

                print(f"🧮 Embeddings after: {await embedding_store.count()}")

            if args.search:
                search = SimilaritySearchService(db, embedder)
                outcome = await search.search_text(
                    args.search,
                    content_type=args.content_type,
                    limit=args.limit,
                    min_similarity=args.threshold,
                )

                print(f"\n🔍 '{args.search}' ({outcome.method}): {len(outcome.results)} results")
                for result in outcome.results:
                    score = (
                        f"{result.similarity_score:.3f}"
                        if result.similarity_score is not None
                        else "n/a"
                    )
                    print(f"   [{score}] {result.content_type:8} {result.title}")

    except ContentPilotError as e:
        print(f"\n❌ {type(e).__name__}: {e.message}")
        return 1

    finally:
        await embedder.shutdown()
        await close_db()

    return 0


if __name__ == "__main__":
    setup_logging()
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
