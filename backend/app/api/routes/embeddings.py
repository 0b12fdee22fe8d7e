"""
Embeddings API Routes

POST /embeddings dispatches on ``action``:
- bulk_generate: embed every library item that has no embedding yet
- generate_embedding: embed one item by ``content_id``
"""

from typing import Union

from fastapi import APIRouter

from app.api.deps import BackfillDep
from app.core.exceptions import ContentValidationError
from app.core.logging import get_logger
from app.schemas.content import ErrorResponse
from app.schemas.generation import (
    BackfillItemResult,
    BackfillResponse,
    EmbedItemResponse,
    EmbeddingActionRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post(
    "",
    response_model=Union[BackfillResponse, EmbedItemResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def run_embedding_action(
    request: EmbeddingActionRequest,
    backfill: BackfillDep,
):
    """
    Run an embedding action.

    Bulk backfill is partial-success: per-item failures are listed with
    ``status="error"`` and the call still succeeds.
    """
    if request.action == "generate_embedding":
        if request.content_id is None:
            raise ContentValidationError("content_id is required for generate_embedding")

        created = await backfill.embed_one(request.content_id)
        return EmbedItemResponse(content_id=request.content_id, created=created)

    report = await backfill.run()

    return BackfillResponse(
        processed=report.processed,
        results=[
            BackfillItemResult(content_id=r.content_id, status=r.status, error=r.error)
            for r in report.results
        ],
    )
