"""
Similarity Search API Routes
"""

from fastapi import APIRouter

from app.api.deps import SearchServiceDep
from app.core.logging import get_logger
from app.schemas.content import ErrorResponse
from app.schemas.generation import SearchRequest, SearchResponse, SimilarityResultSchema

logger = get_logger(__name__)

router = APIRouter(prefix="/rag", tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    responses={502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def search_content(
    request: SearchRequest,
    search: SearchServiceDep,
):
    """
    Find library items similar to a text query.

    Results are ordered by descending similarity. When ranked search is
    unavailable the response carries ``method="fallback"`` and unscored
    results.
    """
    logger.info(
        "search_request",
        content_type=request.content_type,
        topic_area=request.topic_area,
        limit=request.limit,
    )

    outcome = await search.search_text(
        request.query,
        content_type=request.content_type,
        topic_area=request.topic_area,
        limit=request.limit,
        min_similarity=request.similarity_threshold,
    )

    results = [SimilarityResultSchema.model_validate(r) for r in outcome.results]

    return SearchResponse(
        query=request.query,
        results=results,
        count=len(results),
        similarity_threshold=request.similarity_threshold,
        method=outcome.method,
    )
