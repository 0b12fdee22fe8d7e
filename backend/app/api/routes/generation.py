"""
Content Generation API Routes

POST /content/generate runs the full generation pipeline: optional style
references from the library, type-specific prompting, pillar extension,
save, and best-effort embedding of the saved item.
"""

from fastapi import APIRouter

from app.api.deps import OrchestratorDep
from app.core.logging import get_logger
from app.schemas.content import ErrorResponse
from app.schemas.generation import (
    GenerationMetadata,
    GenerationRequest,
    GenerationResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/content", tags=["generation"])


@router.post(
    "/generate",
    response_model=GenerationResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def generate_content(
    request: GenerationRequest,
    orchestrator: OrchestratorDep,
):
    """
    Generate a piece of content and save it to the library.

    Errors:
        400: Unknown content type or missing primary keyword
        502: Generation provider failed
        500: Generated content could not be saved
    """
    result = await orchestrator.generate(request)

    return GenerationResponse(
        content=result.content,
        content_id=result.content_id,
        rag_used=result.rag_used,
        similar_content_found=result.similar_content_found,
        word_count=result.word_count,
        extended=result.extended,
        metadata=GenerationMetadata(**result.metadata),
    )
