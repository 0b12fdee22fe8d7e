"""
Generation Orchestrator

Runs one content-generation request end to end:

1. Validate the request (content type, primary keyword)
2. Optionally fetch similar library items as style references (RAG)
3. Build the type-specific prompts
4. Call the generation model
5. Pillar only: extend once if the article is below the word minimum
6. Save the result to the content library
7. Embed the saved item (best effort)

Steps 2 and 7 never fail a request: their errors are logged and dropped.
Every other failure propagates, so a request either returns saved content
or an error.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from app.core.config import ConfigProvider, get_config_provider
from app.core.exceptions import ContentValidationError
from app.core.logging import get_logger
from app.models.content import ContentType
from app.schemas.generation import GenerationRequest
from app.services.content_store import ContentStore
from app.services.embedder import EmbeddingService
from app.services.embedding_store import EmbeddingSource, EmbeddingStore
from app.services.generation import GenerationClient
from app.services.prompts import (
    PromptFields,
    build_extension_prompt,
    build_prompts,
    count_words,
    render_style_reference,
)
from app.services.similarity import SimilarityResult, SimilaritySearchService


logger = get_logger(__name__)


@dataclass
class GenerationResult:
    content: str
    content_id: uuid.UUID
    rag_used: bool
    similar_content_found: int
    content_type: str
    primary_keyword: str
    topic_area: Optional[str]
    word_count: int
    extended: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def metadata(self) -> dict:
        return {
            "content_type": self.content_type,
            "primary_keyword": self.primary_keyword,
            "topic_area": self.topic_area,
            "generated_at": self.generated_at,
        }


class GenerationOrchestrator:
    """
    Coordinates search, prompting, generation and persistence.

    Usage:
    ------
    orchestrator = GenerationOrchestrator(
        content_store=ContentStore(db),
        embedding_store=EmbeddingStore(db),
        search=SimilaritySearchService(db, embedder),
        generator=get_generation_client(),
        embedder=embedder,
    )
    result = await orchestrator.generate(request)
    """

    def __init__(
        self,
        content_store: ContentStore,
        embedding_store: EmbeddingStore,
        search: SimilaritySearchService,
        generator: GenerationClient,
        embedder: EmbeddingService,
        config: Optional[ConfigProvider] = None,
        enqueue_embedding: Optional[Callable[[uuid.UUID], Any]] = None,
    ):
        """
        Args:
            content_store: Content-library persistence
            embedding_store: Embedding persistence
            search: Similarity search used for style references
            generator: Chat-completion client
            embedder: Embedding client used for the post-save embedding
            config: Configuration source (default: process-wide provider)
            enqueue_embedding: Hands a saved item id to the background worker
                (used when POST_SAVE_EMBEDDING_MODE is "worker")
        """
        self.content_store = content_store
        self.embedding_store = embedding_store
        self.search = search
        self.generator = generator
        self.embedder = embedder
        self.config = config or get_config_provider()
        self.enqueue_embedding = enqueue_embedding or _enqueue_embedding_task

        self.exemplar_limit = self.config.get("RAG_EXEMPLAR_LIMIT") or 3
        self.exemplar_threshold = self.config.get("RAG_EXEMPLAR_THRESHOLD")
        if self.exemplar_threshold is None:
            self.exemplar_threshold = 0.6
        self.pillar_min_words = self.config.get("PILLAR_MIN_WORDS") or 1500
        self.extension_max_tokens = self.config.get("EXTENSION_MAX_TOKENS") or 3000
        self.post_save_mode = self.config.get("POST_SAVE_EMBEDDING_MODE") or "inline"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate, save and (best effort) embed one piece of content.

        Raises:
            ContentValidationError: Unknown content type or missing keyword
            GenerationProviderError: Generation or extension call failed
            StoreError: The generated content could not be saved
        """
        content_type = self._validate(request)
        primary_keyword = request.primary_keyword.strip()

        logger.info(
            "generation_started",
            content_type=content_type.value,
            primary_keyword=primary_keyword,
            topic_area=request.topic_area,
            use_rag=request.use_rag,
        )

        # Step 1: Style references
        exemplars: List[SimilarityResult] = []
        if request.use_rag:
            exemplars = await self._find_exemplars(request, content_type)

        # Step 2: Prompts
        fields = PromptFields(
            primary_keyword=primary_keyword,
            related_keywords=request.related_keywords,
            target_url=request.target_url or None,
            social_context=request.social_context or None,
            style_reference=render_style_reference(exemplars, primary_keyword),
        )
        prompts = build_prompts(content_type.value, fields)

        # Step 3: Generate
        output = await self.generator.complete(prompts)
        content = output.as_text()

        # Step 4: Pillar extension (single attempt)
        extended = False
        if content_type == ContentType.PILLAR:
            content, extended = await self._extend_pillar(primary_keyword, content)

        # Step 5: Save
        topic_area = request.topic_area or "general"
        item = await self.content_store.create(
            title=request.title or f"Generated {content_type.value} content: {primary_keyword}",
            content=content,
            content_type=content_type,
            topic_area=topic_area,
            keywords=request.related_keyword_list or [primary_keyword],
            is_saved=True,
        )

        # Step 6: Embed (best effort)
        source = EmbeddingSource.from_item(item)
        await self._embed_saved_item(source)

        result = GenerationResult(
            content=content,
            content_id=source.id,
            rag_used=len(exemplars) > 0,
            similar_content_found=len(exemplars),
            content_type=content_type.value,
            primary_keyword=primary_keyword,
            topic_area=topic_area,
            word_count=count_words(content),
            extended=extended,
        )

        logger.info(
            "generation_completed",
            content_id=str(source.id),
            content_type=content_type.value,
            word_count=result.word_count,
            rag_used=result.rag_used,
            extended=extended,
        )
        return result

    def _validate(self, request: GenerationRequest) -> ContentType:
        try:
            content_type = ContentType(request.content_type)
        except ValueError:
            raise ContentValidationError(
                f"Invalid content type: {request.content_type}. "
                f"Expected one of: {', '.join(ContentType.values())}"
            ) from None

        if not request.primary_keyword or not request.primary_keyword.strip():
            raise ContentValidationError("primary_keyword is required")

        return content_type

    async def _find_exemplars(
        self,
        request: GenerationRequest,
        content_type: ContentType,
    ) -> List[SimilarityResult]:
        query = f"{request.primary_keyword} {request.related_keywords}".strip()

        try:
            outcome = await self.search.search_text(
                query,
                content_type=content_type.value,
                topic_area=request.topic_area,
                limit=self.exemplar_limit,
                min_similarity=self.exemplar_threshold,
            )
        except Exception as e:
            logger.warning(
                "rag_augmentation_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        # Unscored (fallback) rows are not known to be similar
        exemplars = [r for r in outcome.results if r.is_scored]

        logger.info(
            "rag_exemplars_selected",
            method=outcome.method,
            found=len(outcome.results),
            used=len(exemplars),
        )
        return exemplars

    async def _extend_pillar(self, primary_keyword: str, content: str) -> tuple[str, bool]:
        word_count = count_words(content)
        if word_count >= self.pillar_min_words:
            return content, False

        logger.info(
            "pillar_extension_started",
            word_count=word_count,
            min_words=self.pillar_min_words,
        )

        prompts = build_extension_prompt(primary_keyword, content, self.pillar_min_words)
        extension = await self.generator.complete(prompts, max_tokens=self.extension_max_tokens)

        combined = f"{content}\n\n{extension.as_text()}"
        logger.info("pillar_extension_completed", word_count=count_words(combined))
        return combined, True

    async def _embed_saved_item(self, source: EmbeddingSource) -> None:
        try:
            if self.post_save_mode == "worker":
                self.enqueue_embedding(source.id)
                logger.info("embedding_enqueued", content_id=str(source.id))
                return

            vector = await self.embedder.embed_text(source.embedding_text)
            await self.embedding_store.insert_if_absent(
                source,
                content_text=source.embedding_text,
                embedding=vector,
                model=self.embedder.model_name,
            )

        except Exception as e:
            logger.warning(
                "embedding_skipped",
                content_id=str(source.id),
                error=str(e),
                error_type=type(e).__name__,
            )


def _enqueue_embedding_task(content_id: uuid.UUID) -> None:
    from app.tasks.embedding_tasks import embed_content_item

    embed_content_item.delay(str(content_id))
