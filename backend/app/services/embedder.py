"""
Embedding Service

This module turns text into fixed-length embedding vectors.

Backends:
---------
- openai (default): text-embedding-ada-002 through the OpenAI API
  - 1536 dimensions
- local: a sentence-transformers model loaded in-process
  - dimension given by the model (set EMBEDDING_DIMENSION to match)
  - requires the ``local-embeddings`` extra

Features:
---------
- One retry with backoff on provider failure (tenacity)
- Dimension check on every vector (all stored vectors share one dimension)
- Lazy setup: the provider client is built on first use
"""

import asyncio
from typing import Any, Optional

import numpy as np
from openai import AsyncOpenAI
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from app.core.config import ConfigProvider, get_config_provider
from app.core.exceptions import ContentValidationError, EmbeddingProviderError
from app.core.logging import get_logger


logger = get_logger(__name__)


class EmbeddingService:
    """
    Service for generating embeddings.

    Usage:
    ------
    embedder = EmbeddingService()
    await embedder.initialize()

    # Single text
    embedding = await embedder.embed_text("Desk booking for hybrid offices")
    """

    def __init__(
        self,
        config: Optional[ConfigProvider] = None,
        provider: Optional[str] = None,
        model_name: Optional[str] = None,
        dimension: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        client: Any = None,
    ):
        """
        Initialize the embedding service.

        Args:
            config: Configuration source (default: process-wide provider)
            provider: "openai" or "local" (default from EMBEDDING_PROVIDER)
            model_name: Model name/path (default from EMBEDDING_MODEL)
            dimension: Expected vector length (default from EMBEDDING_DIMENSION)
            retry_backoff_seconds: Wait before the single retry
            client: Pre-built provider client (tests inject a fake here)
        """
        self.config = config or get_config_provider()
        self.provider = provider or self.config.get("EMBEDDING_PROVIDER") or "openai"
        self.model_name = model_name or self.config.get("EMBEDDING_MODEL")
        self.dimension = dimension or self.config.get("EMBEDDING_DIMENSION")
        backoff = retry_backoff_seconds
        if backoff is None:
            backoff = self.config.get("EMBEDDING_RETRY_BACKOFF_SECONDS")
        self.retry_backoff_seconds = 1.0 if backoff is None else float(backoff)

        self.client = client
        self.model = None
        self._initialized = client is not None

    async def initialize(self) -> None:
        """
        Initialize the provider client.

        For the local backend this loads the model (CPU-intensive, so it runs
        in a worker thread). Should be called once at application startup.

        Raises:
            EmbeddingProviderError: If the backend cannot be set up
        """
        if self._initialized:
            logger.info("embedding_service_already_initialized")
            return

        if self.provider == "openai":
            api_key = self.config.get("OPENAI_API_KEY")
            if not api_key:
                raise EmbeddingProviderError(
                    "OpenAI API key is required for embeddings. Set OPENAI_API_KEY.",
                    provider="openai",
                )
            self.client = AsyncOpenAI(api_key=api_key)

        elif self.provider == "local":
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise EmbeddingProviderError(
                    "Local embeddings need the 'local-embeddings' extra "
                    "(pip install contentpilot-backend[local-embeddings])",
                    provider="local",
                ) from e

            logger.info("loading_embedding_model", model=self.model_name)
            self.model = await asyncio.to_thread(
                SentenceTransformer,
                self.model_name,
                device=self.config.get("EMBEDDING_DEVICE") or "cpu",
            )

        else:
            raise EmbeddingProviderError(
                f"Unknown embedding provider: {self.provider}",
                provider=str(self.provider),
            )

        self._initialized = True
        logger.info(
            "embedding_service_initialized",
            provider=self.provider,
            model=self.model_name,
            dimension=self.dimension,
        )

    def get_embedding_dimension(self) -> int:
        """Return the configured embedding dimension."""
        return int(self.dimension)

    async def embed_text(self, text: str, retry_on_error: bool = True) -> list[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed (callers concatenate title and body)
            retry_on_error: Retry once after a backoff (default True)

        Returns:
            Embedding vector as list of floats

        Raises:
            ContentValidationError: If text is empty
            EmbeddingProviderError: If the provider fails twice, returns a
                vector of the wrong dimension, or cannot be initialized
        """
        if not text or not text.strip():
            raise ContentValidationError("Cannot embed empty text")

        if not self._initialized:
            await self.initialize()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(2 if retry_on_error else 1),
                wait=wait_fixed(self.retry_backoff_seconds),
                retry=retry_if_not_exception_type(EmbeddingProviderError),
                before_sleep=self._log_retry,
                reraise=True,
            ):
                with attempt:
                    embedding = await self._embed(text)

        except EmbeddingProviderError:
            raise

        except Exception as e:
            logger.warning(
                "embedding_request_failed",
                provider=self.provider,
                error=str(e),
            )
            raise EmbeddingProviderError(
                f"Embedding provider error: {e}",
                provider=self.provider,
            ) from e

        return self._check_dimension(embedding)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "embedding_request_retrying",
            provider=self.provider,
            attempt=retry_state.attempt_number,
            error=str(error),
        )

    async def _embed(self, text: str) -> list[float]:
        if self.provider == "local":
            vector = await asyncio.to_thread(
                self.model.encode,
                text,
                normalize_embeddings=True,
                show_progress_bar=False,
            )
            return np.asarray(vector, dtype=np.float32).tolist()

        response = await self.client.embeddings.create(
            model=self.model_name,
            input=text,
        )

        if not response.data:
            raise ValueError("Embedding response contained no data")

        return [float(x) for x in response.data[0].embedding]

    def _check_dimension(self, embedding: list[float]) -> list[float]:
        if self.dimension and len(embedding) != int(self.dimension):
            raise EmbeddingProviderError(
                f"Embedding has {len(embedding)} dimensions, expected {self.dimension}",
                provider=self.provider,
            )
        return embedding

    async def shutdown(self) -> None:
        """
        Shutdown the embedding service and free resources.

        Should be called at application shutdown.
        """
        if self.client is not None and hasattr(self.client, "close"):
            await self.client.close()
        self.client = None
        self.model = None
        self._initialized = False
        logger.info("embedding_service_shut_down")


# ========================================
# Global Instance Management
# ========================================

_embedding_service: Optional[EmbeddingService] = None


def get_embedding_service() -> EmbeddingService:
    """
    Get or create the global embedding service instance.

    The instance is not initialized here; the first ``embed_text`` call
    does that, so a missing provider only fails the operations that embed.
    """
    global _embedding_service

    if _embedding_service is None:
        _embedding_service = EmbeddingService()

    return _embedding_service


async def shutdown_embedding_service() -> None:
    """
    Shutdown the global embedding service.

    Should be called at application shutdown.
    """
    global _embedding_service

    if _embedding_service is not None:
        await _embedding_service.shutdown()
        _embedding_service = None
