"""
Exception hierarchy for ContentPilot.

Services raise these; ``app.main`` maps each family onto an HTTP status and
the ``{"success": false, "error": ...}`` envelope.
"""


class ContentPilotError(Exception):
    """Base class for all application errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ContentValidationError(ContentPilotError):
    """Request rejected before any provider or store call was made."""

    status_code = 400


class ContentNotFoundError(ContentPilotError):
    """A content item referenced by id does not exist."""

    status_code = 404


class ProviderError(ContentPilotError):
    """An upstream model provider failed (unreachable, rate-limited, malformed)."""

    status_code = 502

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class EmbeddingProviderError(ProviderError):
    """Embedding model call failed."""


class GenerationProviderError(ProviderError):
    """Chat-completion model call failed."""


class SearchUnavailableError(ContentPilotError):
    """Neither ranked nor fallback similarity search could run."""

    status_code = 503


class StoreError(ContentPilotError):
    """Insert/update/query against the relational store failed."""

    status_code = 500
