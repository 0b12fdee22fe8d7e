"""
Generation Client

Thin wrapper around the chat-completion providers used to write content.

Backends:
---------
- openai (default): gpt-4o, temperature 0.7, max_tokens 4000
- anthropic: Claude through AsyncAnthropic

The client never invents fallback text. Provider errors, timeouts and
empty or unrecognised responses all raise GenerationProviderError.
"""

from typing import Any, Optional

from anthropic import AnthropicError, AsyncAnthropic
from openai import AsyncOpenAI, OpenAIError

from app.core.config import ConfigProvider, get_config_provider
from app.core.exceptions import GenerationProviderError
from app.core.logging import get_logger
from app.services.normalizer import (
    GenerationOutput,
    RawUnrecognized,
    normalize_generation_output,
)
from app.services.prompts import PromptPair


logger = get_logger(__name__)


class GenerationClient:
    """
    Chat-completion client.

    Usage:
    ------
    client = GenerationClient()
    output = await client.complete(PromptPair(system="...", user="..."))
    text = output.as_text()
    """

    def __init__(
        self,
        config: Optional[ConfigProvider] = None,
        provider: Optional[str] = None,
        client: Any = None,
    ):
        """
        Initialize the generation client.

        Args:
            config: Configuration source (default: process-wide provider)
            provider: "openai" or "anthropic" (default from GENERATION_PROVIDER)
            client: Pre-built provider SDK client (tests inject a fake here)

        Raises:
            GenerationProviderError: If the provider's API key is missing
        """
        self.config = config or get_config_provider()
        self.provider = provider or self.config.get("GENERATION_PROVIDER") or "openai"
        self.temperature = self.config.get("GENERATION_TEMPERATURE")
        self.max_tokens = self.config.get("GENERATION_MAX_TOKENS") or 4000
        self.timeout = self.config.get("GENERATION_TIMEOUT_SECONDS") or 120.0

        if self.temperature is None:
            self.temperature = 0.7

        if self.provider == "anthropic":
            self.model = self.config.get("ANTHROPIC_MODEL")
        else:
            self.model = self.config.get("GENERATION_MODEL") or "gpt-4o"

        self.client = client or self._build_client()

        logger.info(
            "generation_client_initialized",
            provider=self.provider,
            model=self.model,
            max_tokens=self.max_tokens,
        )

    def _build_client(self) -> Any:
        if self.provider == "openai":
            api_key = self.config.get("OPENAI_API_KEY")
            if not api_key:
                raise GenerationProviderError(
                    "OpenAI API key is required. Set OPENAI_API_KEY in environment.",
                    provider="openai",
                )
            return AsyncOpenAI(api_key=api_key, timeout=self.timeout)

        if self.provider == "anthropic":
            api_key = self.config.get("ANTHROPIC_API_KEY")
            if not api_key:
                raise GenerationProviderError(
                    "Anthropic API key is required. Set ANTHROPIC_API_KEY in environment.",
                    provider="anthropic",
                )
            return AsyncAnthropic(api_key=api_key, timeout=self.timeout)

        raise GenerationProviderError(
            f"Unknown generation provider: {self.provider}",
            provider=str(self.provider),
        )

    async def complete(
        self,
        prompts: PromptPair,
        max_tokens: Optional[int] = None,
    ) -> GenerationOutput:
        """
        Run one chat completion.

        Args:
            prompts: System and user messages
            max_tokens: Override the configured completion budget

        Returns:
            Normalised output (StructuredContent or PlainOutput)

        Raises:
            GenerationProviderError: On any provider failure or unusable response
        """
        budget = max_tokens or self.max_tokens

        try:
            if self.provider == "anthropic":
                raw = await self._complete_anthropic(prompts, budget)
            else:
                raw = await self._complete_openai(prompts, budget)

        except (OpenAIError, AnthropicError, TimeoutError) as e:
            logger.error("generation_request_failed", provider=self.provider, error=str(e))
            raise GenerationProviderError(
                f"{self.provider} API error: {e}",
                provider=self.provider,
            ) from e

        except (AttributeError, IndexError, KeyError, TypeError) as e:
            logger.error("generation_response_malformed", provider=self.provider, error=str(e))
            raise GenerationProviderError(
                f"Malformed {self.provider} response",
                provider=self.provider,
            ) from e

        output = normalize_generation_output(raw)

        if isinstance(output, RawUnrecognized) or not output.as_text().strip():
            logger.error("generation_response_empty", provider=self.provider, kind=output.kind)
            raise GenerationProviderError(
                f"Empty or unrecognised {self.provider} response",
                provider=self.provider,
            )

        logger.debug(
            "generation_response_received",
            provider=self.provider,
            kind=output.kind,
            characters=len(output.as_text()),
        )
        return output

    async def _complete_openai(self, prompts: PromptPair, max_tokens: int) -> Any:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": prompts.system},
                {"role": "user", "content": prompts.user},
            ],
            temperature=self.temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content

    async def _complete_anthropic(self, prompts: PromptPair, max_tokens: int) -> Any:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=self.temperature,
            system=prompts.system,
            messages=[{"role": "user", "content": prompts.user}],
        )
        return response.content[0].text

    async def close(self) -> None:
        if hasattr(self.client, "close"):
            await self.client.close()


# ========================================
# Global Instance Management
# ========================================

_generation_client: Optional[GenerationClient] = None


def get_generation_client() -> GenerationClient:
    """
    Get or create the global generation client.

    Returns:
        GenerationClient instance
    """
    global _generation_client

    if _generation_client is None:
        _generation_client = GenerationClient()

    return _generation_client


async def shutdown_generation_client() -> None:
    """Close the global generation client, if one was created."""
    global _generation_client

    if _generation_client is not None:
        await _generation_client.close()
        _generation_client = None
