"""
Tests for the Generation Client

Provider SDK clients are replaced with mocks; no network calls are made.
"""

import httpx
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import openai

from app.core.config import DictConfigProvider
from app.core.exceptions import GenerationProviderError
from app.services.generation import GenerationClient
from app.services.normalizer import PlainOutput, StructuredContent
from app.services.prompts import PromptPair


PROMPTS = PromptPair(system="You are a content writer.", user="Write about desk booking.")


def openai_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def anthropic_response(text):
    return SimpleNamespace(content=[SimpleNamespace(text=text)])


# ========================================
# Fixtures
# ========================================

@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=openai_response("# Desk Booking"))
    client.close = AsyncMock()
    return client


@pytest.fixture
def anthropic_client():
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=anthropic_response("# Desk Booking"))
    return client


@pytest.fixture
def generation_config():
    return DictConfigProvider({
        "GENERATION_MODEL": "gpt-4o",
        "ANTHROPIC_MODEL": "claude-sonnet-4-5",
        "GENERATION_TEMPERATURE": 0.7,
        "GENERATION_MAX_TOKENS": 4000,
    })


# ========================================
# Initialization
# ========================================

def test_openai_requires_api_key(generation_config):
    with pytest.raises(GenerationProviderError, match="OPENAI_API_KEY"):
        GenerationClient(config=generation_config, provider="openai")


def test_anthropic_requires_api_key(generation_config):
    with pytest.raises(GenerationProviderError, match="ANTHROPIC_API_KEY"):
        GenerationClient(config=generation_config, provider="anthropic")


def test_unknown_provider(generation_config):
    with pytest.raises(GenerationProviderError, match="Unknown generation provider"):
        GenerationClient(config=generation_config, provider="cohere")


def test_builds_sdk_client_with_key(generation_config):
    config = DictConfigProvider({"OPENAI_API_KEY": "sk-test"}, fallback=generation_config)

    client = GenerationClient(config=config, provider="openai")

    assert isinstance(client.client, openai.AsyncOpenAI)
    assert client.model == "gpt-4o"


# ========================================
# OpenAI
# ========================================

@pytest.mark.asyncio
async def test_openai_completion(generation_config, openai_client):
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    output = await client.complete(PROMPTS)

    assert isinstance(output, PlainOutput)
    assert output.as_text() == "# Desk Booking"

    kwargs = openai_client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 4000
    assert kwargs["messages"] == [
        {"role": "system", "content": PROMPTS.system},
        {"role": "user", "content": PROMPTS.user},
    ]


@pytest.mark.asyncio
async def test_max_tokens_override(generation_config, openai_client):
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    await client.complete(PROMPTS, max_tokens=3000)

    assert openai_client.chat.completions.create.await_args.kwargs["max_tokens"] == 3000


@pytest.mark.asyncio
async def test_structured_json_response(generation_config, openai_client):
    openai_client.chat.completions.create.return_value = openai_response(
        '{"socialMediaPosts": ["Post one", "Post two"]}'
    )
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    output = await client.complete(PROMPTS)

    assert isinstance(output, StructuredContent)
    assert output.as_text() == "Post one\n\nPost two"


@pytest.mark.asyncio
async def test_openai_api_error_wrapped(generation_config, openai_client):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    openai_client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    with pytest.raises(GenerationProviderError) as exc_info:
        await client.complete(PROMPTS)

    assert exc_info.value.provider == "openai"
    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_timeout_wrapped(generation_config, openai_client):
    openai_client.chat.completions.create.side_effect = TimeoutError()
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    with pytest.raises(GenerationProviderError):
        await client.complete(PROMPTS)


@pytest.mark.asyncio
async def test_malformed_response_wrapped(generation_config, openai_client):
    openai_client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    with pytest.raises(GenerationProviderError, match="Malformed"):
        await client.complete(PROMPTS)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "   \n"])
async def test_empty_response_raises(generation_config, openai_client, content):
    """No fallback text is ever returned for an empty completion."""
    openai_client.chat.completions.create.return_value = openai_response(content)
    client = GenerationClient(config=generation_config, provider="openai", client=openai_client)

    with pytest.raises(GenerationProviderError, match="Empty or unrecognised"):
        await client.complete(PROMPTS)


# ========================================
# Anthropic
# ========================================

@pytest.mark.asyncio
async def test_anthropic_completion(generation_config, anthropic_client):
    client = GenerationClient(config=generation_config, provider="anthropic", client=anthropic_client)

    output = await client.complete(PROMPTS)

    assert output.as_text() == "# Desk Booking"
    kwargs = anthropic_client.messages.create.await_args.kwargs
    assert kwargs["model"] == "claude-sonnet-4-5"
    assert kwargs["system"] == PROMPTS.system
    assert kwargs["messages"] == [{"role": "user", "content": PROMPTS.user}]


@pytest.mark.asyncio
async def test_anthropic_error_wrapped(generation_config, anthropic_client):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    anthropic_client.messages.create.side_effect = anthropic.APIConnectionError(request=request)
    client = GenerationClient(config=generation_config, provider="anthropic", client=anthropic_client)

    with pytest.raises(GenerationProviderError) as exc_info:
        await client.complete(PROMPTS)

    assert exc_info.value.provider == "anthropic"
