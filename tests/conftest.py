from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from ytoai.api import YtoAiApi
from ytoai.errors import TransientAiError
from ytoai.image_api import YtoAiImageApi
from ytoai.retry import RetryPolicy
from ytoai.schema import ChatCompletionChunk


# ---------------------------------------------------------------------------
# Fake OpenAI client (no network calls)
# ---------------------------------------------------------------------------

def make_fake_client():
    """Object with the ``AsyncOpenAI`` attributes the API classes use."""
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock())),
        embeddings=SimpleNamespace(create=AsyncMock()),
        images=SimpleNamespace(generate=AsyncMock()),
    )


async def async_iter(items):
    for item in items:
        yield item


async def collect(aiter) -> list:
    return [item async for item in aiter]


async def no_sleep(_seconds):
    return None


# ---------------------------------------------------------------------------
# Response payload builders (mirror the JSON the API returns)
# ---------------------------------------------------------------------------

def tool_call_dict(name: str, arguments: str, call_id: str | None = "call_1") -> dict:
    tc = {"type": "function", "function": {"name": name, "arguments": arguments}}
    if call_id is not None:
        tc["id"] = call_id
    return tc


def completion_dict(
    content: str | None = "Response",
    finish_reason: str = "stop",
    tool_calls: list[dict] | None = None,
    completion_id: str = "id",
    model: str = "glm-4-air",
) -> dict:
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {
        "id": completion_id,
        "object": "chat.completion",
        "created": 666,
        "model": model,
        "choices": [{"index": 0, "finish_reason": finish_reason, "message": message}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


def chunk_dict(
    content: str | None = None,
    role: str | None = None,
    finish_reason: str | None = None,
    tool_calls: list[dict] | None = None,
    chunk_id: str = "id",
) -> dict:
    delta = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    choice = {"index": 0, "delta": delta}
    if finish_reason is not None:
        choice["finish_reason"] = finish_reason
    return {
        "id": chunk_id,
        "object": "chat.completion.chunk",
        "created": 666,
        "model": "glm-4-air",
        "choices": [choice],
    }


def make_chunk(**kwargs) -> ChatCompletionChunk:
    return ChatCompletionChunk.model_validate(chunk_dict(**kwargs))


def embedding_dict(vector: list[float], model: str = "embedding-2") -> dict:
    return {
        "object": "list",
        "model": model,
        "data": [{"index": 0, "object": "embedding", "embedding": vector}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 0, "total_tokens": 3},
    }


# ---------------------------------------------------------------------------
# Retry helpers
# ---------------------------------------------------------------------------

class RetryListener:
    """Records the retry counts reported by a :class:`RetryPolicy`."""

    def __init__(self):
        self.on_error_retry_count = 0
        self.on_success_retry_count = 0

    def on_error(self, retry_count: int, exc: BaseException) -> None:
        self.on_error_retry_count = retry_count

    def on_success(self, retries: int) -> None:
        self.on_success_retry_count = retries


def transient(n: int) -> TransientAiError:
    return TransientAiError(f"Transient Error {n}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_client():
    return make_fake_client()


@pytest.fixture
def api(fake_client):
    return YtoAiApi("test-key", client=fake_client)


@pytest.fixture
def image_api(fake_client):
    return YtoAiImageApi("test-key", client=fake_client)


@pytest.fixture
def retry_listener():
    return RetryListener()


@pytest.fixture
def short_retry(retry_listener):
    return RetryPolicy.short(
        on_error=retry_listener.on_error,
        on_success=retry_listener.on_success,
        sleep=no_sleep,
    )
