"""Low-level client for the YtoAI chat completion and embedding endpoints.

The API speaks the OpenAI wire format, so requests go through
``openai.AsyncOpenAI`` pointed at the YtoAI base URL.  The SDK's own retries
are switched off; retrying is the job of :class:`ytoai.retry.RetryPolicy`.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Mapping
from typing import Any

from openai import AsyncOpenAI

from ytoai.constants import API_VERSION_PATH, DEFAULT_BASE_URL
from ytoai.schema import (
    ChatCompletion,
    ChatCompletionChunk,
    ChatCompletionRequest,
    EmbeddingList,
    EmbeddingRequest,
)
from ytoai.streaming import ChunkMerger, merge_tool_call_chunks

logger = logging.getLogger(__name__)

# Request fields the OpenAI SDK has no keyword for.
_EXTRA_BODY_FIELDS = ("request_id", "do_sample")


def normalize_base_url(base_url: str) -> str:
    """Strip trailing slashes and make sure the URL ends in ``/v4``."""
    base_url = base_url.rstrip("/")
    if not base_url.endswith(API_VERSION_PATH):
        base_url = f"{base_url}{API_VERSION_PATH}"
    return base_url


def create_client(
    api_key: str | None = None,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = 600.0,
) -> AsyncOpenAI:
    if not api_key:
        api_key = os.getenv("YTOAI_API_KEY")
    return AsyncOpenAI(
        base_url=normalize_base_url(base_url),
        api_key=api_key,
        max_retries=0,
        timeout=timeout,
    )


def to_mapping(response: Any) -> dict[str, Any] | None:
    """Turn an SDK response object (or a plain mapping) into a dict."""
    if response is None:
        return None
    if isinstance(response, Mapping):
        return dict(response)
    return response.model_dump(exclude_unset=True)


class YtoAiApi:

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 600.0,
        client: AsyncOpenAI | None = None,
    ):
        self.base_url = normalize_base_url(base_url)
        if client is None:
            client = create_client(api_key, base_url, timeout)
        self.client = client
        self.chunk_merger = ChunkMerger()

    async def chat_completion(
        self, request: ChatCompletionRequest
    ) -> ChatCompletion | None:
        if request.stream:
            raise ValueError("Request must set the stream property to False.")
        response = await self.client.chat.completions.create(
            **self._chat_kwargs(request)
        )
        data = to_mapping(response)
        if data is None:
            return None
        return ChatCompletion.model_validate(data)

    async def chat_completion_stream(
        self, request: ChatCompletionRequest
    ) -> AsyncIterator[ChatCompletionChunk]:
        """Open a streamed completion.

        Awaiting this method sends the request; the returned iterator yields
        chunks in arrival order with every streamed tool call already merged.
        """
        if not request.stream:
            raise ValueError("Request must set the stream property to True.")
        stream = await self.client.chat.completions.create(
            **self._chat_kwargs(request)
        )
        return merge_tool_call_chunks(
            self._parse_chunks(stream), self.chunk_merger
        )

    async def embeddings(self, request: EmbeddingRequest) -> EmbeddingList | None:
        if not request.input:
            raise ValueError("Input text to embed must not be empty.")
        kwargs: dict[str, Any] = {
            "input": request.input,
            "model": request.model,
            "encoding_format": "float",
        }
        if request.dimensions is not None:
            kwargs["dimensions"] = request.dimensions
        response = await self.client.embeddings.create(**kwargs)
        data = to_mapping(response)
        if data is None:
            return None
        return EmbeddingList.model_validate(data)

    def _chat_kwargs(self, request: ChatCompletionRequest) -> dict[str, Any]:
        payload = request.model_dump(mode="json", exclude_none=True)
        extra_body = {
            key: payload.pop(key)
            for key in _EXTRA_BODY_FIELDS
            if key in payload
        }
        if extra_body:
            payload["extra_body"] = extra_body
        return payload

    async def _parse_chunks(self, stream) -> AsyncIterator[ChatCompletionChunk]:
        async for chunk in stream:
            data = to_mapping(chunk)
            if data is None:
                logger.debug("Skipping empty stream frame")
                continue
            yield ChatCompletionChunk.model_validate(data)
