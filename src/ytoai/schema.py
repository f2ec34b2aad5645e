"""Wire models for the YtoAI chat completion and embedding endpoints.

Field names follow the JSON payloads of the API so that a model can be
dumped straight into a request or validated straight from a response.
Every response field is optional: streamed chunks only carry the fields
that changed.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ChatCompletionFinishReason(Enum):
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    FUNCTION_CALL = "function_call"
    SENSITIVE = "sensitive"
    NETWORK_ERROR = "network_error"


class ChatCompletionFunction(BaseModel):
    name: str | None = None
    # JSON encoded, may be a fragment while streaming
    arguments: str | None = None


class ToolCall(BaseModel):
    id: str | None = None
    type: str | None = None
    function: ChatCompletionFunction | None = None


class ImageUrl(BaseModel):
    url: str
    detail: str | None = None


class MediaContent(BaseModel):
    type: Literal["text", "image_url"]
    text: str | None = None
    image_url: ImageUrl | None = None

    @classmethod
    def of_text(cls, text: str) -> MediaContent:
        return cls(type="text", text=text)

    @classmethod
    def of_image(cls, url: str) -> MediaContent:
        return cls(type="image_url", image_url=ImageUrl(url=url))


class ChatCompletionMessage(BaseModel):
    content: str | list[MediaContent] | None = None
    role: Role | None = None
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] | None = None


class FunctionDefinition(BaseModel):
    description: str | None = None
    name: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class FunctionTool(BaseModel):
    type: Literal["function"] = "function"
    function: FunctionDefinition


class ChatCompletionRequest(BaseModel):
    messages: list[ChatCompletionMessage]
    model: str | None = None
    max_tokens: int | None = None
    stop: list[str] | None = None
    stream: bool = False
    temperature: float | None = None
    top_p: float | None = None
    tools: list[FunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    user: str | None = None
    request_id: str | None = None
    do_sample: bool | None = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Choice(BaseModel):
    finish_reason: ChatCompletionFinishReason | None = None
    index: int | None = None
    message: ChatCompletionMessage | None = None
    logprobs: dict[str, Any] | None = None


class ChatCompletion(BaseModel):
    id: str | None = None
    choices: list[Choice] = Field(default_factory=list)
    created: int | None = None
    model: str | None = None
    system_fingerprint: str | None = None
    object: str | None = None
    usage: Usage | None = None


class ChunkChoice(BaseModel):
    finish_reason: ChatCompletionFinishReason | None = None
    index: int | None = None
    delta: ChatCompletionMessage | None = None
    logprobs: dict[str, Any] | None = None


class ChatCompletionChunk(BaseModel):
    id: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=list)
    created: int | None = None
    model: str | None = None
    system_fingerprint: str | None = None
    object: str | None = None


class EmbeddingRequest(BaseModel):
    input: str
    model: str | None = None
    dimensions: int | None = None


class Embedding(BaseModel):
    index: int = 0
    embedding: list[float] = Field(default_factory=list)
    object: str | None = None


class EmbeddingList(BaseModel):
    object: str | None = None
    data: list[Embedding] = Field(default_factory=list)
    model: str | None = None
    usage: Usage | None = None
