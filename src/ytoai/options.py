"""Per-model options and the functions that merge them.

Every option field is optional.  Merging takes option layers ordered from
highest to lowest precedence (runtime override, request-scoped options,
model defaults) and keeps, field by field, the first value that is set.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, Field

from ytoai.schema import FunctionTool
from ytoai.tools import FunctionCallback

T = TypeVar("T")


class ChatOptions(BaseModel):
    model: str | None = None
    max_tokens: int | None = None
    stop: list[str] | None = None
    temperature: float | None = None
    top_p: float | None = None
    tools: list[FunctionTool] | None = None
    tool_choice: str | dict[str, Any] | None = None
    user: str | None = None
    request_id: str | None = None
    do_sample: bool | None = None
    # Names of registered function callbacks to expose to the model.
    functions: set[str] | None = None
    # When set, tool calls are returned to the caller instead of executed.
    proxy_tool_calls: bool | None = None
    function_callbacks: list[FunctionCallback] | None = Field(
        default=None, exclude=True
    )

    model_config = {"arbitrary_types_allowed": True}


class EmbeddingOptions(BaseModel):
    model: str | None = None
    # Vector size; the hosted models accept 256, 512, 1024 or 2048.
    dimensions: int | None = None


class ImageOptions(BaseModel):
    model: str | None = None
    # End-user id forwarded as ``user_id``.
    user: str | None = None


def first_set(*values: T | None) -> T | None:
    for value in values:
        if value is not None:
            return value
    return None


def merge_chat_options(*layers: ChatOptions | None) -> ChatOptions:
    present = [layer for layer in layers if layer is not None]

    def pick(field: str):
        return first_set(*(getattr(layer, field) for layer in present))

    return ChatOptions(
        model=pick("model"),
        max_tokens=pick("max_tokens"),
        stop=pick("stop"),
        temperature=pick("temperature"),
        top_p=pick("top_p"),
        tools=pick("tools"),
        tool_choice=pick("tool_choice"),
        user=pick("user"),
        request_id=pick("request_id"),
        do_sample=pick("do_sample"),
        functions=pick("functions"),
        proxy_tool_calls=pick("proxy_tool_calls"),
        function_callbacks=pick("function_callbacks"),
    )


def merge_embedding_options(*layers: EmbeddingOptions | None) -> EmbeddingOptions:
    present = [layer for layer in layers if layer is not None]
    return EmbeddingOptions(
        model=first_set(*(layer.model for layer in present)),
        dimensions=first_set(*(layer.dimensions for layer in present)),
    )


def merge_image_options(*layers: ImageOptions | None) -> ImageOptions:
    present = [layer for layer in layers if layer is not None]
    return ImageOptions(
        model=first_set(*(layer.model for layer in present)),
        user=first_set(*(layer.user for layer in present)),
    )
