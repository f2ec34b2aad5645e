"""Generic model abstractions implemented by the YtoAI bindings.

Callers program against :class:`ChatModel`, :class:`StreamingChatModel`,
:class:`EmbeddingModel` and :class:`ImageModel`; the request and response
types here carry no vendor-specific fields.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from ytoai.document import Document
from ytoai.message import AssistantMessage, Prompt
from ytoai.options import ChatOptions, EmbeddingOptions, ImageOptions


class Usage(ABC):
    """Token accounting reported by a model call."""

    @property
    @abstractmethod
    def prompt_tokens(self) -> int: ...

    @property
    @abstractmethod
    def generation_tokens(self) -> int: ...

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.generation_tokens


class EmptyUsage(Usage):

    @property
    def prompt_tokens(self) -> int:
        return 0

    @property
    def generation_tokens(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "EmptyUsage()"


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

@dataclass
class ChatGenerationMetadata:
    finish_reason: str = ""


@dataclass
class Generation:
    output: AssistantMessage
    metadata: ChatGenerationMetadata = field(default_factory=ChatGenerationMetadata)


@dataclass
class ChatResponseMetadata:
    id: str = ""
    model: str = ""
    usage: Usage = field(default_factory=EmptyUsage)
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatResponse:
    generations: list[Generation] = field(default_factory=list)
    metadata: ChatResponseMetadata = field(default_factory=ChatResponseMetadata)

    @property
    def result(self) -> Generation | None:
        return self.generations[0] if self.generations else None

    def has_tool_calls(self) -> bool:
        return any(g.output.has_tool_calls for g in self.generations)


class ChatModel(ABC):

    @abstractmethod
    async def call(self, prompt: Prompt) -> ChatResponse:
        """Run the prompt and return the complete response."""

    @property
    def default_options(self) -> ChatOptions:
        return ChatOptions()


class StreamingChatModel(ABC):

    @abstractmethod
    def stream(self, prompt: Prompt) -> AsyncIterator[ChatResponse]:
        """Run the prompt and yield partial responses as they arrive."""


# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------

@dataclass
class EmbeddingRequest:
    instructions: list[str]
    options: EmbeddingOptions | None = None


@dataclass
class Embedding:
    output: list[float]
    index: int


@dataclass
class EmbeddingResponseMetadata:
    model: str = ""
    usage: Usage = field(default_factory=EmptyUsage)


@dataclass
class EmbeddingResponse:
    embeddings: list[Embedding] = field(default_factory=list)
    metadata: EmbeddingResponseMetadata = field(
        default_factory=EmbeddingResponseMetadata
    )

    @property
    def result(self) -> Embedding | None:
        return self.embeddings[0] if self.embeddings else None


class EmbeddingModel(ABC):

    @abstractmethod
    async def call(self, request: EmbeddingRequest) -> EmbeddingResponse:
        """Embed every instruction of the request."""

    @abstractmethod
    async def embed_document(self, document: Document) -> list[float]:
        """Embed a document together with its metadata."""

    async def embed(self, text: str) -> list[float]:
        response = await self.call(EmbeddingRequest(instructions=[text]))
        return response.result.output if response.result else []

    async def embed_all(self, texts: list[str]) -> list[list[float]]:
        response = await self.call(EmbeddingRequest(instructions=texts))
        return [e.output for e in response.embeddings]

    async def dimensions(self) -> int:
        """Size of the vectors this model produces, probed with a test call."""
        return len(await self.embed("Test String"))


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

@dataclass
class ImageMessage:
    text: str
    weight: float | None = None


@dataclass
class ImagePrompt:
    instructions: list[ImageMessage]
    options: ImageOptions | None = None

    @classmethod
    def of(cls, text: str, options: ImageOptions | None = None) -> ImagePrompt:
        return cls(instructions=[ImageMessage(text=text)], options=options)


@dataclass
class Image:
    url: str | None = None
    b64_json: str | None = None


@dataclass
class ImageGeneration:
    output: Image


@dataclass
class ImageResponse:
    generations: list[ImageGeneration] = field(default_factory=list)

    @property
    def result(self) -> ImageGeneration | None:
        return self.generations[0] if self.generations else None


class ImageModel(ABC):

    @abstractmethod
    async def call(self, prompt: ImagePrompt) -> ImageResponse:
        """Generate images for the prompt."""
