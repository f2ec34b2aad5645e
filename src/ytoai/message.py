from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from ytoai.options import ChatOptions


class MessageRole(Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    TOOL = "tool"


class Media(BaseModel):
    """An attachment sent along with a user message.

    ``data`` is either raw bytes or a string holding a URL (or an already
    encoded ``data:`` URL).
    """

    mime_type: str
    data: bytes | str


class SystemMessage(BaseModel):
    role: Literal[MessageRole.SYSTEM] = MessageRole.SYSTEM
    content: str


class UserMessage(BaseModel):
    role: Literal[MessageRole.USER] = MessageRole.USER
    content: str
    media: list[Media] = Field(default_factory=list)


class AssistantToolCall(BaseModel):
    id: str
    type: str = "function"
    name: str
    arguments: str


class AssistantMessage(BaseModel):
    role: Literal[MessageRole.ASSISTANT] = MessageRole.ASSISTANT
    content: str | None = None
    tool_calls: list[AssistantToolCall] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class ToolResponse(BaseModel):
    id: str
    name: str
    response_data: str


class ToolResponseMessage(BaseModel):
    role: Literal[MessageRole.TOOL] = MessageRole.TOOL
    responses: list[ToolResponse]


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolResponseMessage],
    Field(discriminator="role"),
]


class Prompt(BaseModel):
    """An ordered conversation plus the options to run it with."""

    instructions: list[Message]
    options: ChatOptions | None = None

    @classmethod
    def of(cls, text: str, options: ChatOptions | None = None) -> Prompt:
        return cls(instructions=[UserMessage(content=text)], options=options)
