"""Streaming primitives for chat completions.

The API streams tool calls as a run of chunks: the first one carries the
tool-call id and function name, the following ones carry only fragments of
the JSON arguments.  :class:`ChunkMerger` folds such a run into a single
accumulated chunk, and :func:`merge_tool_call_chunks` applies it to a live
stream so that callers only ever see complete tool calls.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TypeVar

from ytoai.errors import StreamProtocolError
from ytoai.schema import (
    ChatCompletion,
    ChatCompletionChunk,
    ChatCompletionFinishReason,
    ChatCompletionFunction,
    ChatCompletionMessage,
    Choice,
    ChunkChoice,
    Role,
    ToolCall,
)

T = TypeVar("T")


def _coalesce(current: T | None, previous: T | None) -> T | None:
    return current if current is not None else previous


def _first(items: list[T] | None) -> T | None:
    return items[0] if items else None


class ChunkMerger:
    """Merges consecutive :class:`ChatCompletionChunk` objects.

    The merger holds no state; the caller keeps the accumulated chunk and
    feeds chunks in arrival order::

        merged = None
        for chunk in chunks:
            merged = merger.merge(merged, chunk)

    Only one tool call may be in flight at a time.  A tool call that carries
    an id starts a new call, one without an id continues the arguments of
    the call in flight.
    """

    def merge(
        self,
        previous: ChatCompletionChunk | None,
        current: ChatCompletionChunk,
    ) -> ChatCompletionChunk:
        if previous is None:
            return current

        choice = self._merge_choice(
            _first(previous.choices), _first(current.choices)
        )
        return ChatCompletionChunk(
            id=_coalesce(current.id, previous.id),
            choices=[choice] if choice is not None else [],
            created=_coalesce(current.created, previous.created),
            model=_coalesce(current.model, previous.model),
            system_fingerprint=_coalesce(
                current.system_fingerprint, previous.system_fingerprint
            ),
            object=_coalesce(current.object, previous.object),
        )

    def _merge_choice(
        self, previous: ChunkChoice | None, current: ChunkChoice | None
    ) -> ChunkChoice | None:
        if previous is None:
            return current
        if current is None:
            return previous
        return ChunkChoice(
            finish_reason=_coalesce(
                current.finish_reason, previous.finish_reason
            ),
            index=_coalesce(current.index, previous.index),
            delta=self._merge_message(previous.delta, current.delta),
            logprobs=_coalesce(current.logprobs, previous.logprobs),
        )

    def _merge_message(
        self,
        previous: ChatCompletionMessage | None,
        current: ChatCompletionMessage | None,
    ) -> ChatCompletionMessage | None:
        if previous is None and current is None:
            return None
        # A null delta contributes nothing but still gets the defaults below.
        previous = previous or ChatCompletionMessage()
        current = current or ChatCompletionMessage()

        content = _coalesce(current.content, previous.content)
        if content is None:
            content = ""
        role = _coalesce(current.role, previous.role) or Role.ASSISTANT

        tool_calls: list[ToolCall] = []
        in_flight: ToolCall | None = None
        if previous.tool_calls:
            *finished, in_flight = previous.tool_calls
            tool_calls.extend(finished)

        if current.tool_calls:
            if len(current.tool_calls) > 1:
                raise StreamProtocolError(
                    "Only one tool call per streamed chunk is supported, "
                    f"got {len(current.tool_calls)}"
                )
            incoming = current.tool_calls[0]
            if incoming.id is not None:
                if in_flight is not None:
                    tool_calls.append(in_flight)
                tool_calls.append(incoming)
            else:
                tool_calls.append(self._merge_tool_call(in_flight, incoming))
        elif in_flight is not None:
            tool_calls.append(in_flight)

        return ChatCompletionMessage(
            content=content,
            role=role,
            name=_coalesce(current.name, previous.name),
            tool_call_id=_coalesce(current.tool_call_id, previous.tool_call_id),
            tool_calls=tool_calls,
        )

    def _merge_tool_call(
        self, previous: ToolCall | None, current: ToolCall
    ) -> ToolCall:
        if previous is None:
            return current
        return ToolCall(
            id=_coalesce(current.id, previous.id),
            type=_coalesce(current.type, previous.type),
            function=self._merge_function(previous.function, current.function),
        )

    def _merge_function(
        self,
        previous: ChatCompletionFunction | None,
        current: ChatCompletionFunction | None,
    ) -> ChatCompletionFunction | None:
        if previous is None:
            return current
        if current is None:
            return previous
        return ChatCompletionFunction(
            name=_coalesce(current.name, previous.name),
            arguments=(previous.arguments or "") + (current.arguments or ""),
        )

    def is_streaming_tool_call(self, chunk: ChatCompletionChunk | None) -> bool:
        """True when the chunk's first choice carries tool-call deltas."""
        choice = _first(chunk.choices) if chunk is not None else None
        if choice is None or choice.delta is None:
            return False
        return bool(choice.delta.tool_calls)

    def is_streaming_tool_call_finished(
        self, chunk: ChatCompletionChunk | None
    ) -> bool:
        """True when the chunk terminates a streamed tool call."""
        choice = _first(chunk.choices) if chunk is not None else None
        if choice is None or choice.delta is None:
            return False
        return choice.finish_reason == ChatCompletionFinishReason.TOOL_CALLS

    def chunk_to_completion(self, chunk: ChatCompletionChunk) -> ChatCompletion:
        """Project a chunk onto a :class:`ChatCompletion`.

        Usage is left unset; the API only reports it on non-streamed
        responses.
        """
        choices = [
            Choice(
                finish_reason=c.finish_reason,
                index=c.index,
                message=c.delta,
                logprobs=c.logprobs,
            )
            for c in chunk.choices
        ]
        return ChatCompletion(
            id=chunk.id,
            choices=choices,
            created=chunk.created,
            model=chunk.model,
            system_fingerprint=chunk.system_fingerprint,
            object="chat.completion",
            usage=None,
        )


async def merge_tool_call_chunks(
    chunks: AsyncIterator[ChatCompletionChunk],
    merger: ChunkMerger | None = None,
) -> AsyncIterator[ChatCompletionChunk]:
    """Pass text chunks through and collapse each streamed tool call.

    Chunks from the first tool-call delta up to and including the chunk
    whose finish reason is ``tool_calls`` are merged and yielded as one
    chunk.  If the stream ends first, the partial merge is flushed.
    """
    merger = merger or ChunkMerger()
    inside_tool_call = False
    merged: ChatCompletionChunk | None = None

    async for chunk in chunks:
        if merger.is_streaming_tool_call(chunk):
            inside_tool_call = True
        merged = merger.merge(merged, chunk)
        if inside_tool_call:
            if not merger.is_streaming_tool_call_finished(chunk):
                continue
            inside_tool_call = False
        yield merged
        merged = None

    if merged is not None:
        yield merged
