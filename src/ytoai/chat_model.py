from __future__ import annotations

import base64
import logging
from collections.abc import AsyncIterator

from ytoai.api import YtoAiApi
from ytoai.constants import DEFAULT_CHAT_MODEL
from ytoai.instrumentation import (
    chat_span,
    record_error,
    record_finish_reasons,
    record_usage,
)
from ytoai.message import (
    AssistantMessage,
    AssistantToolCall,
    Media,
    Message,
    Prompt,
    SystemMessage,
    ToolResponseMessage,
    UserMessage,
)
from ytoai.model import (
    ChatGenerationMetadata,
    ChatModel,
    ChatResponse,
    ChatResponseMetadata,
    EmptyUsage,
    Generation,
    StreamingChatModel,
)
from ytoai.options import ChatOptions, merge_chat_options
from ytoai.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from ytoai.schema import (
    ChatCompletion,
    ChatCompletionChunk,
    ChatCompletionFinishReason,
    ChatCompletionFunction,
    ChatCompletionMessage,
    ChatCompletionRequest,
    Choice,
    MediaContent,
    Role,
    ToolCall,
)
from ytoai.streaming import ChunkMerger
from ytoai.tool_calling import ToolCallSupport
from ytoai.tools import FunctionCallback
from ytoai.usage import YtoAiUsage

logger = logging.getLogger(__name__)

# A response with tool calls is acted on when it finished for one of these.
_TOOL_CALL_FINISH_REASONS = {
    ChatCompletionFinishReason.TOOL_CALLS.value,
    ChatCompletionFinishReason.STOP.value,
}


def _from_media_data(media: Media) -> str:
    if isinstance(media.data, bytes):
        encoded = base64.b64encode(media.data).decode("ascii")
        return f"data:{media.mime_type};base64,{encoded}"
    # URL, or a data URL the caller already encoded
    return media.data


def _text_content(content: str | list[MediaContent] | None) -> str | None:
    if content is None or isinstance(content, str):
        return content
    return "".join(part.text or "" for part in content if part.type == "text")


def build_generation(choice: Choice, metadata: dict) -> Generation:
    message = choice.message or ChatCompletionMessage(content="", role=Role.ASSISTANT)
    tool_calls = [
        AssistantToolCall(
            id=tc.id or "",
            type="function",
            name=(tc.function.name or "") if tc.function else "",
            arguments=(tc.function.arguments or "") if tc.function else "",
        )
        for tc in message.tool_calls or []
    ]
    finish_reason = choice.finish_reason.value if choice.finish_reason else ""
    return Generation(
        output=AssistantMessage(
            content=_text_content(message.content),
            tool_calls=tool_calls,
            metadata=metadata,
        ),
        metadata=ChatGenerationMetadata(finish_reason=finish_reason),
    )


class YtoAiChatModel(ChatModel, StreamingChatModel):
    """Chat and streaming chat backed by the YtoAI chat completion API.

    Tool calls requested by the model are executed with the registered
    function callbacks and the conversation is sent back to the model,
    unless ``proxy_tool_calls`` is set, in which case the tool calls are
    returned to the caller.

    Args:
        api: Low-level API client.
        options: Default options, overridden per prompt by ``Prompt.options``.
        function_callbacks: Callbacks the model may call when enabled through
            ``ChatOptions.functions``.
        retry_policy: Retry middleware applied to every API call.
    """

    def __init__(
        self,
        api: YtoAiApi,
        options: ChatOptions | None = None,
        function_callbacks: list[FunctionCallback] | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        if api is None:
            raise ValueError("YtoAiApi must not be None")
        if options is None:
            options = ChatOptions(model=DEFAULT_CHAT_MODEL, temperature=0.7)
        if options.function_callbacks:
            raise ValueError(
                "The default function callbacks must be set via the "
                "function_callbacks constructor parameter"
            )
        self.api = api
        self._default_options = options
        self.retry_policy = retry_policy or DEFAULT_RETRY_POLICY
        self.tool_support = ToolCallSupport(function_callbacks)
        self.chunk_merger = ChunkMerger()

    @property
    def default_options(self) -> ChatOptions:
        return self._default_options.model_copy(deep=True)

    async def call(self, prompt: Prompt) -> ChatResponse:
        request = self.create_request(prompt, stream=False)

        async with chat_span(request.model, **self._span_params(request)) as span:
            try:
                completion = await self.retry_policy.call(
                    self.api.chat_completion, request
                )
            except Exception as e:
                record_error(span, e)
                raise

            if completion is None:
                logger.warning(f"No chat completion returned for prompt: {prompt}")
                response = ChatResponse()
            else:
                response = self._to_response(completion)
                record_usage(span, response.metadata.usage, completion.model)
                record_finish_reasons(span, [
                    g.metadata.finish_reason for g in response.generations
                ])

        if self._should_run_tools(prompt, response):
            conversation = await self.tool_support.handle_tool_calls(prompt, response)
            return await self.call(
                Prompt(instructions=conversation, options=prompt.options)
            )
        return response

    async def stream(self, prompt: Prompt) -> AsyncIterator[ChatResponse]:
        request = self.create_request(prompt, stream=True)

        async with chat_span(request.model, **self._span_params(request)) as span:
            try:
                chunks = await self.retry_policy.call(
                    self.api.chat_completion_stream, request
                )
                # Only the first chunk of a completion carries the role.
                roles: dict[str, str] = {}
                async for chunk in chunks:
                    response = self._chunk_to_response(chunk, roles)
                    if self._should_run_tools(prompt, response):
                        conversation = await self.tool_support.handle_tool_calls(
                            prompt, response
                        )
                        async for follow_up in self.stream(
                            Prompt(instructions=conversation, options=prompt.options)
                        ):
                            yield follow_up
                        continue
                    yield response
            except Exception as e:
                record_error(span, e)
                raise

    def create_request(self, prompt: Prompt, stream: bool) -> ChatCompletionRequest:
        messages = [
            api_message
            for message in prompt.instructions
            for api_message in self._to_api_messages(message)
        ]

        runtime_options = prompt.options
        options = merge_chat_options(runtime_options, self._default_options)

        tools = options.tools
        function_names = self.tool_support.enabled_function_names(
            runtime_options, self._default_options
        )
        if function_names:
            tools = self.tool_support.function_tools(
                function_names,
                runtime_options.function_callbacks if runtime_options else None,
            )

        return ChatCompletionRequest(
            messages=messages,
            model=options.model,
            max_tokens=options.max_tokens,
            stop=options.stop,
            stream=stream,
            temperature=options.temperature,
            top_p=options.top_p,
            tools=tools,
            tool_choice=options.tool_choice,
            user=options.user,
            request_id=options.request_id,
            do_sample=options.do_sample,
        )

    def _to_api_messages(self, message: Message) -> list[ChatCompletionMessage]:
        if isinstance(message, (UserMessage, SystemMessage)):
            content: str | list[MediaContent] = message.content
            if isinstance(message, UserMessage) and message.media:
                content = [
                    MediaContent.of_text(message.content),
                    *(MediaContent.of_image(_from_media_data(m)) for m in message.media),
                ]
            return [ChatCompletionMessage(content=content, role=Role(message.role.value))]

        if isinstance(message, AssistantMessage):
            tool_calls = [
                ToolCall(
                    id=tc.id,
                    type=tc.type,
                    function=ChatCompletionFunction(name=tc.name, arguments=tc.arguments),
                )
                for tc in message.tool_calls
            ]
            return [ChatCompletionMessage(
                content=message.content,
                role=Role.ASSISTANT,
                tool_calls=tool_calls or None,
            )]

        if isinstance(message, ToolResponseMessage):
            return [
                ChatCompletionMessage(
                    content=r.response_data,
                    role=Role.TOOL,
                    name=r.name,
                    tool_call_id=r.id,
                )
                for r in message.responses
            ]

        raise ValueError(f"Unsupported message type: {type(message).__name__}")

    def _should_run_tools(self, prompt: Prompt, response: ChatResponse) -> bool:
        if self.tool_support.is_proxy_tool_calls(prompt.options, self._default_options):
            return False
        return self.tool_support.is_tool_call(response, _TOOL_CALL_FINISH_REASONS)

    def _to_response(self, completion: ChatCompletion) -> ChatResponse:
        generations = []
        for choice in completion.choices:
            role = choice.message.role if choice.message else None
            generations.append(build_generation(choice, {
                "id": completion.id or "",
                "role": role.value if role else "",
                "finish_reason": choice.finish_reason.value if choice.finish_reason else "",
            }))
        return ChatResponse(
            generations=generations, metadata=self._response_metadata(completion)
        )

    def _chunk_to_response(
        self, chunk: ChatCompletionChunk, roles: dict[str, str]
    ) -> ChatResponse:
        try:
            completion = self._chunk_to_chat_completion(chunk)
            completion_id = completion.id or ""
            generations = []
            for choice in completion.choices:
                if choice.message.role is not None:
                    roles.setdefault(completion_id, choice.message.role.value)
                generations.append(build_generation(choice, {
                    "id": completion_id,
                    "role": roles.get(completion_id, ""),
                    "finish_reason": choice.finish_reason.value if choice.finish_reason else "",
                }))
            return ChatResponse(
                generations=generations,
                metadata=self._response_metadata(completion),
            )
        except Exception:
            logger.exception("Error processing chat completion")
            return ChatResponse()

    def _chunk_to_chat_completion(self, chunk: ChatCompletionChunk) -> ChatCompletion:
        choices = [
            c if c.delta is not None else c.model_copy(update={
                "delta": ChatCompletionMessage(content="", role=Role.ASSISTANT),
            })
            for c in chunk.choices
        ]
        return self.chunk_merger.chunk_to_completion(
            chunk.model_copy(update={"choices": choices})
        )

    @staticmethod
    def _response_metadata(completion: ChatCompletion) -> ChatResponseMetadata:
        return ChatResponseMetadata(
            id=completion.id or "",
            model=completion.model or "",
            usage=YtoAiUsage.from_usage(completion.usage) if completion.usage else EmptyUsage(),
            extras={
                "created": completion.created or 0,
                "system-fingerprint": completion.system_fingerprint or "",
            },
        )

    @staticmethod
    def _span_params(request: ChatCompletionRequest) -> dict:
        return {
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "top_p": request.top_p,
            "stop_sequences": request.stop,
        }
