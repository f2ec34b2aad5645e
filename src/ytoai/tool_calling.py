from __future__ import annotations

import logging
from collections.abc import Iterable

from ytoai.errors import ToolCallError
from ytoai.message import (
    AssistantMessage,
    Message,
    Prompt,
    ToolResponse,
    ToolResponseMessage,
)
from ytoai.model import ChatResponse
from ytoai.options import ChatOptions
from ytoai.schema import FunctionTool
from ytoai.tools import FunctionCallback

logger = logging.getLogger(__name__)


class ToolCallSupport:
    """Resolves and executes the function callbacks of a chat model.

    Callbacks given to the constructor are registered but only exposed to
    the model when named in ``ChatOptions.functions``.  Callbacks passed in
    the runtime options of a prompt are exposed for that prompt.

    Args:
        function_callbacks: Callbacks available to every prompt.
    """

    def __init__(self, function_callbacks: Iterable[FunctionCallback] | None = None):
        self.function_callbacks: dict[str, FunctionCallback] = {
            cb.name: cb for cb in function_callbacks or []
        }

    def _available(
        self, runtime_callbacks: Iterable[FunctionCallback] | None
    ) -> dict[str, FunctionCallback]:
        available = dict(self.function_callbacks)
        available.update({cb.name: cb for cb in runtime_callbacks or []})
        return available

    def enabled_function_names(
        self,
        runtime_options: ChatOptions | None,
        default_options: ChatOptions | None,
    ) -> set[str]:
        names: set[str] = set()
        if runtime_options is not None:
            names.update(runtime_options.functions or ())
            names.update(cb.name for cb in runtime_options.function_callbacks or ())
        if default_options is not None:
            names.update(default_options.functions or ())
        return names

    def function_tools(
        self,
        names: Iterable[str],
        runtime_callbacks: Iterable[FunctionCallback] | None = None,
    ) -> list[FunctionTool]:
        available = self._available(runtime_callbacks)
        tools = []
        for name in sorted(names):
            if name not in available:
                raise ToolCallError(f"No function callback found for name: {name}")
            tools.append(available[name].to_function_tool())
        return tools

    def is_tool_call(self, response: ChatResponse | None, finish_reasons: set[str]) -> bool:
        if response is None or not response.generations:
            return False
        return any(
            g.metadata.finish_reason in finish_reasons and g.output.has_tool_calls
            for g in response.generations
        )

    @staticmethod
    def is_proxy_tool_calls(
        runtime_options: ChatOptions | None, default_options: ChatOptions | None
    ) -> bool:
        for options in (runtime_options, default_options):
            if options is not None and options.proxy_tool_calls is not None:
                return options.proxy_tool_calls
        return False

    async def handle_tool_calls(
        self, prompt: Prompt, response: ChatResponse
    ) -> list[Message]:
        """Run the requested tools and return the extended conversation."""
        generation = next(
            (g for g in response.generations if g.output.has_tool_calls), None
        )
        if generation is None:
            raise ToolCallError("No tool call requested by the chat model")

        runtime_callbacks = (
            prompt.options.function_callbacks if prompt.options else None
        )
        responses = await self.execute_functions(
            generation.output, runtime_callbacks
        )
        return [
            *prompt.instructions,
            generation.output,
            ToolResponseMessage(responses=responses),
        ]

    async def execute_functions(
        self,
        message: AssistantMessage,
        runtime_callbacks: Iterable[FunctionCallback] | None = None,
    ) -> list[ToolResponse]:
        available = self._available(runtime_callbacks)
        responses = []
        for tool_call in message.tool_calls:
            callback = available.get(tool_call.name)
            if callback is None:
                raise ToolCallError(
                    f"No function callback found for function name: {tool_call.name}"
                )
            logger.info(f"Calling {tool_call.name} with {tool_call.arguments}")
            output = await callback.call(tool_call.arguments)
            responses.append(ToolResponse(
                id=tool_call.id, name=tool_call.name, response_data=output,
            ))
        return responses
