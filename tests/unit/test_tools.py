import json

import pytest

from ytoai.errors import ToolCallError
from ytoai.tools import FunctionCallback, function_callback


# ---------------------------------------------------------------------------
# Schema generation
# ---------------------------------------------------------------------------


class TestInputSchema:
    def test_python_types_map_to_json_schema_types(self):
        def func(a: str, b: int, c: float, d: bool, e: list, f: dict):
            pass

        properties = FunctionCallback(func).input_schema["properties"]
        assert properties["a"]["type"] == "string"
        assert properties["b"]["type"] == "integer"
        assert properties["c"]["type"] == "number"
        assert properties["d"]["type"] == "boolean"
        assert properties["e"]["type"] == "array"
        assert properties["f"]["type"] == "object"

    def test_string_annotations(self):
        def func(a: "int", b: "list[str]"):
            pass

        properties = FunctionCallback(func).input_schema["properties"]
        assert properties["a"]["type"] == "integer"
        assert properties["b"]["type"] == "array"

    def test_optional_params_not_required(self):
        def func(name: str, greeting: str = "hi"):
            pass

        assert FunctionCallback(func).input_schema["required"] == ["name"]

    def test_unannotated_param_defaults_to_string(self):
        def func(x):
            pass

        assert FunctionCallback(func).input_schema["properties"]["x"]["type"] == "string"


class TestFunctionCallback:
    def test_name_and_description_from_function(self):
        def lookup(query: str):
            """Look something up."""

        cb = FunctionCallback(lookup)
        assert cb.name == "lookup"
        assert cb.description == "Look something up."

    def test_overrides(self):
        cb = FunctionCallback(lambda: None, name="noop", description="Nothing")
        assert cb.name == "noop"
        assert cb.description == "Nothing"

    def test_to_function_tool(self):
        def lookup(query: str):
            """Look something up."""

        tool = FunctionCallback(lookup).to_function_tool()

        assert tool.type == "function"
        assert tool.function.name == "lookup"
        assert tool.function.description == "Look something up."
        assert tool.function.parameters == {
            "type": "object",
            "properties": {"query": {"type": "string"}},
            "required": ["query"],
        }

    def test_func_excluded_from_dump(self):
        cb = FunctionCallback(lambda: None, name="noop")
        assert "func" not in cb.model_dump()


class TestDecorator:
    def test_bare(self):
        @function_callback
        def greet(name: str):
            """Say hello."""
            return f"Hello, {name}"

        assert isinstance(greet, FunctionCallback)
        assert greet.name == "greet"

    def test_with_overrides(self):
        @function_callback(name="hello", description="Greets")
        def greet(name: str):
            return f"Hello, {name}"

        assert greet.name == "hello"
        assert greet.description == "Greets"


# ---------------------------------------------------------------------------
# call()
# ---------------------------------------------------------------------------


class TestCall:
    @pytest.mark.asyncio
    async def test_string_result_returned_as_is(self):
        cb = FunctionCallback(lambda name: f"Hello, {name}", name="greet")
        assert await cb.call('{"name": "world"}') == "Hello, world"

    @pytest.mark.asyncio
    async def test_other_results_json_encoded(self):
        cb = FunctionCallback(lambda a, b: {"sum": a + b}, name="add")
        assert json.loads(await cb.call('{"a": 1, "b": 2}')) == {"sum": 3}

    @pytest.mark.asyncio
    async def test_async_function(self):
        async def fetch(key: str):
            return [key, key]

        cb = FunctionCallback(fetch)
        assert await cb.call('{"key": "k"}') == '["k", "k"]'

    @pytest.mark.asyncio
    async def test_empty_arguments(self):
        cb = FunctionCallback(lambda: "pong", name="ping")
        assert await cb.call("") == "pong"
        assert await cb.call(None) == "pong"

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        cb = FunctionCallback(lambda x: x, name="echo")
        with pytest.raises(ToolCallError, match="Invalid JSON"):
            await cb.call("{not json")

    @pytest.mark.asyncio
    async def test_non_object_arguments_raise(self):
        cb = FunctionCallback(lambda x: x, name="echo")
        with pytest.raises(ToolCallError, match="JSON object"):
            await cb.call("[1, 2]")
