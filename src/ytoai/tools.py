import inspect
import json
from typing import Callable

from pydantic import BaseModel, Field

from ytoai.errors import ToolCallError
from ytoai.schema import FunctionDefinition, FunctionTool


class FunctionCallback(BaseModel):
    """A Python function the chat model may ask to call.

    The JSON schema sent to the API is derived from the function signature
    and the description from its docstring.  Both sync and async functions
    are supported.

    Example::

        @function_callback
        def current_weather(city: str, unit: str = "C"):
            \"\"\"Get the current weather for a city.\"\"\"
            return {"city": city, "temperature": 21, "unit": unit}
    """

    # Define as fields but exclude from serialization
    func: Callable = Field(exclude=True)
    name: str
    description: str = ""
    model_config = {"arbitrary_types_allowed": True}

    def __init__(
        self,
        func: Callable,
        name: str | None = None,
        description: str | None = None,
    ):
        if description is None:
            description = inspect.getdoc(func) or ""
        super().__init__(
            func=func,
            name=name or func.__name__,
            description=description,
        )

    def normalize_to_json_type(self, annotation) -> str:
        type_mapping = {
            'str': 'string',
            'int': 'integer',
            'float': 'number',
            'bool': 'boolean',
            'NoneType': 'null',
            'dict': 'object',
            'list': 'array',
            'tuple': 'array',  # closest equivalent
            'set': 'array',    # closest equivalent
        }
        if isinstance(annotation, str):
            type_name = annotation.split("[")[0]
        else:
            type_name = getattr(annotation, "__name__", "str")
        return type_mapping.get(type_name, 'string')

    def parse_properties(self) -> dict[str, dict[str, str]]:
        signature = inspect.signature(self.func)
        return {
            param_name: {"type": self.normalize_to_json_type(param.annotation)}
            for param_name, param in signature.parameters.items()
        }

    def get_required_params(self) -> list[str]:
        signature = inspect.signature(self.func)
        return [
            name
            for name, param in signature.parameters.items()
            if param.default == inspect.Parameter.empty
        ]

    @property
    def input_schema(self) -> dict:
        return {
            "type": "object",
            "properties": self.parse_properties(),
            "required": self.get_required_params(),
        }

    def to_function_tool(self) -> FunctionTool:
        return FunctionTool(
            function=FunctionDefinition(
                name=self.name,
                description=self.description,
                parameters=self.input_schema,
            )
        )

    async def call(self, arguments: str | None) -> str:
        """Invoke the function with the JSON ``arguments`` the model sent."""
        try:
            params = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError as e:
            raise ToolCallError(
                f"Invalid JSON arguments for {self.name}: {e}"
            ) from e
        if not isinstance(params, dict):
            raise ToolCallError(
                f"Arguments for {self.name} must be a JSON object"
            )

        result = self.func(**params)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, str) else json.dumps(result)


def function_callback(
    func: Callable | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
):
    """Decorator that turns a function into a :class:`FunctionCallback`.

    Usable bare (``@function_callback``) or with overrides
    (``@function_callback(name="lookup")``).
    """
    def wrap(f: Callable) -> FunctionCallback:
        return FunctionCallback(f, name=name, description=description)

    if func is not None:
        return wrap(func)
    return wrap
