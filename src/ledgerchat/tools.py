import inspect
from typing import Any, Callable

from pydantic import BaseModel, Field


class Tool(BaseModel):
    """A local function the model may call during a direct exchange.

    The JSON schema is derived from the function's signature and
    docstring.  Both plain and ``async`` functions are supported.
    """

    func: Callable = Field(exclude=True)
    name: str
    description: str = ""
    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def from_function(cls, func: Callable) -> "Tool":
        return cls(
            func=func,
            name=func.__name__,
            description=inspect.getdoc(func) or "",
        )

    @staticmethod
    def normalize_to_json_type(annotation: Any) -> str:
        type_mapping = {
            str: "string",
            int: "integer",
            float: "number",
            bool: "boolean",
            dict: "object",
            list: "array",
            tuple: "array",
        }
        return type_mapping.get(annotation, "string")

    def parameters_schema(self) -> dict:
        signature = inspect.signature(self.func)
        properties = {}
        required = []
        for param_name, param in signature.parameters.items():
            properties[param_name] = {
                "type": self.normalize_to_json_type(param.annotation),
            }
            if param.default is inspect.Parameter.empty:
                required.append(param_name)
        return {"type": "object", "properties": properties, "required": required}

    def openai_schema(self) -> dict:
        """OpenAI function-tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }

    async def __call__(self, **kwargs) -> Any:
        result = self.func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


def tool(func: Callable) -> Tool:
    """Decorator turning a function into a :class:`Tool`."""
    return Tool.from_function(func)
