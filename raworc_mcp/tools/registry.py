import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from raworc_mcp.core.errors import UnknownToolError
from raworc_mcp.core.mcp_types import TextContent, ToolCallResult, ToolDefinition, ToolInputSchema

Handler = Callable[..., Awaitable[ToolCallResult]]


class ParamType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class Param(BaseModel):
    """One named argument of a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParamType
    description: str
    required: bool = False
    default: Any = None
    enum: Optional[Tuple[str, ...]] = None
    items: Optional[ParamType] = None
    minimum: Optional[int] = None
    min_length: Optional[int] = None

    def schema(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {"type": self.type.value, "description": self.description}
        if self.items is not None:
            prop["items"] = {"type": self.items.value}
        if self.enum is not None:
            prop["enum"] = list(self.enum)
        if self.minimum is not None:
            prop["minimum"] = self.minimum
        if self.min_length is not None:
            prop["minLength"] = self.min_length
        if self.default is not None:
            prop["default"] = self.default
        return prop


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params: Tuple[Param, ...]
    handler: Handler = field(compare=False)

    def definition(self) -> ToolDefinition:
        required = [p.name for p in self.params if p.required]
        return ToolDefinition(
            name=self.name,
            description=self.description,
            inputSchema=ToolInputSchema(
                properties={p.name: p.schema() for p in self.params},
                required=required or None,
            ),
        )


class ToolRegistry:
    def __init__(self):
        self._tools: Dict[str, Tool] = {}
        self._definitions: List[ToolDefinition] = []
        self._frozen = False

    def register(self, name: str, description: str, params: Iterable[Param] = ()):
        def decorator(func: Handler):
            if self._frozen:
                raise RuntimeError(f"Cannot register tool {name}: registry is frozen")
            if name in self._tools:
                raise ValueError(f"Tool {name} is already registered")
            params_tuple = tuple(params)
            names = [p.name for p in params_tuple]
            if len(names) != len(set(names)):
                raise ValueError(f"Tool {name} declares a parameter twice")
            self._tools[name] = Tool(name=name, description=description, params=params_tuple, handler=func)
            return func
        return decorator

    def freeze(self) -> "ToolRegistry":
        if not self._frozen:
            self._definitions = [t.definition() for t in self._tools.values()]
            self._tools = MappingProxyType(self._tools)
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def tools(self) -> Mapping[str, Tool]:
        return self._tools

    def get_tool(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def get_definitions(self) -> List[ToolDefinition]:
        if self._frozen:
            return list(self._definitions)
        return [t.definition() for t in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


registry = ToolRegistry()


def text_result(text: str) -> ToolCallResult:
    return ToolCallResult(content=[TextContent(text=text)])


def json_result(payload: Any, empty_message: str = "OK") -> ToolCallResult:
    """Pretty-print a backend payload, or confirm an action that returned no body."""
    if payload is None:
        return text_result(empty_message)
    if isinstance(payload, str):
        return text_result(payload)
    return text_result(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def compact(**fields: Any) -> Dict[str, Any]:
    """Request body with unset optional fields dropped."""
    return {k: v for k, v in fields.items() if v is not None}
