from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple, Type, Union

from pydantic import BaseModel

from core.outcomes import ToolContext


ToolHandler = Callable[[BaseModel, ToolContext], Union[Awaitable[Any], Any]]


class DuplicateToolError(ValueError):
    pass


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_schema: Type[BaseModel]
    handler: ToolHandler

    def schema(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema.model_json_schema(),
        }


class ToolRegistry:
    """
    Static lookup table of tools keyed by name.

    Filled once at construction and read-only afterwards,
    so a single instance can be shared by concurrent dispatches.
    """

    def __init__(self, tools: Iterable[ToolDescriptor] = ()):
        self._tools: Dict[str, ToolDescriptor] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise DuplicateToolError(f"Tool '{tool.name}' registered twice")
            self._tools[tool.name] = tool

    def list_tools(self) -> Tuple[ToolDescriptor, ...]:
        return tuple(self._tools.values())

    def lookup(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
