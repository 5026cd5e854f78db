"""
Base classes for tools.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from ..errors import ToolErrorKind


@dataclass(frozen=True)
class ToolDescriptor:
    """Name, description and input schema of a tool, as exposed on /tools/list."""

    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolDescriptor":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            input_schema=data.get("inputSchema") or {"type": "object", "properties": {}},
        )


@dataclass
class ToolResult:
    """Result from a tool execution."""

    success: bool
    output: str = ""
    data: Any = None
    error: str | None = None
    error_kind: ToolErrorKind | None = None

    @property
    def text(self) -> str:
        """Textual form folded back into the conversation."""
        return self.output if self.success else f"Error: {self.error}"


class BaseTool(ABC):
    """Base class for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """Get the tool parameters schema (JSON Schema)."""
        pass

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool with given arguments."""
        pass

    @property
    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.parameters,
        )


class FunctionTool(BaseTool):
    """Tool backed by a plain async callable.

    The callable receives the invocation arguments as keyword arguments and
    returns either a ToolResult or any value, which becomes the output text.
    """

    def __init__(self, descriptor: ToolDescriptor, handler: Callable[..., Awaitable[Any]]):
        self._descriptor = descriptor
        self._handler = handler

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def description(self) -> str:
        return self._descriptor.description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._descriptor.input_schema

    @property
    def descriptor(self) -> ToolDescriptor:
        return self._descriptor

    async def execute(self, **kwargs: Any) -> ToolResult:
        value = await self._handler(**kwargs)
        if isinstance(value, ToolResult):
            return value
        return ToolResult(success=True, output=str(value), data=value)
