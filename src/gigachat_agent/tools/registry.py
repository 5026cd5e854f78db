"""
Tool registry for managing available tools.

One registry belongs to one session; it is built explicitly and passed to
the orchestrator.
"""

import asyncio
from typing import Any

import httpx
import structlog

from ..config import Settings
from ..errors import ToolError, ToolErrorKind
from .base import BaseTool, ToolDescriptor, ToolResult

logger = structlog.get_logger()

DEFAULT_TOOL_TIMEOUT = 10.0


class ToolRegistry:
    """Registry for managing tools."""

    def __init__(self, default_timeout: float = DEFAULT_TOOL_TIMEOUT):
        self.default_timeout = default_timeout
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool. A tool with the same name is replaced."""
        if tool.name in self._tools:
            logger.info("Tool replaced", tool_name=tool.name)
        else:
            logger.info("Tool registered", tool_name=tool.name)
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Unregister a tool."""
        if name in self._tools:
            del self._tools[name]
            logger.info("Tool unregistered", tool_name=name)

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def list(self) -> list[ToolDescriptor]:
        """Get descriptors of all registered tools, in registration order."""
        return [tool.descriptor for tool in self._tools.values()]

    async def invoke(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ToolResult:
        """Execute a tool by name.

        Never raises: unknown tools, handler errors and timeouts all come back
        as a failed ToolResult with ``error_kind`` set.
        """
        arguments = arguments or {}
        tool = self.get(name)
        if tool is None:
            logger.warning("Tool not found", tool_name=name)
            return ToolResult(
                success=False,
                error=f"Tool '{name}' not found",
                error_kind=ToolErrorKind.NOT_FOUND,
            )

        timeout = self.default_timeout if timeout is None else timeout
        try:
            logger.info("Executing tool", tool_name=name, arguments=arguments)
            result = await asyncio.wait_for(tool.execute(**arguments), timeout=timeout)
            logger.info("Tool executed", tool_name=name, success=result.success)
            return result
        except asyncio.TimeoutError:
            logger.error("Tool timed out", tool_name=name, timeout=timeout)
            return ToolResult(
                success=False,
                error=f"Tool '{name}' timed out after {timeout:g}s",
                error_kind=ToolErrorKind.TIMEOUT,
            )
        except ToolError as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return ToolResult(success=False, error=e.message, error_kind=e.kind)
        except Exception as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return ToolResult(
                success=False,
                error=str(e) or type(e).__name__,
                error_kind=ToolErrorKind.HANDLER_ERROR,
            )


async def create_default_registry(settings: Settings, http_client: httpx.AsyncClient) -> ToolRegistry:
    """Build the session's registry from settings."""
    from .datetime_tool import DateTimeTool

    registry = ToolRegistry(default_timeout=settings.tool_timeout_seconds)
    registry.register(DateTimeTool(http_client, base_url=settings.tool_server_url))

    if settings.discover_remote_tools:
        from .remote import discover_remote_tools

        try:
            for tool in await discover_remote_tools(http_client, settings.tool_server_url):
                registry.register(tool)
        except ToolError as e:
            logger.warning("Failed to discover remote tools", error=str(e))

    return registry
