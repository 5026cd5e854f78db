"""
Tools module for agent capabilities.
"""

from .base import BaseTool, FunctionTool, ToolDescriptor, ToolResult
from .datetime_tool import DateTimeTool
from .registry import ToolRegistry, create_default_registry
from .remote import RemoteTool, discover_remote_tools

__all__ = [
    "BaseTool",
    "FunctionTool",
    "ToolDescriptor",
    "ToolResult",
    "ToolRegistry",
    "create_default_registry",
    "DateTimeTool",
    "RemoteTool",
    "discover_remote_tools",
]
