"""
MCP tool server for xhs-studio.
"""

from .resources import ResourceText, read_resource
from .tools import TOOL_HANDLERS, ToolContext, ToolInvocationError, call_tool

__all__ = [
    "TOOL_HANDLERS",
    "ResourceText",
    "ToolContext",
    "ToolInvocationError",
    "call_tool",
    "read_resource",
]
