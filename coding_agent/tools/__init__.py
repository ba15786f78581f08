"""
Agent tools.

Available tools:
- calculate: Arithmetic expression evaluation (SymPy)
- file_read: Read a file from the sandbox directory
"""

from typing import Optional

from ..config import ToolsConfig
from .base import Tool, ToolCall, ToolMetadata, ToolResult, tool_error, tool_success
from .calculator import calculate_tool
from .errors import (
    FileSizeError,
    PathValidationError,
    SandboxNotFoundError,
    ToolAlreadyRegisteredError,
    ToolRegistryError,
)
from .file_ops import make_file_read_tool
from .registry import ToolRegistry


def default_tools(tools_config: Optional[ToolsConfig] = None) -> list[Tool]:
    """Built-in tools, configured from the tools config section."""
    tools_config = tools_config or ToolsConfig()
    return [
        make_file_read_tool(tools_config.sandbox_dir, tools_config.max_file_size_bytes),
        calculate_tool,
    ]


__all__ = [
    "Tool",
    "ToolCall",
    "ToolMetadata",
    "ToolResult",
    "tool_error",
    "tool_success",
    "calculate_tool",
    "make_file_read_tool",
    "default_tools",
    "ToolRegistry",
    "FileSizeError",
    "PathValidationError",
    "SandboxNotFoundError",
    "ToolAlreadyRegisteredError",
    "ToolRegistryError",
]
