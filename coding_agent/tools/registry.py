"""
Tool Registry - name-keyed dispatch table for agent tools.

Validates arguments against each tool's schema before running it and turns
every failure (unknown tool, bad arguments, exceptions from the handler) into
a failed ToolResult, so the agent loop can report it to the model.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from .base import Tool, ToolCall, ToolMetadata, ToolResult, tool_error
from .errors import ToolAlreadyRegisteredError

logger = logging.getLogger(__name__)


def _field_errors(error: ValidationError) -> dict[str, list[str]]:
    """Group pydantic error messages by top-level field name."""
    grouped: dict[str, list[str]] = {}
    for detail in error.errors():
        loc = detail.get("loc", ())
        key = str(loc[0]) if loc else "root"
        grouped.setdefault(key, []).append(detail.get("msg", "invalid value"))
    return grouped


class ToolRegistry:
    """Registry of tools available to one agent."""

    def __init__(self, tools: Optional[list[Tool]] = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """
        Register a tool.

        Raises:
            ToolAlreadyRegisteredError: If a tool with the same name exists
        """
        if tool.name in self._tools:
            raise ToolAlreadyRegisteredError(tool.name)
        self._tools[tool.name] = tool
        logger.debug("Registered tool '%s'", tool.name)

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[ToolMetadata]:
        """Public metadata for every tool, in registration order."""
        return [tool.metadata for tool in self._tools.values()]

    def get_tools_summary(self) -> str:
        """Get formatted summary of all tools for prompts."""
        lines = []
        for meta in self.list_tools():
            lines.append(f"- {meta.name}: {meta.description}")
            lines.append(f"  Args: {json.dumps(meta.parameters)}")
        return "\n".join(lines)

    def execute(self, call: ToolCall) -> ToolResult:
        """
        Validate arguments and run a tool.

        Never raises for expected failures: unknown tools, invalid
        arguments and exceptions from the handler all come back as
        ``ToolResult(success=False)``.

        Args:
            call: Tool name and raw arguments from the model

        Returns:
            The handler's ToolResult, or a failure describing what went wrong
        """
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning("Unknown tool: %s", call.name)
            return tool_error(f"Tool '{call.name}' not found")

        try:
            args = tool.args_schema.model_validate(call.args)
        except ValidationError as e:
            logger.debug("Invalid arguments for '%s': %s", call.name, e)
            return tool_error(
                f"Invalid arguments for tool '{call.name}': "
                f"{json.dumps(_field_errors(e))}"
            )

        try:
            logger.debug("Executing tool '%s'", call.name)
            return tool.execute(args)
        except Exception as e:
            logger.error("Tool '%s' execution failed: %s", call.name, e)
            return tool_error(f"Tool '{call.name}' failed: {e}")

    def clear(self) -> None:
        """Remove all registered tools (mainly for testing)."""
        self._tools.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
