"""
Tool contract shared by the registry and tool implementations.

A tool is public metadata (name, description, parameter docs) plus a
pydantic model for its arguments and an execute function. Expected failures
are returned as ``ToolResult(success=False, ...)``; exceptions raised by
execute are converted to failures by the registry.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel, model_validator


class ToolResult(BaseModel):
    """Outcome of a tool invocation. ``error`` is set iff ``success`` is false."""

    success: bool
    data: Any = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_error_matches_success(self) -> "ToolResult":
        if self.success and self.error is not None:
            raise ValueError("a successful ToolResult cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("a failed ToolResult must carry an error message")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Dict form sent back to the model; absent fields are omitted."""
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class ToolCall:
    """A request to run a named tool with raw, unvalidated arguments."""

    name: str
    args: dict[str, Any]


@dataclass(frozen=True)
class ToolMetadata:
    """Public description of a tool, safe to put in prompts."""

    name: str
    description: str
    parameters: dict[str, str]  # param_name -> description


@dataclass(frozen=True)
class Tool:
    """A registered tool: metadata, argument schema and handler."""

    name: str
    description: str
    parameters: dict[str, str]
    args_schema: type[BaseModel]
    execute: Callable[[Any], ToolResult]

    @property
    def metadata(self) -> ToolMetadata:
        return ToolMetadata(
            name=self.name,
            description=self.description,
            parameters=dict(self.parameters),
        )


def tool_success(data: Any = None) -> ToolResult:
    return ToolResult(success=True, data=data)


def tool_error(error: str) -> ToolResult:
    return ToolResult(success=False, error=error)
