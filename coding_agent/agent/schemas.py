"""
Wire schemas for model turns.

The model must answer with exactly one of two JSON shapes::

    {"tool": "file_read", "args": {"path": "notes.txt"}}
    {"done": true, "response": "Task complete"}

Both schemas are strict: unknown keys are rejected and values are never
coerced (``"done": 1`` or ``"tool": 42`` are errors).
"""

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict


class ToolCallResponse(BaseModel):
    """A request to invoke a registered tool."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    tool: str
    args: dict[str, Any]


class CompletionResponse(BaseModel):
    """The model's declaration that the task is finished."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    done: Literal[True]
    response: str


ParsedResponse = Union[ToolCallResponse, CompletionResponse]
