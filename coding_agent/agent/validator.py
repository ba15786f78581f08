"""
Classification of parsed JSON into a tool call or a completion.

The completion schema is tried first so that anything carrying
``"done": true`` is never read as a tool call. When neither schema matches,
the tool-call diagnostic is reported, since it names the fields models most
often get wrong.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from .errors import FieldIssue, ResponseValidationError
from .schemas import CompletionResponse, ParsedResponse, ToolCallResponse

logger = logging.getLogger(__name__)

_JSON_TYPE_NAMES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    type(None): "null",
}

_PROBLEM_OVERRIDES = {
    "missing": "Required field is missing",
    "extra_forbidden": "Unrecognized field (extra fields are not allowed)",
}


@dataclass
class ValidationResult:
    """Outcome of validating a parsed response."""

    success: bool
    data: Optional[ParsedResponse] = None
    error: Optional[ResponseValidationError] = None


def json_type_name(value: Any) -> str:
    """Name a Python value by its JSON type."""
    return _JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def _is_type_error(code: str) -> bool:
    return code.endswith("_type") or code == "literal_error"


def issues_from_validation_error(error: ValidationError) -> list[FieldIssue]:
    """Convert a pydantic ValidationError into field issues."""
    issues = []
    for detail in error.errors():
        loc = detail.get("loc", ())
        path = ".".join(str(part) for part in loc) if loc else "root"
        code = detail.get("type", "")
        received = None
        if _is_type_error(code) and "input" in detail:
            received = json_type_name(detail["input"])
        issues.append(
            FieldIssue(
                path=path,
                problem=_PROBLEM_OVERRIDES.get(code, detail.get("msg", "")),
                code=code,
                received_type=received,
            )
        )
    return issues


def format_issues(issues: list[FieldIssue]) -> str:
    """Format field issues as a numbered, human-readable breakdown."""
    blocks = []
    for idx, issue in enumerate(issues, start=1):
        location = "root" if issue.path == "root" else f'"{issue.path}"'
        lines = [f"  {idx}. Field {location}:", f"     Problem: {issue.problem}"]
        if issue.received_type:
            lines.append(f"     Received: {issue.received_type}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _mentions(issues: list[FieldIssue], field_name: str) -> bool:
    return any(issue.path.split(".")[0] == field_name for issue in issues)


def get_expected_format_examples(issues: list[FieldIssue]) -> str:
    """Show both valid formats, with hints for the mistakes detected."""
    examples = [
        "Expected format (choose one):",
        "\n1. Tool call:",
        "   {",
        '     "tool": "tool_name",',
        '     "args": { "param": "value" }',
        "   }",
        "\n2. Completion:",
        "   {",
        '     "done": true,',
        '     "response": "Your final answer"',
        "   }",
    ]

    has_done_issue = _mentions(issues, "done")
    has_tool_issue = _mentions(issues, "tool")
    has_response_issue = _mentions(issues, "response")
    has_args_issue = _mentions(issues, "args")

    if any(issue.code == "extra_forbidden" for issue in issues):
        examples.append("\nNote: Extra fields are not allowed (strict mode)")
    if has_done_issue and not has_response_issue:
        examples.append('\nHint: "done" must be exactly true (not false)')
        examples.append('Hint: When done=true, you must include "response"')
    if has_tool_issue and not has_args_issue:
        examples.append('\nHint: Tool calls must include "args" (can be empty: {})')
    if has_args_issue:
        examples.append('\nHint: "args" must be an object, not a string or array')

    return "\n".join(examples)


def get_recovery_guidance(shape: Optional[dict]) -> str:
    """
    Suggest a concrete fix based on which fields the model sent.

    Args:
        shape: The received JSON object, or None when it was not an object

    Returns:
        Recovery guidance text
    """
    if shape is None:
        return "Recovery: Ensure response matches one of the expected formats above"

    guidance = ["Recovery suggestions:"]
    has_done = "done" in shape
    has_response = "response" in shape
    has_tool = "tool" in shape
    has_args = "args" in shape

    if has_done and has_tool:
        guidance.append('- Remove either "tool" or "done" - cannot have both')
    if has_done and not has_response:
        guidance.append('- Add "response" field with your final answer')
    if has_done and shape["done"] is not True:
        guidance.append('- Set "done" to exactly true (not false or other value)')
    if has_tool and not has_args:
        guidance.append('- Add "args" field (use {} if tool needs no arguments)')
    if has_args and not isinstance(shape["args"], dict):
        guidance.append('- Change "args" to an object: { "key": "value" }')
    if not has_done and not has_tool:
        guidance.append('- Include either "tool" field OR "done" field (not both)')
    if len(shape) > 2:
        guidance.append("- Remove extra fields - only include required fields")

    if len(guidance) == 1:
        guidance.append("- Double-check field names and types match the examples")

    return "\n".join(guidance)


def build_validation_error_message(
    issues: list[FieldIssue], received: Any = None
) -> str:
    """Build the full feedback message for a response that failed validation."""
    shape = received if isinstance(received, dict) else None
    received_display = ""
    if received is not None:
        received_display = f"\nYou provided: {json.dumps(received, indent=2)}\n"

    return (
        "Response validation failed\n\n"
        f"Problems found:\n{format_issues(issues)}\n"
        f"{received_display}\n"
        f"{get_expected_format_examples(issues)}\n\n"
        f"{get_recovery_guidance(shape)}"
    )


def _match(
    schema: type[BaseModel], data: Any
) -> tuple[Optional[BaseModel], Optional[ValidationError]]:
    try:
        return schema.model_validate(data), None
    except ValidationError as e:
        return None, e


def validate_response(data: Any) -> ValidationResult:
    """
    Classify a parsed JSON value as a completion or a tool call.

    Args:
        data: Value produced by the JSON parser

    Returns:
        ValidationResult with the typed response, or with a
        ResponseValidationError describing the tool-call schema mismatch
    """
    completion, _ = _match(CompletionResponse, data)
    if completion is not None:
        return ValidationResult(success=True, data=completion)

    tool_call, tool_error = _match(ToolCallResponse, data)
    if tool_call is not None:
        return ValidationResult(success=True, data=tool_call)

    issues = issues_from_validation_error(tool_error)
    logger.debug("Response validation failed: %s", "; ".join(str(i) for i in issues))
    message = build_validation_error_message(issues, data)
    return ValidationResult(
        success=False,
        error=ResponseValidationError(message, issues, received=data),
    )
