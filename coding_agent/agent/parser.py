"""
Parsing of raw model output into JSON.

Models often wrap JSON in markdown fences even when told not to::

    ```json
    {"tool": "file_read", "args": {"path": "notes.txt"}}
    ```

``strip_markdown`` removes that wrapping and ``safe_parse_json`` turns the
result into a Python value, or into a ``JsonParseError`` with a message the
model can use to correct itself. Neither function raises.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from .errors import JsonParseError
from .formats import VALID_FORMAT_EXAMPLES

logger = logging.getLogger(__name__)

FENCE = "```"

# Opening fence on its own line, optionally with a language tag: ```json\n
_OPEN_FENCE_LINE = re.compile(r"^```[ \t]*[\w+.-]*[ \t]*(?:\r?\n|$)")
# Opening fence glued to the payload: ```json{"done": true, ...}
_OPEN_FENCE_INLINE = re.compile(r"^```(?:json)?", re.IGNORECASE)

# Texts shorter than this are echoed whole instead of excerpted.
_EXCERPT_MIN_LENGTH = 50
_EXCERPT_RADIUS = 20
_ECHO_MAX_LENGTH = 100


@dataclass
class ParseResult:
    """Outcome of parsing model output: data on success, error otherwise."""

    success: bool
    data: Any = None
    error: Optional[JsonParseError] = None


def _strip_fence_once(text: str) -> str:
    if text.startswith(FENCE):
        match = _OPEN_FENCE_LINE.match(text) or _OPEN_FENCE_INLINE.match(text)
        text = text[match.end():]
    if text.endswith(FENCE):
        text = text[: -len(FENCE)]
    return text


def strip_markdown(text: Optional[str]) -> str:
    """
    Remove markdown code fences and surrounding whitespace.

    Handles fences with or without a language tag, with or without a
    trailing newline, and repeated or nested wrapping. Stripping runs to a
    fixed point, so applying it twice gives the same result as once.

    Args:
        text: Raw model output

    Returns:
        The unwrapped text ("" for empty or whitespace-only input)
    """
    if not text:
        return ""

    stripped = text.strip()
    while True:
        previous = stripped
        stripped = _strip_fence_once(stripped).strip()
        if stripped == previous:
            return stripped


def _get_excerpt(text: str, position: Optional[int]) -> str:
    """Show the text near the failure position with a caret under it."""
    if not text:
        return "Received: (empty response)"

    if position is None or len(text) < _EXCERPT_MIN_LENGTH:
        shown = text if len(text) <= _ECHO_MAX_LENGTH else text[:_ECHO_MAX_LENGTH] + "..."
        return f"Received: {shown}"

    start = max(0, position - _EXCERPT_RADIUS)
    end = min(len(text), position + _EXCERPT_RADIUS)
    excerpt = text[start:end].replace("\n", " ")
    pointer = " " * (position - start) + "^"
    return f"Problem near:\n{excerpt}\n{pointer}"


def _get_common_fixes(text: str, error: json.JSONDecodeError) -> str:
    """Suggest likely fixes based on the decoder's message."""
    fixes: list[str] = []
    msg = error.msg
    at_end = error.pos >= len(text.rstrip())

    if not text:
        fixes.append("- Respond with a JSON object, not an empty message")
    elif msg.startswith("Expecting property name"):
        fixes.append('- Put double quotes around every key: {"tool": ...} not {tool: ...}')
        fixes.append("- Remove trailing commas before } or ]")
    elif msg.startswith("Unterminated string"):
        fixes.append('- Close every string with a double quote "')
    elif msg.startswith("Extra data"):
        fixes.append("- Send exactly one JSON object with no text before or after it")
    elif at_end:
        fixes.append("- The JSON is unterminated: check for missing closing braces }")
        fixes.append("- Check for missing closing brackets ]")
    elif msg.startswith("Expecting value"):
        fixes.append("- Check for trailing commas")
        fixes.append('- Ensure all strings use double quotes "')
        fixes.append("- Do not add explanations outside the JSON object")
    elif "delimiter" in msg:
        fixes.append("- Check for missing commas between fields")
        fixes.append('- Ensure all strings use double quotes "')

    if not fixes:
        fixes.append("- Verify JSON syntax is correct")
    return "\n".join(fixes)


def build_json_parse_error_message(text: str, error: json.JSONDecodeError) -> str:
    """Build the recovery message for a JSON syntax failure."""
    return (
        f"Failed to parse JSON response: {error}\n\n"
        f"{_get_excerpt(text, error.pos)}\n\n"
        f"Common fixes:\n{_get_common_fixes(text, error)}\n\n"
        f"Expected format:\n{VALID_FORMAT_EXAMPLES}"
    )


def safe_parse_json(raw_text: Optional[str]) -> ParseResult:
    """
    Strip markdown fences from model output and parse it as JSON.

    Args:
        raw_text: Raw completion text from the model

    Returns:
        ParseResult with the decoded value, or with a JsonParseError
        carrying the stripped text, the decoder error and a recovery message
    """
    stripped = strip_markdown(raw_text)

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        logger.debug("JSON parse failed at char %d: %s", e.pos, e.msg)
        message = build_json_parse_error_message(stripped, e)
        return ParseResult(success=False, error=JsonParseError(message, stripped, e))

    return ParseResult(success=True, data=data)
