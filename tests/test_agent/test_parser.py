"""Tests for markdown stripping and JSON parsing of model output."""

import json

import pytest

from coding_agent.agent.errors import JsonParseError
from coding_agent.agent.parser import safe_parse_json, strip_markdown


class TestStripMarkdown:
    """Tests for strip_markdown."""

    def test_plain_json_unchanged(self):
        text = '{"done": true, "response": "ok"}'
        assert strip_markdown(text) == text

    def test_empty_and_whitespace(self):
        assert strip_markdown("") == ""
        assert strip_markdown(None) == ""
        assert strip_markdown("   \n\t ") == ""

    def test_json_fence_with_newlines(self):
        text = '```json\n{"done": true, "response": "ok"}\n```'
        assert strip_markdown(text) == '{"done": true, "response": "ok"}'

    def test_fence_without_language_tag(self):
        text = '```\n{"tool": "echo", "args": {}}\n```'
        assert strip_markdown(text) == '{"tool": "echo", "args": {}}'

    def test_fence_without_newlines(self):
        text = '```json{"done": true, "response": "ok"}```'
        assert strip_markdown(text) == '{"done": true, "response": "ok"}'

    def test_other_language_tag(self):
        text = '```javascript\n{"done": true, "response": "ok"}\n```'
        assert strip_markdown(text) == '{"done": true, "response": "ok"}'

    def test_nested_fences(self):
        text = '```\n```json\n{"done": true, "response": "ok"}\n```\n```'
        assert strip_markdown(text) == '{"done": true, "response": "ok"}'

    def test_surrounding_whitespace(self):
        text = '  \n ```json\n{"done": true, "response": "ok"}\n```  \n'
        assert strip_markdown(text) == '{"done": true, "response": "ok"}'

    def test_inner_backticks_preserved(self):
        payload = '{"done": true, "response": "use ```code``` here"}'
        assert strip_markdown(f"```json\n{payload}\n```") == payload

    @pytest.mark.parametrize(
        "text",
        [
            '{"done": true, "response": "X"}',
            '  {"done": true, "response": "X"}  ',
            '```json\n{"done": true, "response": "X"}\n```',
            '\n```\n```json\n{"done": true, "response": "X"}\n```\n```\n',
            "```",
            "```json",
        ],
    )
    def test_idempotent(self, text):
        once = strip_markdown(text)
        assert strip_markdown(once) == once


class TestSafeParseJson:
    """Tests for safe_parse_json."""

    def test_valid_json(self):
        result = safe_parse_json('{"tool": "echo", "args": {"text": "hi"}}')
        assert result.success is True
        assert result.data == {"tool": "echo", "args": {"text": "hi"}}
        assert result.error is None

    def test_fenced_json(self):
        result = safe_parse_json('```json\n{"done": true, "response": "ok"}\n```')
        assert result.success is True
        assert result.data == {"done": True, "response": "ok"}

    def test_invalid_json_does_not_raise(self):
        result = safe_parse_json("this is not json")
        assert result.success is False
        assert isinstance(result.error, JsonParseError)

    def test_error_carries_stripped_text_and_cause(self):
        result = safe_parse_json("```json\n{tool: echo}\n```")
        assert result.error.raw_text == "{tool: echo}"
        assert isinstance(result.error.parse_error, json.JSONDecodeError)

    def test_error_message_lists_formats(self):
        result = safe_parse_json("{tool: echo}")
        message = result.error.message
        assert "Failed to parse JSON response" in message
        assert '"tool"' in message
        assert '"done": true' in message

    def test_unquoted_keys_hint(self):
        result = safe_parse_json("{tool: 'echo'}")
        assert "double quotes around every key" in result.error.message

    def test_trailing_comma_hint(self):
        result = safe_parse_json('{"tool": "echo", "args": {},}')
        assert "trailing commas" in result.error.message

    def test_unterminated_hint(self):
        result = safe_parse_json('{"tool": "echo", "args": {"text": "hi"}')
        assert "unterminated" in result.error.message

    def test_position_excerpt_for_long_text(self):
        text = '{"tool": "echo", "args": {"text": "some long value here"} oops }'
        result = safe_parse_json(text)
        assert "Problem near:" in result.error.message
        assert "^" in result.error.message

    def test_empty_input(self):
        result = safe_parse_json("")
        assert result.success is False
        assert "empty" in result.error.message.lower()
