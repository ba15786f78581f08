"""Tests for system prompt construction."""

from coding_agent.agent.prompts import (
    DEFAULT_AGENT_ROLE,
    build_system_prompt,
    format_tool_catalog,
)
from coding_agent.tools import ToolMetadata

READ = ToolMetadata(
    name="file_read",
    description="Read a file",
    parameters={"path": "string - relative path"},
)
CALC = ToolMetadata(
    name="calculate",
    description="Do arithmetic",
    parameters={"expression": "string - expression"},
)


class TestToolCatalog:
    def test_empty(self):
        assert format_tool_catalog([]) == "(No tools available)"

    def test_entries_in_order(self):
        catalog = format_tool_catalog([READ, CALC])
        assert catalog.index("- file_read: Read a file") < catalog.index(
            "- calculate: Do arithmetic"
        )
        assert 'Args: {"path": "string - relative path"}' in catalog


class TestBuildSystemPrompt:
    def test_default_role_first(self):
        prompt = build_system_prompt([READ])
        assert prompt.startswith(DEFAULT_AGENT_ROLE)

    def test_custom_role(self):
        prompt = build_system_prompt([], "You are a code reviewer.")
        assert prompt.startswith("You are a code reviewer.")
        assert "(No tools available)" in prompt

    def test_describes_protocol(self):
        prompt = build_system_prompt([READ, CALC])
        assert '"tool": "tool_name"' in prompt
        assert '"done": true' in prompt
        assert '"tool_result"' in prompt
        assert "- calculate: Do arithmetic" in prompt
        assert "Do not wrap JSON in markdown code blocks" in prompt
