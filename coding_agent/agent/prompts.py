"""System prompt construction."""

import json

from ..tools.base import ToolMetadata

DEFAULT_AGENT_ROLE = "You are a helpful assistant with access to tools"

RESPONSE_FORMAT = """RESPONSE FORMAT:
You must respond with valid JSON only. No markdown, no explanations outside JSON.

To use a tool:
{
  "tool": "tool_name",
  "args": {
    "arg1": "value1",
    "arg2": "value2"
  }
}

For tools with no arguments:
{
  "tool": "tool_name",
  "args": {}
}

When you have the final answer:
{
  "done": true,
  "response": "Your complete answer here"
}"""

TOOL_RESULT_FORMAT = """TOOL RESULTS:
You will receive tool results in this format:
{
  "tool_result": {
    "success": true,
    "data": "result data"
  }
}

Or on failure:
{
  "tool_result": {
    "success": false,
    "error": "error message"
  }
}"""

RULES = """IMPORTANT:
- Always output valid JSON
- Do not wrap JSON in markdown code blocks
- Check tool_result.success before proceeding
- Use multiple tool calls if needed before sending the "done" response"""


def format_tool_catalog(tools: list[ToolMetadata]) -> str:
    """One entry per tool: name, description and argument docs."""
    if not tools:
        return "(No tools available)"
    return "\n".join(
        f"- {tool.name}: {tool.description}\n  Args: {json.dumps(tool.parameters)}"
        for tool in tools
    )


def build_system_prompt(
    tools: list[ToolMetadata], agent_role: str = DEFAULT_AGENT_ROLE
) -> str:
    """
    Build the system prompt that teaches the model the JSON protocol.

    Args:
        tools: Public metadata of the registered tools
        agent_role: Identity line placed at the top of the prompt

    Returns:
        The complete system prompt
    """
    sections = [
        f"{agent_role.rstrip('.')}.",
        RESPONSE_FORMAT,
        f"AVAILABLE TOOLS:\n{format_tool_catalog(tools)}",
        TOOL_RESULT_FORMAT,
        RULES,
    ]
    return "\n\n".join(sections)
