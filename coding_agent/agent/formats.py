"""Canonical response formats shown to the model in prompts and error feedback."""

TOOL_CALL_EXAMPLE = '{ "tool": "file_read", "args": { "path": "test.txt" } }'
COMPLETION_EXAMPLE = '{ "done": true, "response": "Task complete" }'

VALID_FORMAT_EXAMPLES = f"Tool call: {TOOL_CALL_EXAMPLE}\nCompletion: {COMPLETION_EXAMPLE}"

FORMAT_REMINDER = (
    'Use JSON format: { "tool": "name", "args": {...} }\n'
    'Or complete with: { "done": true, "response": "..." }'
)
