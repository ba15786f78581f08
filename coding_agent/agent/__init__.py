"""
Agent core: response parsing, validation and the orchestration loop.
"""

from .errors import (
    AgentError,
    AgentErrorKind,
    FieldIssue,
    JsonParseError,
    ResponseValidationError,
)
from .loop import (
    AgentConfig,
    AgentMetrics,
    AgentResult,
    AgentServices,
    resolve_config,
    run_agent,
)
from .parser import ParseResult, safe_parse_json, strip_markdown
from .prompts import DEFAULT_AGENT_ROLE, build_system_prompt
from .schemas import CompletionResponse, ParsedResponse, ToolCallResponse
from .validator import ValidationResult, validate_response

__all__ = [
    "AgentError",
    "AgentErrorKind",
    "FieldIssue",
    "JsonParseError",
    "ResponseValidationError",
    "AgentConfig",
    "AgentMetrics",
    "AgentResult",
    "AgentServices",
    "resolve_config",
    "run_agent",
    "ParseResult",
    "safe_parse_json",
    "strip_markdown",
    "DEFAULT_AGENT_ROLE",
    "build_system_prompt",
    "CompletionResponse",
    "ParsedResponse",
    "ToolCallResponse",
    "ValidationResult",
    "validate_response",
]
