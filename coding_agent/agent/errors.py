"""
Error types for the agent core.

Parse and validation errors are returned inside result objects so the loop
can feed them back to the model; they are not raised across the loop boundary.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class AgentErrorKind(str, Enum):
    """Terminal failure classes reported on AgentResult."""

    INVALID_INPUT = "invalid_input"
    CONTEXT_LIMIT = "context_limit"
    MAX_ITERATIONS = "max_iterations"
    AGENT_ERROR = "agent_error"


class AgentError(Exception):
    """Base class for agent errors."""


@dataclass
class FieldIssue:
    """A single schema problem at a field path."""

    path: str
    problem: str
    code: str
    received_type: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.path}: {self.problem}"
        if self.received_type:
            text += f" (received {self.received_type})"
        return text


class JsonParseError(AgentError):
    """Model output could not be parsed as JSON."""

    def __init__(self, message: str, raw_text: str, parse_error: json.JSONDecodeError):
        super().__init__(message)
        self.message = message
        self.raw_text = raw_text
        self.parse_error = parse_error


class ResponseValidationError(AgentError):
    """Model output was valid JSON but matched neither response format."""

    def __init__(
        self,
        message: str,
        issues: list[FieldIssue],
        received: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.issues = issues
        self.received = received
