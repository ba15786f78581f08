"""Errors raised by model invocation services."""

import json
from typing import Any, Optional


class LlmError(Exception):
    """A model call failed."""

    def __init__(self, message: str, cause: Optional[Any] = None):
        super().__init__(message)
        self.cause = cause


class LlmApiError(LlmError):
    """The model endpoint answered with an error status or an unusable payload."""

    def __init__(self, status: int, response_data: Any, message: Optional[str] = None):
        if message is None:
            try:
                detail = json.dumps(response_data)
            except (TypeError, ValueError):
                detail = repr(response_data)
            message = f"LLM API error ({status}): {detail}"
        super().__init__(message, response_data)
        self.status = status
        self.response_data = response_data
