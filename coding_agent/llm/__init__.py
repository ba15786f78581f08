"""
Model invocation services for the agent loop.
"""

from .client import (
    ChatResult,
    ChatService,
    OllamaChatService,
    OpenAIChatService,
    create_chat_service,
)
from .errors import LlmApiError, LlmError

__all__ = [
    "ChatResult",
    "ChatService",
    "OllamaChatService",
    "OpenAIChatService",
    "create_chat_service",
    "LlmApiError",
    "LlmError",
]
