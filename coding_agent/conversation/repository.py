"""
Conversation storage backends.

Repositories do no validation of their own; ConversationService checks
existence and message shape before calling them.
"""

from datetime import datetime
from typing import Optional, Protocol

from .models import Conversation, Message


class ConversationRepository(Protocol):
    """Storage interface keyed by conversation id."""

    def create(self, conversation_id: str, conversation: Conversation) -> None: ...

    def get(self, conversation_id: str) -> Optional[Conversation]: ...

    def add(self, conversation_id: str, message: Message) -> None: ...

    def update(self, conversation_id: str, messages: list[Message]) -> None: ...

    def delete(self, conversation_id: str) -> None: ...


class InMemoryConversationRepository:
    """Process-local repository backed by a dict."""

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    def create(self, conversation_id: str, conversation: Conversation) -> None:
        self._conversations[conversation_id] = conversation

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def add(self, conversation_id: str, message: Message) -> None:
        conversation = self._conversations[conversation_id]
        conversation.messages.append(message)
        conversation.updated_at = datetime.now()

    def update(self, conversation_id: str, messages: list[Message]) -> None:
        conversation = self._conversations[conversation_id]
        conversation.messages = list(messages)
        conversation.updated_at = datetime.now()

    def delete(self, conversation_id: str) -> None:
        self._conversations.pop(conversation_id, None)

    def __len__(self) -> int:
        return len(self._conversations)
