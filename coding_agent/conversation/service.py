"""
Conversation service for a single conversation id.

This is the store the agent loop talks to: it owns creation, appends,
reads and the token estimate used for the context limit.
"""

import logging
import math
from datetime import datetime
from typing import Any, Iterable, Union

from .errors import ConversationAlreadyExistsError, ConversationNotFoundError
from .models import Conversation, Message
from .repository import ConversationRepository

logger = logging.getLogger(__name__)

# Rough approximation: 1 token ~ 4 characters.
CHARS_PER_TOKEN = 4

MessageLike = Union[Message, dict[str, Any]]


class ConversationService:
    """Operations on one conversation stored in a repository."""

    def __init__(self, conversation_id: str, repository: ConversationRepository):
        self.conversation_id = conversation_id
        self._repository = repository

    def exists(self) -> bool:
        """Return True if the conversation record exists."""
        return self._repository.get(self.conversation_id) is not None

    def create(self, seed_messages: Iterable[MessageLike] = ()) -> None:
        """
        Create the conversation, optionally seeded with messages.

        Raises:
            ConversationAlreadyExistsError: If the id is already in use
            pydantic.ValidationError: If a seed message is malformed
        """
        if self.exists():
            raise ConversationAlreadyExistsError(self.conversation_id)

        messages = [Message.model_validate(m) for m in seed_messages]
        now = datetime.now()
        self._repository.create(
            self.conversation_id,
            Conversation(
                id=self.conversation_id,
                messages=messages,
                created_at=now,
                updated_at=now,
            ),
        )
        logger.debug(
            "Created conversation %s with %d seed message(s)",
            self.conversation_id,
            len(messages),
        )

    def add(self, message: MessageLike) -> None:
        """
        Append a message.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
            pydantic.ValidationError: If the message is malformed
        """
        validated = Message.model_validate(message)
        if not self.exists():
            raise ConversationNotFoundError(self.conversation_id)
        self._repository.add(self.conversation_id, validated)

    def get_all_messages(self) -> list[Message]:
        """Return all messages in order, or [] if the conversation is absent."""
        conversation = self._repository.get(self.conversation_id)
        if conversation is None:
            return []
        return list(conversation.messages)

    def clear(self) -> None:
        """
        Remove all messages, keeping the conversation record.

        Raises:
            ConversationNotFoundError: If the conversation does not exist
        """
        if not self.exists():
            raise ConversationNotFoundError(self.conversation_id)
        self._repository.update(self.conversation_id, [])

    def estimate_tokens(self) -> int:
        """Heuristic token count: total characters / 4, rounded up."""
        total_chars = sum(len(m.content) for m in self.get_all_messages())
        return math.ceil(total_chars / CHARS_PER_TOKEN)
