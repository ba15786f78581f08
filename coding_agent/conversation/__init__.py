"""
Conversation storage: role-tagged message logs keyed by conversation id.
"""

from .errors import (
    ConversationError,
    ConversationAlreadyExistsError,
    ConversationNotFoundError,
)
from .models import Conversation, Message, Role
from .repository import ConversationRepository, InMemoryConversationRepository
from .service import CHARS_PER_TOKEN, ConversationService

__all__ = [
    "ConversationError",
    "ConversationAlreadyExistsError",
    "ConversationNotFoundError",
    "Conversation",
    "Message",
    "Role",
    "ConversationRepository",
    "InMemoryConversationRepository",
    "CHARS_PER_TOKEN",
    "ConversationService",
]
