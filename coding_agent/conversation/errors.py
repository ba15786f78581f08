"""Conversation store errors."""


class ConversationError(Exception):
    """Base class for conversation store errors."""

    def __init__(self, message: str, conversation_id: str):
        super().__init__(message)
        self.conversation_id = conversation_id


class ConversationNotFoundError(ConversationError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} not found", conversation_id)


class ConversationAlreadyExistsError(ConversationError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} already exists", conversation_id)
