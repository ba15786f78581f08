"""Message and conversation models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """A single role-tagged message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class Conversation(BaseModel):
    """An ordered message log for one conversation id."""

    id: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
