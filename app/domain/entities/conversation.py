"""Conversation and Message — the append-only chat thread attached to a ticket."""

from dataclasses import dataclass, field
from datetime import datetime

from app.domain.value_objects.enums import MessageRole


@dataclass
class Message:
    id: int | None
    conversation_id: int
    role: MessageRole
    content: str
    created_at: datetime | None = None


@dataclass
class Conversation:
    id: int | None
    title: str
    created_at: datetime | None = None
    messages: list[Message] = field(default_factory=list)
