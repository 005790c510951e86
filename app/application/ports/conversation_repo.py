"""Port interface for the append-only conversation store."""

from abc import ABC, abstractmethod

from app.domain.entities.conversation import Conversation, Message
from app.domain.value_objects.enums import MessageRole


class ConversationRepository(ABC):
    @abstractmethod
    async def create(self, title: str) -> Conversation:
        ...

    @abstractmethod
    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        ...

    @abstractmethod
    async def add_message(
        self, conversation_id: int, role: MessageRole, content: str
    ) -> Message:
        ...

    @abstractmethod
    async def list_messages(self, conversation_id: int) -> list[Message]:
        """Messages in creation order."""
        ...
