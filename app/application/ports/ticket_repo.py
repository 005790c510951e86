"""Port interface for ticket persistence."""

from abc import ABC, abstractmethod

from app.domain.entities.ticket import Ownership, Ticket, TicketDraft

# Fields that ``update`` may change. Ownership goes through
# ``compare_and_set_ownership``; conversation_id and external_id never change.
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "customer_name",
        "status",
        "priority",
        "sentiment",
        "is_ai_active",
    }
)


class TicketRepository(ABC):
    """Implementations raise ServiceUnavailableError when the backing store
    (or remote system of record) cannot be reached or is not configured."""

    @abstractmethod
    async def create(
        self, draft: TicketDraft, conversation_id: int, creator_user_id: str
    ) -> Ticket:
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        ...

    @abstractmethod
    async def update(self, ticket_id: int, changes: dict) -> Ticket | None:
        """Apply a partial update restricted to UPDATABLE_FIELDS.

        Returns None if the ticket does not exist.
        """
        ...

    @abstractmethod
    async def compare_and_set_ownership(
        self, ticket_id: int, expected: Ownership, new: Ownership
    ) -> Ticket | None:
        """Write ``new`` only if the stored ownership still equals ``expected``.

        Returns the updated ticket, or None when the stored ownership has
        changed since it was read (or the ticket is gone).
        """
        ...

    @abstractmethod
    async def list_page(self, page: int, page_size: int) -> tuple[list[Ticket], int]:
        """Return one page (1-based) of tickets, newest first, and the total count."""
        ...

    @abstractmethod
    async def list_by_owner_user(self, user_id: str) -> list[Ticket]:
        """Tickets opened by the given user, newest first."""
        ...

    @abstractmethod
    async def get_by_conversation(self, conversation_id: int) -> Ticket | None:
        ...
