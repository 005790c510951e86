"""Ticket entity — a customer support request and its ownership fields."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import (
    AssignmentState,
    Sentiment,
    TicketPriority,
    TicketStatus,
)


@dataclass
class Ticket:
    id: int | None
    title: str
    conversation_id: int | None
    user_id: str | None
    description: str | None = None
    customer_name: str | None = None
    status: TicketStatus = TicketStatus.OPEN
    priority: TicketPriority = TicketPriority.MEDIUM
    sentiment: Sentiment = Sentiment.NEUTRAL
    is_ai_active: bool = True
    assigned_to: str | None = None
    transfer_request_to: str | None = None
    external_id: int | None = None
    created_at: datetime | None = None

    @property
    def assignment_state(self) -> AssignmentState:
        if self.assigned_to is None:
            return AssignmentState.UNASSIGNED
        if self.transfer_request_to is None:
            return AssignmentState.ASSIGNED
        return AssignmentState.TRANSFER_PENDING

    @property
    def ownership(self) -> "Ownership":
        return Ownership(self.assigned_to, self.transfer_request_to)

    def is_owned_by(self, user_id: str) -> bool:
        return self.assigned_to is not None and self.assigned_to == user_id

    def is_resolved(self) -> bool:
        return self.status == TicketStatus.RESOLVED

    def is_opened_by(self, user_id: str) -> bool:
        return self.user_id is not None and self.user_id == user_id


@dataclass(frozen=True)
class Ownership:
    """Snapshot of the two ownership fields, used for conditional writes."""

    assigned_to: str | None
    transfer_request_to: str | None = None

    def __post_init__(self):
        if self.transfer_request_to is not None:
            if self.assigned_to is None:
                raise ValueError("A transfer request requires an assigned owner")
            if self.transfer_request_to == self.assigned_to:
                raise ValueError("Transfer target must differ from the current owner")


@dataclass
class TicketDraft:
    """Fields supplied by a customer when opening a ticket."""

    title: str
    description: str | None = None
    customer_name: str | None = None
    priority: TicketPriority = TicketPriority.MEDIUM
