"""EnrichedTicket — a ticket with its owner and pending requester resolved."""

from dataclasses import dataclass

from app.domain.entities.ticket import Ticket
from app.domain.entities.user import PublicUser


@dataclass
class EnrichedTicket:
    ticket: Ticket
    assigned_to_user: PublicUser | None = None
    transfer_request_to_user: PublicUser | None = None
