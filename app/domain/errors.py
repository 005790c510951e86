"""Domain error taxonomy.

Repositories raise the exceptions below; the assignment engine turns them
into an ``AssignmentFailure`` so business-rule outcomes never escape as
exceptions.
"""

from enum import Enum


class AssignmentFailure(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INVALID_STATE = "invalid_state"
    CONFLICT = "conflict"
    SERVICE_UNAVAILABLE = "service_unavailable"


class RepositoryError(Exception):
    """Base class for persistence-level failures."""


class TicketNotFoundError(RepositoryError):
    def __init__(self, ticket_id: int):
        super().__init__(f"Ticket {ticket_id} not found")
        self.ticket_id = ticket_id


class ServiceUnavailableError(RepositoryError):
    """The backing store or remote system of record is unreachable or unconfigured."""
