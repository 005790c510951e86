"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class TicketStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"
    ESCALATED = "escalated"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class MessageRole(str, Enum):
    USER = "user"
    AGENT = "agent"
    ASSISTANT = "assistant"  # AI triage only


class AssignmentState(str, Enum):
    """Ownership state of a ticket, derived from assigned_to / transfer_request_to."""

    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    TRANSFER_PENDING = "transfer_pending"
