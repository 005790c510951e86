"""AI triage result — output from LLM analysis of a ticket thread."""

from dataclasses import dataclass, field

from app.domain.entities.conversation import Message
from app.domain.entities.ticket import Ticket


@dataclass
class TicketTriage:
    category: str
    probable_cause: str
    steps: list[str] = field(default_factory=list)
    llm_model: str | None = None


@dataclass
class TriageRequest:
    """Everything the triage model is shown about a ticket."""

    ticket: Ticket
    messages: list[Message] = field(default_factory=list)
