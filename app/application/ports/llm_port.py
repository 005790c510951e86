"""Port interface for LLM-based ticket triage."""

from abc import ABC, abstractmethod

from app.domain.entities.triage import TicketTriage, TriageRequest


class TriagePort(ABC):
    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def analyze_ticket(self, request: TriageRequest) -> TicketTriage | None:
        """Categorise the ticket and suggest resolution steps.

        Returns None when the model call fails or yields nothing usable.
        """
        ...
