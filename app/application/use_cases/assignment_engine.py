"""AssignmentEngine — applies ownership transitions to persisted tickets.

Every operation re-reads the ticket, consults the ownership policy and
writes the result with a conditional update, so two admins racing on the
same ticket cannot both win. Business-rule violations come back as an
``AssignmentResult`` with ``failure`` set; only unexpected faults raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from app.application.ports.ticket_repo import TicketRepository
from app.domain.entities.ticket import Ticket
from app.domain.errors import (
    AssignmentFailure,
    ServiceUnavailableError,
    TicketNotFoundError,
)
from app.domain.policies.ownership import (
    Transition,
    plan_accept_transfer,
    plan_assign,
    plan_reject_transfer,
    plan_request_transfer,
    plan_unassign,
)

logger = logging.getLogger(__name__)

Planner = Callable[[Ticket, str], Transition]


@dataclass
class AssignmentResult:
    """Outcome of one assignment operation."""

    ticket: Ticket | None
    failure: AssignmentFailure | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class AssignmentEngine:
    """Enforces the single-owner state machine for tickets."""

    def __init__(self, ticket_repo: TicketRepository):
        self._tickets = ticket_repo

    async def assign(self, ticket_id: int, caller_id: str) -> AssignmentResult:
        return await self._apply("assign", ticket_id, caller_id, plan_assign)

    async def request_transfer(self, ticket_id: int, caller_id: str) -> AssignmentResult:
        return await self._apply(
            "request_transfer", ticket_id, caller_id, plan_request_transfer
        )

    async def accept_transfer(self, ticket_id: int, caller_id: str) -> AssignmentResult:
        return await self._apply(
            "accept_transfer", ticket_id, caller_id, plan_accept_transfer
        )

    async def reject_transfer(self, ticket_id: int, caller_id: str) -> AssignmentResult:
        return await self._apply(
            "reject_transfer", ticket_id, caller_id, plan_reject_transfer
        )

    async def unassign(self, ticket_id: int, caller_id: str) -> AssignmentResult:
        return await self._apply("unassign", ticket_id, caller_id, plan_unassign)

    async def _apply(
        self, operation: str, ticket_id: int, caller_id: str, plan: Planner
    ) -> AssignmentResult:
        try:
            ticket = await self._tickets.get_by_id(ticket_id)
            if ticket is None:
                return AssignmentResult(
                    ticket=None,
                    failure=AssignmentFailure.NOT_FOUND,
                    message="Ticket not found",
                )

            transition = plan(ticket, caller_id)
            if transition.rejected:
                logger.info(
                    "%s on ticket %d by %s rejected: %s (%s)",
                    operation, ticket_id, caller_id,
                    transition.failure.value, transition.message,
                )
                return AssignmentResult(
                    ticket=ticket, failure=transition.failure, message=transition.message
                )
            if transition.is_noop:
                logger.debug("%s on ticket %d by %s is a no-op", operation, ticket_id, caller_id)
                return AssignmentResult(ticket=ticket)

            updated = await self._tickets.compare_and_set_ownership(
                ticket_id, expected=ticket.ownership, new=transition.new
            )
            if updated is None:
                return await self._lost_race(operation, ticket_id, caller_id, plan)

        except TicketNotFoundError:
            return AssignmentResult(
                ticket=None, failure=AssignmentFailure.NOT_FOUND, message="Ticket not found"
            )
        except ServiceUnavailableError as e:
            logger.warning("%s on ticket %d: backing store unavailable: %s", operation, ticket_id, e)
            return AssignmentResult(
                ticket=None,
                failure=AssignmentFailure.SERVICE_UNAVAILABLE,
                message=str(e) or "Ticket store unavailable",
            )

        logger.info(
            "Ticket %d %s by %s: owner %s -> %s, pending %s -> %s",
            ticket_id, operation, caller_id,
            ticket.assigned_to, updated.assigned_to,
            ticket.transfer_request_to, updated.transfer_request_to,
        )
        return AssignmentResult(ticket=updated)

    async def _lost_race(
        self, operation: str, ticket_id: int, caller_id: str, plan: Planner
    ) -> AssignmentResult:
        latest = await self._tickets.get_by_id(ticket_id)
        if latest is None:
            return AssignmentResult(
                ticket=None, failure=AssignmentFailure.NOT_FOUND, message="Ticket not found"
            )
        if plan(latest, caller_id).is_noop:
            # A concurrent write already produced the state the caller asked for.
            logger.info(
                "%s on ticket %d by %s already satisfied by a concurrent update",
                operation, ticket_id, caller_id,
            )
            return AssignmentResult(ticket=latest)
        logger.warning(
            "%s on ticket %d by %s lost a concurrent update (owner now %s)",
            operation, ticket_id, caller_id, latest.assigned_to,
        )
        return AssignmentResult(
            ticket=latest,
            failure=AssignmentFailure.CONFLICT,
            message="Ticket ownership changed concurrently, reload and retry",
        )
