"""OwnershipPolicy — the ticket assignment state machine as pure functions.

Each ``plan_*`` function looks at a ticket's current ownership and the
caller, and returns a ``Transition``: either the ownership to write, a
no-op, or the failure that forbids the move. Callers are assumed to be
admins; role checks happen before the policy is consulted.

States:
    UNASSIGNED        assigned_to is None
    ASSIGNED          assigned_to = owner, no pending request
    TRANSFER_PENDING  assigned_to = owner, transfer_request_to = requester
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.entities.ticket import Ownership, Ticket
from app.domain.errors import AssignmentFailure


@dataclass(frozen=True)
class Transition:
    new: Ownership | None = None
    failure: AssignmentFailure | None = None
    message: str | None = None

    @property
    def rejected(self) -> bool:
        return self.failure is not None

    @property
    def is_noop(self) -> bool:
        return self.failure is None and self.new is None


def _reject(failure: AssignmentFailure, message: str) -> Transition:
    return Transition(failure=failure, message=message)


NOOP = Transition()


def plan_assign(ticket: Ticket, caller_id: str) -> Transition:
    """Take an unassigned ticket. Re-assigning to the current owner is a no-op."""
    if ticket.is_owned_by(caller_id):
        return NOOP
    if ticket.is_resolved():
        return _reject(AssignmentFailure.INVALID_STATE, "Ticket is resolved")
    if ticket.assigned_to is not None:
        return _reject(
            AssignmentFailure.CONFLICT,
            "Ticket is already being handled by another admin",
        )
    return Transition(new=Ownership(assigned_to=caller_id))


def plan_request_transfer(ticket: Ticket, caller_id: str) -> Transition:
    """Ask the current owner to hand the ticket over. Last request wins."""
    if ticket.assigned_to is None:
        return _reject(
            AssignmentFailure.INVALID_STATE,
            "Ticket is not assigned. Use assign endpoint instead.",
        )
    if ticket.is_owned_by(caller_id):
        return _reject(
            AssignmentFailure.INVALID_STATE, "You are already handling this ticket"
        )
    if ticket.is_resolved():
        return _reject(AssignmentFailure.INVALID_STATE, "Ticket is resolved")
    if ticket.transfer_request_to == caller_id:
        return NOOP
    return Transition(
        new=Ownership(assigned_to=ticket.assigned_to, transfer_request_to=caller_id)
    )


def plan_accept_transfer(ticket: Ticket, caller_id: str) -> Transition:
    """Owner hands the ticket to the pending requester."""
    if ticket.transfer_request_to is None:
        return _reject(AssignmentFailure.INVALID_STATE, "No transfer request pending")
    if not ticket.is_owned_by(caller_id):
        return _reject(
            AssignmentFailure.FORBIDDEN,
            "You are not currently assigned to this ticket",
        )
    if ticket.is_resolved():
        return _reject(AssignmentFailure.INVALID_STATE, "Ticket is resolved")
    return Transition(new=Ownership(assigned_to=ticket.transfer_request_to))


def plan_reject_transfer(ticket: Ticket, caller_id: str) -> Transition:
    """Owner declines the pending request and keeps the ticket."""
    if ticket.transfer_request_to is None:
        return _reject(AssignmentFailure.INVALID_STATE, "No transfer request pending")
    if not ticket.is_owned_by(caller_id):
        return _reject(
            AssignmentFailure.FORBIDDEN,
            "You are not currently assigned to this ticket",
        )
    return Transition(new=Ownership(assigned_to=ticket.assigned_to))


def plan_unassign(ticket: Ticket, caller_id: str) -> Transition:
    """Owner releases the ticket, dropping any pending request with it."""
    if ticket.assigned_to is None:
        return NOOP
    if not ticket.is_owned_by(caller_id):
        return _reject(
            AssignmentFailure.FORBIDDEN,
            "You are not currently assigned to this ticket",
        )
    return Transition(new=Ownership(assigned_to=None))
