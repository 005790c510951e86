"""TicketService — the orchestration boundary the API layer talks to.

Authorises the caller, drives the assignment engine and the stores, and
returns tickets enriched with their owner and pending requester. The caller
is always passed in explicitly; nothing here reads request or session state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from app.application.errors import (
    FAILURE_ERRORS,
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from app.application.ports.conversation_repo import ConversationRepository
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.llm_port import TriagePort
from app.application.ports.ticket_repo import UPDATABLE_FIELDS, TicketRepository
from app.application.use_cases.assignment_engine import AssignmentEngine, AssignmentResult
from app.domain.entities.conversation import Conversation, Message
from app.domain.entities.enriched_ticket import EnrichedTicket
from app.domain.entities.ticket import Ticket, TicketDraft
from app.domain.entities.triage import TicketTriage, TriageRequest
from app.domain.entities.user import PublicUser, User
from app.domain.errors import AssignmentFailure
from app.domain.value_objects.enums import MessageRole

logger = logging.getLogger(__name__)


@dataclass
class TicketPage:
    tickets: list[Ticket]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class TicketService:
    def __init__(
        self,
        ticket_repo: TicketRepository,
        conversation_repo: ConversationRepository,
        identity: IdentityProvider,
        triage: TriagePort | None = None,
        default_page_size: int = 20,
        max_page_size: int = 100,
    ):
        self._tickets = ticket_repo
        self._conversations = conversation_repo
        self._identity = identity
        self._triage = triage
        self._engine = AssignmentEngine(ticket_repo)
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    # ─── Assignment workflow ────────────────────────────────────────

    async def assign(self, ticket_id: int, caller: User) -> EnrichedTicket:
        self._require_admin(caller)
        return await self._finish(await self._engine.assign(ticket_id, caller.id))

    async def request_transfer(self, ticket_id: int, caller: User) -> EnrichedTicket:
        self._require_admin(caller)
        return await self._finish(await self._engine.request_transfer(ticket_id, caller.id))

    async def accept_transfer(self, ticket_id: int, caller: User) -> EnrichedTicket:
        self._require_admin(caller)
        return await self._finish(await self._engine.accept_transfer(ticket_id, caller.id))

    async def reject_transfer(self, ticket_id: int, caller: User) -> EnrichedTicket:
        self._require_admin(caller)
        return await self._finish(await self._engine.reject_transfer(ticket_id, caller.id))

    async def unassign(self, ticket_id: int, caller: User) -> EnrichedTicket:
        self._require_admin(caller)
        return await self._finish(await self._engine.unassign(ticket_id, caller.id))

    async def _finish(self, result: AssignmentResult) -> EnrichedTicket:
        if result.ok:
            return await self.enrich(result.ticket)

        error_cls = FAILURE_ERRORS[result.failure]
        extra = {}
        if result.failure == AssignmentFailure.CONFLICT and result.ticket is not None:
            owner = await self._public_user(result.ticket.assigned_to)
            extra["assignedTo"] = owner
        raise error_cls(result.message or result.failure.value, extra=extra)

    # ─── Tickets ────────────────────────────────────────────────────

    async def create_ticket(self, draft: TicketDraft, caller: User) -> Ticket:
        if not draft.title or not draft.title.strip():
            raise ValidationError("Title is required")

        conversation = await self._conversations.create(draft.title.strip())
        ticket = await self._tickets.create(draft, conversation.id, caller.id)
        if draft.description:
            await self._conversations.add_message(
                conversation.id, MessageRole.USER, draft.description
            )
        logger.info(
            "Ticket %s opened by %s (conversation %d)", ticket.id, caller.id, conversation.id
        )
        return ticket

    async def get_ticket(self, ticket_id: int, caller: User) -> EnrichedTicket:
        ticket = await self._load(ticket_id)
        if not caller.is_admin() and not ticket.is_opened_by(caller.id):
            raise ForbiddenError("Forbidden: You can only view your own tickets")
        return await self.enrich(ticket)

    async def list_tickets(
        self, caller: User, page: int = 1, limit: int | None = None
    ) -> TicketPage:
        self._require_admin(caller)
        if limit is None:
            limit = self._default_page_size
        if page < 1:
            raise ValidationError("page must be >= 1")
        if limit < 1 or limit > self._max_page_size:
            raise ValidationError(f"limit must be between 1 and {self._max_page_size}")
        tickets, total = await self._tickets.list_page(page, limit)
        return TicketPage(tickets=tickets, page=page, limit=limit, total=total)

    async def list_my_tickets(self, caller: User) -> list[Ticket]:
        return await self._tickets.list_by_owner_user(caller.id)

    async def update_ticket(self, ticket_id: int, changes: dict, caller: User) -> Ticket:
        self._require_admin(caller)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("Title is required")

        ticket = await self._tickets.update(ticket_id, changes)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        logger.info("Ticket %d updated by %s: %s", ticket_id, caller.id, sorted(changes))
        return ticket

    async def enrich(self, ticket: Ticket) -> EnrichedTicket:
        return EnrichedTicket(
            ticket=ticket,
            assigned_to_user=await self._public_user(ticket.assigned_to),
            transfer_request_to_user=await self._public_user(ticket.transfer_request_to),
        )

    # ─── Conversation ───────────────────────────────────────────────

    async def get_conversation(self, conversation_id: int, caller: User) -> Conversation:
        conversation = await self._conversations.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")

        if not caller.is_admin():
            ticket = await self._tickets.get_by_conversation(conversation_id)
            if ticket is None or not ticket.is_opened_by(caller.id):
                raise ForbiddenError("Forbidden: You don't have access to this conversation")

        conversation.messages = await self._conversations.list_messages(conversation_id)
        return conversation

    async def add_message(
        self, ticket_id: int, content: str, caller: User, role: MessageRole | None = None
    ) -> Message:
        if not content or not content.strip():
            raise ValidationError("Message content is required")

        ticket = await self._load(ticket_id)
        if ticket.conversation_id is None:
            raise NotFoundError("Ticket/Conversation not found")

        if caller.is_admin():
            role = role or MessageRole.AGENT
            if role == MessageRole.ASSISTANT:
                raise ValidationError("The assistant role is reserved for AI triage")
        else:
            if not ticket.is_opened_by(caller.id):
                raise ForbiddenError("Forbidden: You can only post to your own tickets")
            role = MessageRole.USER

        return await self._conversations.add_message(ticket.conversation_id, role, content)

    async def analyze_ticket(self, ticket_id: int, caller: User) -> TicketTriage:
        self._require_admin(caller)
        if self._triage is None or not self._triage.is_configured():
            raise UnavailableError("AI analysis is not configured")

        ticket = await self._load(ticket_id)
        messages = []
        if ticket.conversation_id is not None:
            messages = await self._conversations.list_messages(ticket.conversation_id)

        triage = await self._triage.analyze_ticket(TriageRequest(ticket=ticket, messages=messages))
        if triage is None:
            raise UnavailableError("AI analysis failed, try again later")
        return triage

    # ─── Helpers ────────────────────────────────────────────────────

    async def _load(self, ticket_id: int) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        return ticket

    async def _public_user(self, user_id: str | None) -> PublicUser | None:
        if user_id is None:
            return None
        user = await self._identity.get_user(user_id)
        return user.public() if user else None

    @staticmethod
    def _require_admin(caller: User) -> None:
        if not caller.is_admin():
            raise ForbiddenError("Forbidden: Admin access required")
