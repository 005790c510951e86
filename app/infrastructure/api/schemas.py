"""Request / response schemas. JSON field names are camelCase."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.application.use_cases.ticket_service import TicketPage
from app.domain.entities.conversation import Conversation, Message
from app.domain.entities.enriched_ticket import EnrichedTicket
from app.domain.entities.ticket import Ticket
from app.domain.entities.triage import TicketTriage
from app.domain.entities.user import PublicUser
from app.domain.value_objects.enums import (
    MessageRole,
    Sentiment,
    TicketPriority,
    TicketStatus,
    UserRole,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Users ───────────────────────────────────────────────────────────


class PublicUserOut(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, u: PublicUser | None) -> PublicUserOut | None:
        if u is None:
            return None
        return cls(
            id=u.id,
            email=u.email,
            first_name=u.first_name,
            last_name=u.last_name,
            role=u.role,
            created_at=u.created_at,
        )


class RegisterIn(CamelModel):
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None


class LoginIn(CamelModel):
    email: str | None = None
    password: str | None = None


class AuthOut(CamelModel):
    user: PublicUserOut
    message: str


# ── Tickets ─────────────────────────────────────────────────────────


class TicketOut(CamelModel):
    id: int
    external_id: int | None = None
    title: str
    description: str | None = None
    status: TicketStatus
    priority: TicketPriority
    sentiment: Sentiment
    is_ai_active: bool
    customer_name: str | None = None
    conversation_id: int | None = None
    user_id: str | None = None
    assigned_to: str | None = None
    transfer_request_to: str | None = None
    created_at: datetime | None = None

    @classmethod
    def fields_from(cls, t: Ticket) -> dict:
        return dict(
            id=t.id,
            external_id=t.external_id,
            title=t.title,
            description=t.description,
            status=t.status,
            priority=t.priority,
            sentiment=t.sentiment,
            is_ai_active=t.is_ai_active,
            customer_name=t.customer_name,
            conversation_id=t.conversation_id,
            user_id=t.user_id,
            assigned_to=t.assigned_to,
            transfer_request_to=t.transfer_request_to,
            created_at=t.created_at,
        )

    @classmethod
    def from_domain(cls, t: Ticket) -> TicketOut:
        return cls(**cls.fields_from(t))


class EnrichedTicketOut(TicketOut):
    assigned_to_user: PublicUserOut | None = None
    transfer_request_to_user: PublicUserOut | None = None

    @classmethod
    def from_enriched(cls, e: EnrichedTicket) -> EnrichedTicketOut:
        return cls(
            **TicketOut.fields_from(e.ticket),
            assigned_to_user=PublicUserOut.from_domain(e.assigned_to_user),
            transfer_request_to_user=PublicUserOut.from_domain(e.transfer_request_to_user),
        )


class PaginationOut(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TicketPageOut(CamelModel):
    tickets: list[TicketOut]
    pagination: PaginationOut

    @classmethod
    def from_page(cls, p: TicketPage) -> TicketPageOut:
        return cls(
            tickets=[TicketOut.from_domain(t) for t in p.tickets],
            pagination=PaginationOut(
                page=p.page, limit=p.limit, total=p.total, total_pages=p.total_pages
            ),
        )


class TicketCreateIn(CamelModel):
    title: str
    description: str | None = None
    priority: TicketPriority = TicketPriority.MEDIUM
    customer_name: str | None = None


class TicketUpdateIn(CamelModel):
    title: str | None = None
    description: str | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    sentiment: Sentiment | None = None
    customer_name: str | None = None
    is_ai_active: bool | None = None


# ── Conversation ────────────────────────────────────────────────────


class MessageIn(CamelModel):
    content: str
    role: MessageRole | None = None


class MessageOut(CamelModel):
    id: int
    conversation_id: int
    role: MessageRole
    content: str
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, m: Message) -> MessageOut:
        return cls(
            id=m.id,
            conversation_id=m.conversation_id,
            role=m.role,
            content=m.content,
            created_at=m.created_at,
        )


class MessageCreatedOut(CamelModel):
    message: MessageOut


class ConversationOut(CamelModel):
    id: int
    title: str
    messages: list[MessageOut]

    @classmethod
    def from_domain(cls, c: Conversation) -> ConversationOut:
        return cls(
            id=c.id, title=c.title, messages=[MessageOut.from_domain(m) for m in c.messages]
        )


# ── Triage ──────────────────────────────────────────────────────────


class TriageOut(CamelModel):
    category: str
    probable_cause: str
    steps: list[str]
    llm_model: str | None = None

    @classmethod
    def from_domain(cls, t: TicketTriage) -> TriageOut:
        return cls(
            category=t.category,
            probable_cause=t.probable_cause,
            steps=t.steps,
            llm_model=t.llm_model,
        )
