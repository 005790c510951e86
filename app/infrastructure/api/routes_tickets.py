"""Ticket endpoints — CRUD, conversation thread, AI triage and ownership workflow."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.ticket_service import TicketService
from app.domain.entities.ticket import TicketDraft
from app.domain.entities.user import User
from app.infrastructure.api.dependencies import get_current_user, get_ticket_service
from app.infrastructure.api.schemas import (
    EnrichedTicketOut,
    MessageCreatedOut,
    MessageIn,
    MessageOut,
    TicketCreateIn,
    TicketOut,
    TicketPageOut,
    TicketUpdateIn,
    TriageOut,
)

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("", status_code=201, response_model=TicketOut)
async def create_ticket(
    body: TicketCreateIn,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    """Open a ticket together with its conversation thread."""
    ticket = await service.create_ticket(
        TicketDraft(
            title=body.title,
            description=body.description,
            customer_name=body.customer_name,
            priority=body.priority,
        ),
        caller,
    )
    await session.commit()
    return TicketOut.from_domain(ticket)


@router.get("", response_model=TicketPageOut)
async def list_tickets(
    page: int = Query(1),
    limit: int | None = Query(None),
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    """Paginated list of all tickets, newest first (admin only)."""
    result = await service.list_tickets(caller, page=page, limit=limit)
    return TicketPageOut.from_page(result)


@router.get("/my-tickets", response_model=list[TicketOut])
async def list_my_tickets(
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    tickets = await service.list_my_tickets(caller)
    return [TicketOut.from_domain(t) for t in tickets]


@router.get("/{ticket_id}", response_model=EnrichedTicketOut)
async def get_ticket(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    return EnrichedTicketOut.from_enriched(await service.get_ticket(ticket_id, caller))


@router.patch("/{ticket_id}", response_model=TicketOut)
async def update_ticket(
    ticket_id: int,
    body: TicketUpdateIn,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    ticket = await service.update_ticket(ticket_id, body.model_dump(exclude_unset=True), caller)
    await session.commit()
    return TicketOut.from_domain(ticket)


# ─── Conversation thread ────────────────────────────────────────────


@router.post("/{ticket_id}/messages", status_code=201, response_model=MessageCreatedOut)
async def add_message(
    ticket_id: int,
    body: MessageIn,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    message = await service.add_message(ticket_id, body.content, caller, role=body.role)
    await session.commit()
    return MessageCreatedOut(message=MessageOut.from_domain(message))


@router.post("/{ticket_id}/analyze", response_model=TriageOut)
async def analyze_ticket(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
):
    """Run AI triage over the ticket and its thread (admin only)."""
    return TriageOut.from_domain(await service.analyze_ticket(ticket_id, caller))


# ─── Ownership workflow ─────────────────────────────────────────────


@router.post("/{ticket_id}/assign", response_model=EnrichedTicketOut)
async def assign_ticket(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    """Take ownership of an unassigned ticket (409 if another admin owns it)."""
    enriched = await service.assign(ticket_id, caller)
    await session.commit()
    return EnrichedTicketOut.from_enriched(enriched)


@router.post("/{ticket_id}/request-transfer", response_model=EnrichedTicketOut)
async def request_transfer(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    enriched = await service.request_transfer(ticket_id, caller)
    await session.commit()
    return EnrichedTicketOut.from_enriched(enriched)


@router.post("/{ticket_id}/accept-transfer", response_model=EnrichedTicketOut)
async def accept_transfer(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    enriched = await service.accept_transfer(ticket_id, caller)
    await session.commit()
    return EnrichedTicketOut.from_enriched(enriched)


@router.post("/{ticket_id}/reject-transfer", response_model=EnrichedTicketOut)
async def reject_transfer(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    enriched = await service.reject_transfer(ticket_id, caller)
    await session.commit()
    return EnrichedTicketOut.from_enriched(enriched)


@router.post("/{ticket_id}/unassign", response_model=EnrichedTicketOut)
async def unassign_ticket(
    ticket_id: int,
    caller: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service),
    session: AsyncSession = Depends(get_session),
):
    enriched = await service.unassign(ticket_id, caller)
    await session.commit()
    return EnrichedTicketOut.from_enriched(enriched)
