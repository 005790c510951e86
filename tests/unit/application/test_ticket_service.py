"""Tests for TicketService: authorisation, error mapping and enrichment."""

from __future__ import annotations

import pytest

from app.application.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from app.domain.entities.ticket import TicketDraft
from app.domain.value_objects.enums import MessageRole, TicketPriority, TicketStatus

# ─── Assignment workflow ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_assign_returns_ticket_enriched_with_owner(service, ticket_repo, alice):
    ticket_repo.add(id=1)
    enriched = await service.assign(1, alice)
    assert enriched.ticket.assigned_to == "alice"
    assert enriched.assigned_to_user.email == "alice@example.com"
    assert enriched.transfer_request_to_user is None


@pytest.mark.asyncio
async def test_assign_conflict_carries_current_owner(service, ticket_repo, alice, bob):
    ticket_repo.add(id=1, assigned_to="alice")
    with pytest.raises(ConflictError) as exc:
        await service.assign(1, bob)
    assert exc.value.status_code == 409
    assert exc.value.extra["assignedTo"].id == "alice"


@pytest.mark.asyncio
async def test_request_transfer_enriches_requester(service, ticket_repo, bob):
    ticket_repo.add(id=1, assigned_to="alice")
    enriched = await service.request_transfer(1, bob)
    assert enriched.transfer_request_to_user.id == "bob"
    assert enriched.assigned_to_user.id == "alice"


@pytest.mark.asyncio
async def test_non_admin_cannot_use_assignment_operations(service, ticket_repo, carol):
    ticket_repo.add(id=1)
    for op in (service.assign, service.request_transfer, service.accept_transfer,
               service.reject_transfer, service.unassign):
        with pytest.raises(ForbiddenError):
            await op(1, carol)
    assert ticket_repo.stored(1).assigned_to is None


@pytest.mark.asyncio
async def test_failures_map_to_service_errors(service, ticket_repo, alice, bob):
    ticket_repo.add(id=1, assigned_to="alice")
    with pytest.raises(NotFoundError):
        await service.assign(42, alice)
    with pytest.raises(InvalidStateError, match="No transfer request pending"):
        await service.accept_transfer(1, alice)
    with pytest.raises(ForbiddenError):
        await service.unassign(1, bob)


@pytest.mark.asyncio
async def test_store_outage_maps_to_unavailable(service, ticket_repo, alice):
    ticket_repo.add(id=1)
    ticket_repo.unavailable = True
    with pytest.raises(UnavailableError) as exc:
        await service.assign(1, alice)
    assert exc.value.status_code == 503


# ─── Tickets ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_ticket_opens_conversation_with_description(
    service, conversation_repo, carol
):
    ticket = await service.create_ticket(
        TicketDraft(title="  VPN drops  ", description="Every 10 minutes", priority=TicketPriority.HIGH),
        carol,
    )
    assert ticket.title == "VPN drops"
    assert ticket.user_id == "carol"
    assert ticket.status == TicketStatus.OPEN
    assert ticket.assigned_to is None
    messages = await conversation_repo.list_messages(ticket.conversation_id)
    assert [(m.role, m.content) for m in messages] == [(MessageRole.USER, "Every 10 minutes")]


@pytest.mark.asyncio
async def test_create_ticket_requires_title(service, carol):
    with pytest.raises(ValidationError):
        await service.create_ticket(TicketDraft(title="   "), carol)


@pytest.mark.asyncio
async def test_user_sees_only_own_tickets(service, ticket_repo, carol, bob):
    ticket_repo.add(id=1, user_id="carol")
    ticket_repo.add(id=2, user_id="someone-else")
    assert (await service.get_ticket(1, carol)).ticket.id == 1
    with pytest.raises(ForbiddenError):
        await service.get_ticket(2, carol)
    assert (await service.get_ticket(2, bob)).ticket.id == 2


@pytest.mark.asyncio
async def test_list_tickets_paginates_newest_first(service, ticket_repo, alice):
    for i in range(1, 6):
        ticket_repo.add(id=i)
    page = await service.list_tickets(alice, page=2)
    assert [t.id for t in page.tickets] == [3, 2]
    assert (page.page, page.limit, page.total, page.total_pages) == (2, 2, 5, 3)


@pytest.mark.asyncio
@pytest.mark.parametrize("page, limit", [(0, None), (1, 0), (1, 6)])
async def test_list_tickets_rejects_bad_paging(service, alice, page, limit):
    with pytest.raises(ValidationError):
        await service.list_tickets(alice, page=page, limit=limit)


@pytest.mark.asyncio
async def test_list_tickets_admin_only(service, carol):
    with pytest.raises(ForbiddenError):
        await service.list_tickets(carol)


@pytest.mark.asyncio
async def test_list_my_tickets(service, ticket_repo, carol):
    ticket_repo.add(id=1, user_id="carol")
    ticket_repo.add(id=2, user_id="dave")
    ticket_repo.add(id=3, user_id="carol")
    assert [t.id for t in await service.list_my_tickets(carol)] == [3, 1]


@pytest.mark.asyncio
async def test_update_ticket_fields(service, ticket_repo, alice):
    ticket_repo.add(id=1)
    t = await service.update_ticket(1, {"status": TicketStatus.RESOLVED, "is_ai_active": False}, alice)
    assert t.status == TicketStatus.RESOLVED
    assert t.is_ai_active is False


@pytest.mark.asyncio
async def test_update_ticket_cannot_touch_ownership(service, ticket_repo, alice):
    ticket_repo.add(id=1)
    with pytest.raises(ValidationError):
        await service.update_ticket(1, {"assigned_to": "alice"}, alice)
    assert ticket_repo.stored(1).assigned_to is None


@pytest.mark.asyncio
async def test_update_missing_ticket(service, alice):
    with pytest.raises(NotFoundError):
        await service.update_ticket(9, {"title": "x"}, alice)


# ─── Conversation ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_conversation_visible_to_opener_and_admin(service, carol, bob, alice):
    ticket = await service.create_ticket(TicketDraft(title="Help", description="first"), carol)
    await service.add_message(ticket.id, "On it", alice)

    convo = await service.get_conversation(ticket.conversation_id, carol)
    assert [m.role for m in convo.messages] == [MessageRole.USER, MessageRole.AGENT]
    assert (await service.get_conversation(ticket.conversation_id, bob)).id == ticket.conversation_id


@pytest.mark.asyncio
async def test_conversation_hidden_from_other_users(service, ticket_repo, conversation_repo, carol):
    convo = await conversation_repo.create("Someone else's")
    ticket_repo.add(id=1, conversation_id=convo.id, user_id="dave")
    with pytest.raises(ForbiddenError):
        await service.get_conversation(convo.id, carol)
    with pytest.raises(NotFoundError):
        await service.get_conversation(404, carol)


@pytest.mark.asyncio
async def test_user_message_role_is_forced(service, carol):
    ticket = await service.create_ticket(TicketDraft(title="Help"), carol)
    message = await service.add_message(ticket.id, "hello", carol, role=MessageRole.AGENT)
    assert message.role == MessageRole.USER


@pytest.mark.asyncio
async def test_admin_cannot_post_as_assistant(service, carol, alice):
    ticket = await service.create_ticket(TicketDraft(title="Help"), carol)
    with pytest.raises(ValidationError):
        await service.add_message(ticket.id, "hi", alice, role=MessageRole.ASSISTANT)


@pytest.mark.asyncio
async def test_empty_message_rejected(service, carol):
    ticket = await service.create_ticket(TicketDraft(title="Help"), carol)
    with pytest.raises(ValidationError):
        await service.add_message(ticket.id, "  ", carol)


# ─── AI triage ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_analyze_ticket_passes_thread(service, triage, carol, alice):
    ticket = await service.create_ticket(TicketDraft(title="Login", description="reset fails"), carol)
    result = await service.analyze_ticket(ticket.id, alice)
    assert result.category == "Authentication"
    assert [m.content for m in triage.requests[0].messages] == ["reset fails"]


@pytest.mark.asyncio
async def test_analyze_ticket_unconfigured(service, triage, ticket_repo, alice):
    ticket_repo.add(id=1)
    triage._configured = False
    with pytest.raises(UnavailableError):
        await service.analyze_ticket(1, alice)
