"""Tests for GlpiTicketRepository over an in-memory mirror and a stub client."""

from __future__ import annotations

import pytest

from app.adapters.glpi.client import GlpiNotFoundError
from app.adapters.glpi.ticket_repository import GlpiTicketRepository
from app.application.use_cases.assignment_engine import AssignmentEngine
from app.domain.entities.ticket import Ownership, TicketDraft
from app.domain.errors import (
    AssignmentFailure,
    ServiceUnavailableError,
    TicketNotFoundError,
)
from app.domain.value_objects.enums import TicketPriority, TicketStatus


class StubGlpiClient:
    def __init__(self):
        self.remote: dict[int, dict] = {}
        self.updates: list[tuple[int, dict]] = []
        self.down = False

    def _check(self):
        if self.down:
            raise ServiceUnavailableError("GLPI unreachable")

    async def create_ticket(self, name, content=None, priority=TicketPriority.MEDIUM):
        self._check()
        new_id = 100 + len(self.remote)
        self.remote[new_id] = {"id": new_id, "name": name, "content": content or "", "status": 1, "priority": 3}
        return new_id

    async def get_ticket(self, ticket_id):
        self._check()
        if ticket_id not in self.remote:
            raise GlpiNotFoundError(ticket_id)
        return dict(self.remote[ticket_id])

    async def update_ticket(self, ticket_id, fields):
        self._check()
        if ticket_id not in self.remote:
            raise GlpiNotFoundError(ticket_id)
        self.updates.append((ticket_id, fields))
        self.remote[ticket_id].update(fields)


@pytest.fixture
def glpi_client() -> StubGlpiClient:
    return StubGlpiClient()


@pytest.fixture
def repo(ticket_repo, glpi_client) -> GlpiTicketRepository:
    return GlpiTicketRepository(ticket_repo, glpi_client)


@pytest.mark.asyncio
async def test_create_goes_to_glpi_then_mirror(repo, ticket_repo, glpi_client):
    ticket = await repo.create(TicketDraft(title="Mail down", description="since 9am"), 1, "carol")
    assert ticket.external_id == 100
    assert glpi_client.remote[100]["name"] == "Mail down"
    assert ticket_repo.stored(ticket.id).user_id == "carol"


@pytest.mark.asyncio
async def test_create_fails_without_mirror_row_when_glpi_down(repo, ticket_repo, glpi_client):
    glpi_client.down = True
    with pytest.raises(ServiceUnavailableError):
        await repo.create(TicketDraft(title="x"), 1, "carol")
    assert ticket_repo.tickets == {}


@pytest.mark.asyncio
async def test_get_overlays_remote_content(repo, ticket_repo, glpi_client):
    glpi_client.remote[7] = {"id": 7, "name": "Edited in GLPI", "content": "new body", "status": 5, "priority": 4}
    ticket_repo.add(id=1, title="old", external_id=7, assigned_to="alice")

    ticket = await repo.get_by_id(1)
    assert ticket.title == "Edited in GLPI"
    assert ticket.status == TicketStatus.RESOLVED
    assert ticket.priority == TicketPriority.HIGH
    assert ticket.assigned_to == "alice"


@pytest.mark.asyncio
async def test_ticket_deleted_in_glpi_is_not_found(repo, ticket_repo):
    ticket_repo.add(id=1, external_id=999)
    with pytest.raises(TicketNotFoundError):
        await repo.get_by_id(1)
    with pytest.raises(TicketNotFoundError):
        await repo.update(1, {"title": "renamed"})

    result = await AssignmentEngine(repo).assign(1, "alice")
    assert result.failure == AssignmentFailure.NOT_FOUND


@pytest.mark.asyncio
async def test_escalated_status_survives_overlay(repo, ticket_repo, glpi_client):
    glpi_client.remote[7] = {"id": 7, "name": "t", "content": "", "status": 2, "priority": 3}
    ticket_repo.add(id=1, external_id=7, status=TicketStatus.ESCALATED)
    assert (await repo.get_by_id(1)).status == TicketStatus.ESCALATED

    glpi_client.remote[7]["status"] = 6
    assert (await repo.get_by_id(1)).status == TicketStatus.RESOLVED


@pytest.mark.asyncio
async def test_update_pushes_content_fields_only(repo, ticket_repo, glpi_client):
    glpi_client.remote[7] = {"id": 7, "name": "t", "content": "", "status": 2, "priority": 3}
    ticket_repo.add(id=1, external_id=7)

    ticket = await repo.update(1, {"status": TicketStatus.RESOLVED, "is_ai_active": False})
    assert glpi_client.updates == [(7, {"status": 4})]
    assert ticket.status == TicketStatus.RESOLVED
    assert ticket_repo.stored(1).is_ai_active is False


@pytest.mark.asyncio
async def test_ownership_is_written_locally(repo, ticket_repo, glpi_client):
    glpi_client.remote[7] = {"id": 7, "name": "t", "content": "", "status": 2, "priority": 3}
    ticket_repo.add(id=1, external_id=7)

    updated = await repo.compare_and_set_ownership(1, Ownership(None), Ownership("alice"))
    assert updated.assigned_to == "alice"
    assert glpi_client.updates == []


@pytest.mark.asyncio
async def test_engine_reports_outage_when_glpi_down(repo, ticket_repo, glpi_client):
    glpi_client.remote[7] = {"id": 7, "name": "t"}
    ticket_repo.add(id=1, external_id=7)
    glpi_client.down = True

    result = await AssignmentEngine(repo).assign(1, "alice")
    assert result.failure == AssignmentFailure.SERVICE_UNAVAILABLE
    assert ticket_repo.stored(1).assigned_to is None
