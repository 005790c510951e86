"""GLPI-backed ticket repository — implements TicketRepository.

Ticket content (title, description, status, priority) lives in GLPI. The
local ``tickets`` row is a mirror keyed by ``external_id`` that also holds
everything GLPI knows nothing about: ownership and pending transfer, the
conversation link, the opener, sentiment and customer name. Ownership
changes therefore stay local and keep their atomic conditional update.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from app.adapters.glpi.client import (
    GlpiClient,
    GlpiNotFoundError,
    priority_from_glpi,
    priority_to_glpi,
    status_from_glpi,
    status_to_glpi,
)
from app.adapters.persistence.repositories import SqlTicketRepository
from app.application.ports.ticket_repo import TicketRepository
from app.domain.entities.ticket import Ownership, Ticket, TicketDraft
from app.domain.errors import ServiceUnavailableError, TicketNotFoundError
from app.domain.value_objects.enums import TicketStatus

logger = logging.getLogger(__name__)

# Local field -> (GLPI field, converter)
_REMOTE_FIELDS = {
    "title": ("name", lambda v: v),
    "description": ("content", lambda v: v or ""),
    "status": ("status", status_to_glpi),
    "priority": ("priority", priority_to_glpi),
}


def _remote_status(local: TicketStatus, remote_code: int | None) -> TicketStatus:
    """GLPI has no "escalated": keep the mirrored status while GLPI still maps to the same one."""
    remote = status_from_glpi(remote_code)
    if remote == status_from_glpi(status_to_glpi(local)):
        return local
    return remote


def _overlay(local: Ticket, remote: dict) -> Ticket:
    """Replace mirrored content with what GLPI currently holds."""
    return replace(
        local,
        title=remote.get("name") or local.title,
        description=remote.get("content", local.description),
        status=_remote_status(local.status, remote.get("status")),
        priority=priority_from_glpi(remote.get("priority")),
    )


class GlpiTicketRepository(TicketRepository):
    def __init__(self, mirror: SqlTicketRepository, client: GlpiClient):
        self._mirror = mirror
        self._glpi = client

    async def create(
        self, draft: TicketDraft, conversation_id: int, creator_user_id: str
    ) -> Ticket:
        external_id = await self._glpi.create_ticket(
            name=draft.title.strip(), content=draft.description, priority=draft.priority
        )
        logger.info("Created GLPI ticket %d", external_id)
        return await self._mirror.create(
            draft, conversation_id, creator_user_id, external_id=external_id
        )

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        local = await self._mirror.get_by_id(ticket_id)
        if local is None or local.external_id is None:
            return local
        try:
            remote = await self._glpi.get_ticket(local.external_id)
        except GlpiNotFoundError:
            logger.warning(
                "Ticket %d mirrors GLPI ticket %d which no longer exists",
                ticket_id, local.external_id,
            )
            raise TicketNotFoundError(ticket_id)
        return _overlay(local, remote)

    async def update(self, ticket_id: int, changes: dict) -> Ticket | None:
        local = await self._mirror.get_by_id(ticket_id)
        if local is None:
            return None

        if local.external_id is not None:
            remote_changes = {
                glpi_name: convert(changes[name])
                for name, (glpi_name, convert) in _REMOTE_FIELDS.items()
                if name in changes
            }
            try:
                await self._glpi.update_ticket(local.external_id, remote_changes)
            except GlpiNotFoundError:
                raise TicketNotFoundError(ticket_id)

        # The mirror keeps a copy of the content so listings need no GLPI round trip.
        await self._mirror.update(ticket_id, changes)
        return await self.get_by_id(ticket_id)

    async def compare_and_set_ownership(
        self, ticket_id: int, expected: Ownership, new: Ownership
    ) -> Ticket | None:
        updated = await self._mirror.compare_and_set_ownership(ticket_id, expected, new)
        if updated is None or updated.external_id is None:
            return updated
        try:
            return _overlay(updated, await self._glpi.get_ticket(updated.external_id))
        except (GlpiNotFoundError, ServiceUnavailableError):
            # Ownership is already written to the mirror; serve mirrored content.
            logger.warning("Could not refresh GLPI content for ticket %d", ticket_id)
            return updated

    async def list_page(self, page: int, page_size: int) -> tuple[list[Ticket], int]:
        return await self._mirror.list_page(page, page_size)

    async def list_by_owner_user(self, user_id: str) -> list[Ticket]:
        return await self._mirror.list_by_owner_user(user_id)

    async def get_by_conversation(self, conversation_id: int) -> Ticket | None:
        return await self._mirror.get_by_conversation(conversation_id)
