"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.auth.session_identity import SessionIdentityProvider
from app.adapters.glpi.client import GlpiClient
from app.adapters.glpi.ticket_repository import GlpiTicketRepository
from app.adapters.llm.openai_adapter import OpenAIAdapter
from app.adapters.persistence.database import get_session
from app.adapters.persistence.repositories import (
    SqlConversationRepository,
    SqlTicketRepository,
    SqlUserRepository,
)
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.ticket_repo import TicketRepository
from app.application.use_cases.auth import AuthService
from app.application.use_cases.ticket_service import TicketService
from app.config import settings
from app.domain.entities.user import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"

# Singleton adapters (hold a session token / HTTP client between requests)
_triage_adapter = OpenAIAdapter()

if settings.ticket_backend == "glpi":
    _glpi_client: GlpiClient | None = GlpiClient()
    logger.info("Using GLPI as the ticket system of record")
else:
    _glpi_client = None


def get_glpi_client() -> GlpiClient | None:
    return _glpi_client


def get_user_repo(session: AsyncSession = Depends(get_session)) -> SqlUserRepository:
    return SqlUserRepository(session)


def get_ticket_repo(session: AsyncSession = Depends(get_session)) -> TicketRepository:
    local = SqlTicketRepository(session)
    if _glpi_client is not None:
        return GlpiTicketRepository(local, _glpi_client)
    return local


def get_conversation_repo(
    session: AsyncSession = Depends(get_session),
) -> SqlConversationRepository:
    return SqlConversationRepository(session)


def get_identity_provider(
    user_repo: SqlUserRepository = Depends(get_user_repo),
) -> IdentityProvider:
    return SessionIdentityProvider(user_repo)


def get_ticket_service(
    ticket_repo: TicketRepository = Depends(get_ticket_repo),
    conversation_repo: SqlConversationRepository = Depends(get_conversation_repo),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> TicketService:
    return TicketService(
        ticket_repo=ticket_repo,
        conversation_repo=conversation_repo,
        identity=identity,
        triage=_triage_adapter,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )


def get_auth_service(user_repo: SqlUserRepository = Depends(get_user_repo)) -> AuthService:
    return AuthService(user_repo)


async def get_current_user(
    request: Request,
    identity: IdentityProvider = Depends(get_identity_provider),
) -> User:
    """Resolve the logged-in caller from the session cookie (401 otherwise)."""
    return await identity.resolve(request.session.get(SESSION_USER_KEY))
