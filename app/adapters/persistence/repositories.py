"""SQLAlchemy repository implementations."""

from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.models import (
    ConversationModel,
    MessageModel,
    TicketModel,
    UserModel,
)
from app.application.ports.conversation_repo import ConversationRepository
from app.application.ports.ticket_repo import UPDATABLE_FIELDS, TicketRepository
from app.application.ports.user_repo import UserRepository
from app.domain.entities.conversation import Conversation, Message
from app.domain.entities.ticket import Ownership, Ticket, TicketDraft
from app.domain.entities.user import User
from app.domain.errors import ServiceUnavailableError
from app.domain.value_objects.enums import (
    MessageRole,
    Sentiment,
    TicketPriority,
    TicketStatus,
    UserRole,
)

logger = logging.getLogger(__name__)

# ─── Mappers ─────────────────────────────────────────────────────────


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        title=m.title,
        conversation_id=m.conversation_id,
        user_id=m.user_id,
        description=m.description,
        customer_name=m.customer_name,
        status=TicketStatus(m.status),
        priority=TicketPriority(m.priority),
        sentiment=Sentiment(m.sentiment) if m.sentiment else Sentiment.NEUTRAL,
        is_ai_active=m.is_ai_active,
        assigned_to=m.assigned_to,
        transfer_request_to=m.transfer_request_to,
        external_id=m.external_id,
        created_at=m.created_at,
    )


def _user_to_domain(m: UserModel) -> User:
    return User(
        id=m.id,
        email=m.email,
        password_hash=m.password,
        role=UserRole(m.role),
        first_name=m.first_name,
        last_name=m.last_name,
        created_at=m.created_at,
    )


def _conversation_to_domain(m: ConversationModel) -> Conversation:
    return Conversation(id=m.id, title=m.title, created_at=m.created_at)


def _message_to_domain(m: MessageModel) -> Message:
    return Message(
        id=m.id,
        conversation_id=m.conversation_id,
        role=MessageRole(m.role),
        content=m.content,
        created_at=m.created_at,
    )


def _column_values(changes: dict) -> dict:
    values = {}
    for name, value in changes.items():
        if name not in UPDATABLE_FIELDS:
            raise ValueError(f"Field {name!r} is not updatable")
        values[name] = value.value if isinstance(value, Enum) else value
    return values


# ─── Repositories ────────────────────────────────────────────────────


async def _run(awaitable):
    """Await a database call, reporting connection loss as unavailability."""
    try:
        return await awaitable
    except (OperationalError, OSError) as e:
        logger.error("Database unreachable: %s", e)
        raise ServiceUnavailableError("Database unavailable") from e


class _SqlRepository:
    def __init__(self, session: AsyncSession):
        self._s = session

    async def _add(self, m):
        self._s.add(m)
        await _run(self._s.flush())
        await _run(self._s.refresh(m))
        return m

    async def _flush(self) -> None:
        await _run(self._s.flush())


class SqlTicketRepository(_SqlRepository, TicketRepository):
    async def create(
        self,
        draft: TicketDraft,
        conversation_id: int,
        creator_user_id: str,
        external_id: int | None = None,
    ) -> Ticket:
        m = await self._add(
            TicketModel(
                title=draft.title.strip(),
                description=draft.description,
                customer_name=draft.customer_name,
                priority=draft.priority.value,
                status=TicketStatus.OPEN.value,
                sentiment=Sentiment.NEUTRAL.value,
                is_ai_active=True,
                conversation_id=conversation_id,
                user_id=creator_user_id,
                external_id=external_id,
            )
        )
        return _ticket_to_domain(m)

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        m = await _run(self._s.get(TicketModel, ticket_id, populate_existing=True))
        return _ticket_to_domain(m) if m else None

    async def update(self, ticket_id: int, changes: dict) -> Ticket | None:
        if not changes:
            return await self.get_by_id(ticket_id)
        result = await _run(
            self._s.execute(
                update(TicketModel)
                .where(TicketModel.id == ticket_id)
                .values(**_column_values(changes))
                .returning(TicketModel)
                .execution_options(populate_existing=True)
            )
        )
        m = result.scalar_one_or_none()
        await self._flush()
        return _ticket_to_domain(m) if m else None

    async def compare_and_set_ownership(
        self, ticket_id: int, expected: Ownership, new: Ownership
    ) -> Ticket | None:
        # Single conditional UPDATE: the row only changes if nobody else
        # touched the ownership columns since they were read.
        result = await _run(
            self._s.execute(
                update(TicketModel)
                .where(
                    TicketModel.id == ticket_id,
                    TicketModel.assigned_to.is_not_distinct_from(expected.assigned_to),
                    TicketModel.transfer_request_to.is_not_distinct_from(
                        expected.transfer_request_to
                    ),
                )
                .values(
                    assigned_to=new.assigned_to,
                    transfer_request_to=new.transfer_request_to,
                )
                .returning(TicketModel)
                .execution_options(populate_existing=True)
            )
        )
        m = result.scalar_one_or_none()
        await self._flush()
        return _ticket_to_domain(m) if m else None

    async def list_page(self, page: int, page_size: int) -> tuple[list[Ticket], int]:
        total = (
            await _run(self._s.execute(select(func.count(TicketModel.id))))
        ).scalar() or 0
        result = await _run(
            self._s.execute(
                select(TicketModel)
                .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
        )
        return [_ticket_to_domain(m) for m in result.scalars()], total

    async def list_by_owner_user(self, user_id: str) -> list[Ticket]:
        result = await _run(
            self._s.execute(
                select(TicketModel)
                .where(TicketModel.user_id == user_id)
                .order_by(TicketModel.created_at.desc(), TicketModel.id.desc())
            )
        )
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def get_by_conversation(self, conversation_id: int) -> Ticket | None:
        result = await _run(
            self._s.execute(
                select(TicketModel).where(TicketModel.conversation_id == conversation_id)
            )
        )
        m = result.scalars().first()
        return _ticket_to_domain(m) if m else None


class SqlUserRepository(_SqlRepository, UserRepository):
    async def save(self, user: User) -> User:
        m = await self._add(
            UserModel(
                id=user.id,
                email=user.email,
                password=user.password_hash,
                first_name=user.first_name,
                last_name=user.last_name,
                role=user.role.value,
            )
        )
        return _user_to_domain(m)

    async def get_by_id(self, user_id: str) -> User | None:
        m = await _run(self._s.get(UserModel, user_id))
        return _user_to_domain(m) if m else None

    async def get_by_email(self, email: str) -> User | None:
        result = await _run(self._s.execute(select(UserModel).where(UserModel.email == email)))
        m = result.scalar_one_or_none()
        return _user_to_domain(m) if m else None


class SqlConversationRepository(_SqlRepository, ConversationRepository):
    async def create(self, title: str) -> Conversation:
        m = await self._add(ConversationModel(title=title))
        return _conversation_to_domain(m)

    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        m = await _run(self._s.get(ConversationModel, conversation_id))
        return _conversation_to_domain(m) if m else None

    async def add_message(
        self, conversation_id: int, role: MessageRole, content: str
    ) -> Message:
        m = await self._add(
            MessageModel(conversation_id=conversation_id, role=role.value, content=content)
        )
        return _message_to_domain(m)

    async def list_messages(self, conversation_id: int) -> list[Message]:
        result = await _run(
            self._s.execute(
                select(MessageModel)
                .where(MessageModel.conversation_id == conversation_id)
                .order_by(MessageModel.created_at, MessageModel.id)
            )
        )
        return [_message_to_domain(m) for m in result.scalars()]
