"""Pytest configuration, in-memory port fakes and shared fixtures."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta
from typing import Callable

import pytest

from app.adapters.auth.session_identity import SessionIdentityProvider
from app.application.ports.conversation_repo import ConversationRepository
from app.application.ports.llm_port import TriagePort
from app.application.ports.ticket_repo import UPDATABLE_FIELDS, TicketRepository
from app.application.ports.user_repo import UserRepository
from app.application.use_cases.assignment_engine import AssignmentEngine
from app.application.use_cases.auth import hash_password
from app.application.use_cases.ticket_service import TicketService
from app.domain.entities.conversation import Conversation, Message
from app.domain.entities.ticket import Ownership, Ticket, TicketDraft
from app.domain.entities.triage import TicketTriage, TriageRequest
from app.domain.entities.user import User
from app.domain.errors import ServiceUnavailableError
from app.domain.value_objects.enums import UserRole

BASE_TIME = datetime(2026, 1, 1, 9, 0, 0)
# Low bcrypt cost keeps the suite fast
DEMO_PASSWORD_HASH = hash_password("password123", rounds=4)

# ─── In-memory fakes ────────────────────────────────────────────────


class FakeTicketRepo(TicketRepository):
    """Stores tickets in a dict and hands out copies, like a real database would."""

    def __init__(self):
        self.tickets: dict[int, Ticket] = {}
        self.unavailable = False
        self.cas_calls = 0
        # Runs inside compare_and_set_ownership before the comparison, so a
        # test can slip in a competing write between read and write.
        self.before_write: Callable[[int], None] | None = None

    def add(self, **fields) -> Ticket:
        ticket_id = fields.pop("id", len(self.tickets) + 1)
        fields.setdefault("title", f"Ticket {ticket_id}")
        fields.setdefault("conversation_id", ticket_id)
        fields.setdefault("user_id", "carol")
        fields.setdefault("created_at", BASE_TIME + timedelta(minutes=ticket_id))
        ticket = Ticket(id=ticket_id, **fields)
        self.tickets[ticket_id] = ticket
        return dataclasses.replace(ticket)

    def stored(self, ticket_id: int) -> Ticket:
        return self.tickets[ticket_id]

    def _check(self):
        if self.unavailable:
            raise ServiceUnavailableError("ticket store down")

    async def create(
        self, draft: TicketDraft, conversation_id: int, creator_user_id: str, external_id=None
    ) -> Ticket:
        self._check()
        return self.add(
            external_id=external_id,
            title=draft.title.strip(),
            description=draft.description,
            customer_name=draft.customer_name,
            priority=draft.priority,
            conversation_id=conversation_id,
            user_id=creator_user_id,
        )

    async def get_by_id(self, ticket_id):
        self._check()
        ticket = self.tickets.get(ticket_id)
        return dataclasses.replace(ticket) if ticket else None

    async def update(self, ticket_id, changes):
        self._check()
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        assert set(changes) <= UPDATABLE_FIELDS
        for key, value in changes.items():
            setattr(ticket, key, value)
        return dataclasses.replace(ticket)

    async def compare_and_set_ownership(self, ticket_id, expected: Ownership, new: Ownership):
        self._check()
        self.cas_calls += 1
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook(ticket_id)
        ticket = self.tickets.get(ticket_id)
        if ticket is None or ticket.ownership != expected:
            return None
        ticket.assigned_to = new.assigned_to
        ticket.transfer_request_to = new.transfer_request_to
        return dataclasses.replace(ticket)

    async def list_page(self, page, page_size):
        self._check()
        ordered = sorted(self.tickets.values(), key=lambda t: (t.created_at, t.id), reverse=True)
        start = (page - 1) * page_size
        return [dataclasses.replace(t) for t in ordered[start:start + page_size]], len(ordered)

    async def list_by_owner_user(self, user_id):
        self._check()
        mine = [t for t in self.tickets.values() if t.user_id == user_id]
        return sorted(mine, key=lambda t: (t.created_at, t.id), reverse=True)

    async def get_by_conversation(self, conversation_id):
        self._check()
        return next(
            (t for t in self.tickets.values() if t.conversation_id == conversation_id), None
        )


class FakeUserRepo(UserRepository):
    def __init__(self, users: list[User] | None = None):
        self.users: dict[str, User] = {u.id: u for u in users or []}

    async def save(self, user):
        user.created_at = user.created_at or BASE_TIME
        self.users[user.id] = user
        return user

    async def get_by_id(self, user_id):
        return self.users.get(user_id)

    async def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)


class FakeConversationRepo(ConversationRepository):
    def __init__(self):
        self.conversations: dict[int, Conversation] = {}
        self.messages: list[Message] = []

    async def create(self, title):
        conversation = Conversation(id=len(self.conversations) + 1, title=title, created_at=BASE_TIME)
        self.conversations[conversation.id] = conversation
        return conversation

    async def get_by_id(self, conversation_id):
        c = self.conversations.get(conversation_id)
        return Conversation(id=c.id, title=c.title, created_at=c.created_at) if c else None

    async def add_message(self, conversation_id, role, content):
        message = Message(
            id=len(self.messages) + 1,
            conversation_id=conversation_id,
            role=role,
            content=content,
            created_at=BASE_TIME,
        )
        self.messages.append(message)
        return message

    async def list_messages(self, conversation_id):
        return [m for m in self.messages if m.conversation_id == conversation_id]


class FakeTriage(TriagePort):
    def __init__(self, configured: bool = True, result: TicketTriage | None = None):
        self._configured = configured
        self._result = result
        self.requests: list[TriageRequest] = []

    def is_configured(self):
        return self._configured

    async def analyze_ticket(self, request):
        self.requests.append(request)
        return self._result


# ─── Fixtures ───────────────────────────────────────────────────────


def make_user(user_id: str, role: UserRole = UserRole.ADMIN) -> User:
    return User(
        id=user_id,
        email=f"{user_id}@example.com",
        password_hash=DEMO_PASSWORD_HASH,
        role=role,
        first_name=user_id.capitalize(),
        last_name="Test",
        created_at=BASE_TIME,
    )


@pytest.fixture
def alice() -> User:
    return make_user("alice")


@pytest.fixture
def bob() -> User:
    return make_user("bob")


@pytest.fixture
def carol() -> User:
    """A regular (non-admin) customer."""
    return make_user("carol", UserRole.USER)


@pytest.fixture
def user_repo(alice, bob, carol) -> FakeUserRepo:
    return FakeUserRepo([alice, bob, carol])


@pytest.fixture
def ticket_repo() -> FakeTicketRepo:
    return FakeTicketRepo()


@pytest.fixture
def conversation_repo() -> FakeConversationRepo:
    return FakeConversationRepo()


@pytest.fixture
def triage() -> FakeTriage:
    return FakeTriage(
        result=TicketTriage(
            category="Authentication",
            probable_cause="Reset token expires before use",
            steps=["Check token TTL", "Resend reset email"],
            llm_model="gpt-4o-mini",
        )
    )


@pytest.fixture
def engine(ticket_repo) -> AssignmentEngine:
    return AssignmentEngine(ticket_repo)


@pytest.fixture
def service(ticket_repo, conversation_repo, user_repo, triage) -> TicketService:
    return TicketService(
        ticket_repo=ticket_repo,
        conversation_repo=conversation_repo,
        identity=SessionIdentityProvider(user_repo),
        triage=triage,
        default_page_size=2,
        max_page_size=5,
    )
