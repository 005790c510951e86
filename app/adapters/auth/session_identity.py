"""Session identity provider — implements IdentityProvider over the user store."""

from __future__ import annotations

from app.application.errors import UnauthorizedError
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.user_repo import UserRepository
from app.domain.entities.user import User


class SessionIdentityProvider(IdentityProvider):
    def __init__(self, user_repo: UserRepository):
        self._users = user_repo

    async def resolve(self, session_user_id: str | None) -> User:
        if not session_user_id:
            raise UnauthorizedError("Unauthorized")
        user = await self._users.get_by_id(session_user_id)
        if user is None:
            raise UnauthorizedError("Unauthorized")
        return user

    async def get_user(self, user_id: str) -> User | None:
        return await self._users.get_by_id(user_id)
