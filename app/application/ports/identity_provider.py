"""Port interface for resolving the caller of a request."""

from abc import ABC, abstractmethod

from app.domain.entities.user import User


class IdentityProvider(ABC):
    @abstractmethod
    async def resolve(self, session_user_id: str | None) -> User:
        """Return the user for a session's user id.

        Raises UnauthorizedError when there is no session or the user is unknown.
        """
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        ...
