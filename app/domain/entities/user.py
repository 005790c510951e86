"""User entity — an identity with a role. Only admins take part in assignment."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import UserRole


@dataclass(frozen=True)
class PublicUser:
    """A user as exposed to API callers: never carries the password hash."""

    id: str
    email: str
    first_name: str | None
    last_name: str | None
    role: UserRole
    created_at: datetime | None = None


@dataclass
class User:
    id: str
    email: str
    password_hash: str | None
    role: UserRole = UserRole.USER
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            role=self.role,
            created_at=self.created_at,
        )
