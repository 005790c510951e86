"""AuthService — registration and password login for the session-based API."""

from __future__ import annotations

import logging
import uuid

import bcrypt

from app.application.errors import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.application.ports.user_repo import UserRepository
from app.domain.entities.user import User
from app.domain.value_objects.enums import UserRole

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72
BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, stored: str | None) -> bool:
    if not stored:
        return False
    try:
        return bcrypt.checkpw(password.encode(), stored.encode())
    except ValueError:
        # Not a bcrypt hash
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(self, user_repo: UserRepository, hash_rounds: int = BCRYPT_ROUNDS):
        self._users = user_repo
        self._hash_rounds = hash_rounds

    async def register(
        self,
        email: str | None,
        password: str | None,
        first_name: str | None = None,
        last_name: str | None = None,
        role: str | None = None,
    ) -> User:
        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        email = normalize_email(email)
        if await self._users.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password(password, self._hash_rounds),
            role=UserRole.ADMIN if role == UserRole.ADMIN.value else UserRole.USER,
            first_name=first_name or None,
            last_name=last_name or None,
        )
        user = await self._users.save(user)
        logger.info("Registered user %s (role=%s)", user.id, user.role.value)
        return user

    async def login(self, email: str | None, password: str | None) -> User:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self._users.get_by_email(normalize_email(email))
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", normalize_email(email))
            raise UnauthorizedError("Invalid email or password")
        return user

    async def me(self, user_id: str) -> User:
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
