"""Service-level errors, one per HTTP outcome the API exposes."""

from __future__ import annotations

from app.domain.errors import AssignmentFailure


class ServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str, extra: dict | None = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class ValidationError(ServiceError):
    status_code = 400


class InvalidStateError(ServiceError):
    status_code = 400


class UnauthorizedError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class UnavailableError(ServiceError):
    status_code = 503


FAILURE_ERRORS: dict[AssignmentFailure, type[ServiceError]] = {
    AssignmentFailure.NOT_FOUND: NotFoundError,
    AssignmentFailure.FORBIDDEN: ForbiddenError,
    AssignmentFailure.INVALID_STATE: InvalidStateError,
    AssignmentFailure.CONFLICT: ConflictError,
    AssignmentFailure.SERVICE_UNAVAILABLE: UnavailableError,
}
