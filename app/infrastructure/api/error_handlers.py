"""Map service and domain errors onto JSON responses of the form ``{"message": ...}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.application.errors import ServiceError
from app.domain.entities.user import PublicUser
from app.domain.errors import ServiceUnavailableError, TicketNotFoundError
from app.infrastructure.api.schemas import PublicUserOut

logger = logging.getLogger(__name__)


def _encode_extra(extra: dict) -> dict:
    encoded = {}
    for key, value in extra.items():
        if isinstance(value, PublicUser):
            value = PublicUserOut.from_domain(value).model_dump(by_alias=True, mode="json")
        encoded[key] = value
    return encoded


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, **_encode_extra(exc.extra)},
    )


async def unavailable_handler(request: Request, exc: ServiceUnavailableError) -> JSONResponse:
    logger.error("%s %s: backing service unavailable: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"message": str(exc) or "Service unavailable"})


async def ticket_not_found_handler(request: Request, exc: TicketNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": "Ticket not found"})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"message": f"{field}: {message}" if field else message},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(ServiceUnavailableError, unavailable_handler)
    app.add_exception_handler(TicketNotFoundError, ticket_not_found_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
