"""GLPI REST API client.

Talks to a GLPI instance (``apirest.php``) with an app token and a user
token, holding one session token that is re-initialised once if GLPI
answers 401. Transport failures, timeouts and 5xx answers surface as
``ServiceUnavailableError``; a 404 surfaces as ``GlpiNotFoundError``.
"""

from __future__ import annotations

import logging

import httpx

from app.config import settings
from app.domain.errors import ServiceUnavailableError
from app.domain.value_objects.enums import TicketPriority, TicketStatus

logger = logging.getLogger(__name__)

# GLPI status codes: 1 new, 2 processing (assigned), 3 processing (planned),
# 4 pending, 5 solved, 6 closed.
GLPI_STATUS_NEW = 1
GLPI_TYPE_INCIDENT = 1

_PRIORITY_TO_GLPI = {
    TicketPriority.LOW: 2,
    TicketPriority.MEDIUM: 3,
    TicketPriority.HIGH: 4,
}
_PRIORITY_FROM_GLPI = {
    1: TicketPriority.LOW,
    2: TicketPriority.LOW,
    3: TicketPriority.MEDIUM,
    4: TicketPriority.HIGH,
    5: TicketPriority.HIGH,
}
_STATUS_TO_GLPI = {
    TicketStatus.OPEN: 2,
    TicketStatus.RESOLVED: 4,
    TicketStatus.ESCALATED: 2,
}
_STATUS_FROM_GLPI = {
    1: TicketStatus.OPEN,
    2: TicketStatus.OPEN,
    3: TicketStatus.OPEN,
    4: TicketStatus.RESOLVED,
    5: TicketStatus.RESOLVED,
    6: TicketStatus.RESOLVED,
}


def _lower(value):
    return value.value if isinstance(value, (TicketPriority, TicketStatus)) else str(value).strip().lower()


def priority_to_glpi(priority: TicketPriority | str | int) -> int:
    if isinstance(priority, int):
        return priority
    try:
        return _PRIORITY_TO_GLPI[TicketPriority(_lower(priority))]
    except ValueError:
        return 3


def priority_from_glpi(value: int | None) -> TicketPriority:
    return _PRIORITY_FROM_GLPI.get(value, TicketPriority.MEDIUM)


def status_to_glpi(status: TicketStatus | str) -> int:
    try:
        return _STATUS_TO_GLPI[TicketStatus(_lower(status))]
    except ValueError:
        return GLPI_STATUS_NEW


def status_from_glpi(value: int | None) -> TicketStatus:
    return _STATUS_FROM_GLPI.get(value, TicketStatus.OPEN)


class GlpiNotFoundError(Exception):
    pass


class GlpiClient:
    def __init__(
        self,
        api_url: str | None = None,
        app_token: str | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = (api_url if api_url is not None else settings.glpi_api_url).rstrip("/")
        self._app_token = app_token if app_token is not None else settings.glpi_app_token
        self._auth_token = auth_token if auth_token is not None else settings.glpi_auth_token
        self._timeout = timeout or settings.glpi_timeout_seconds
        self._transport = transport
        self._session_token: str | None = None

        if not self.is_configured():
            logger.warning("GLPI is not configured (GLPI_API_URL / GLPI_APP_TOKEN / GLPI_AUTH_TOKEN)")

    def is_configured(self) -> bool:
        return bool(self._api_url and self._app_token and self._auth_token)

    # ─── Session ────────────────────────────────────────────────────

    async def init_session(self) -> str:
        self._require_configured()
        response = await self._send(
            "GET",
            "initSession/",
            headers={
                "App-Token": self._app_token,
                "Authorization": f"user_token {self._auth_token}",
            },
        )
        if response.status_code == 401:
            raise ServiceUnavailableError(
                "GLPI rejected the user token (401); check GLPI_AUTH_TOKEN"
            )
        self._raise_for_status(response)

        token = response.json().get("session_token")
        if not token:
            raise ServiceUnavailableError("GLPI did not return a session_token")
        self._session_token = token
        logger.info("GLPI session initialised")
        return token

    async def kill_session(self) -> None:
        if not self._session_token or not self.is_configured():
            return
        try:
            await self._send("GET", "killSession", headers=self._session_headers(), timeout=5.0)
        except ServiceUnavailableError:
            logger.warning("Could not close GLPI session cleanly")
        finally:
            self._session_token = None

    # ─── Tickets ────────────────────────────────────────────────────

    async def get_ticket(self, ticket_id: int) -> dict:
        return await self._request("GET", f"Ticket/{ticket_id}")

    async def create_ticket(
        self,
        name: str,
        content: str | None = None,
        priority: TicketPriority | str | int = TicketPriority.MEDIUM,
    ) -> int:
        payload = {
            "name": name,
            "status": GLPI_STATUS_NEW,
            "priority": priority_to_glpi(priority),
            "type": GLPI_TYPE_INCIDENT,
        }
        if content:
            payload["content"] = content
        data = await self._request("POST", "Ticket", json={"input": payload})
        ticket_id = data.get("id") if isinstance(data, dict) else None
        if ticket_id is None:
            raise ServiceUnavailableError(f"GLPI did not return a ticket id: {data!r}")
        return int(ticket_id)

    async def update_ticket(self, ticket_id: int, fields: dict) -> None:
        if not fields:
            return
        await self._request("PUT", f"Ticket/{ticket_id}", json={"input": fields})

    # ─── Transport ──────────────────────────────────────────────────

    async def _request(self, method: str, endpoint: str, **kwargs):
        self._require_configured()
        if not self._session_token:
            await self.init_session()

        response = await self._send(method, endpoint, headers=self._session_headers(), **kwargs)
        if response.status_code == 401:
            # Session expired: re-initialise once and retry.
            logger.info("GLPI session expired, re-initialising")
            self._session_token = None
            await self.init_session()
            response = await self._send(
                method, endpoint, headers=self._session_headers(), **kwargs
            )

        if response.status_code == 404:
            raise GlpiNotFoundError(f"GLPI {endpoint} not found")
        self._raise_for_status(response)
        return response.json()

    async def _send(self, method: str, endpoint: str, *, headers: dict, timeout: float | None = None, **kwargs) -> httpx.Response:
        url = f"{self._api_url}/{endpoint.lstrip('/')}"
        try:
            async with httpx.AsyncClient(
                timeout=timeout or self._timeout, transport=self._transport
            ) as client:
                return await client.request(
                    method,
                    url,
                    headers={
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                        **headers,
                    },
                    **kwargs,
                )
        except httpx.TimeoutException as e:
            logger.error("GLPI %s %s timed out", method, endpoint)
            raise ServiceUnavailableError("Timed out connecting to GLPI") from e
        except httpx.HTTPError as e:
            logger.error("GLPI %s %s failed: %s", method, endpoint, e)
            raise ServiceUnavailableError(f"GLPI unreachable: {e}") from e

    def _session_headers(self) -> dict:
        return {"App-Token": self._app_token, "Session-Token": self._session_token or ""}

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise ServiceUnavailableError(
                "GLPI is not configured; set GLPI_API_URL, GLPI_APP_TOKEN and GLPI_AUTH_TOKEN"
            )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code >= 400:
            logger.error("GLPI answered %d: %s", response.status_code, response.text[:500])
            raise ServiceUnavailableError(f"GLPI API error: {response.status_code}")
