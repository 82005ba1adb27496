"""Backend contract consumed by the calendar engine, plus the REST implementation.

Every method either returns data or raises BackendError; callers in the engine
catch it at the component boundary and turn it into a rollback or a banner.
"""
import logging
from datetime import date
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from invest_calendar.config import settings
from invest_calendar.engine.grid import ingest_events
from invest_calendar.engine.types import CalendarEvent, Company, UserEventResponse
from invest_calendar.models.response import ResponseStatus

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """A fetch or write against the backend failed."""

    def __init__(self, message: str, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class CalendarBackend(Protocol):
    async def fetch_events(self, start: date, end: date, user_id: str) -> list[CalendarEvent]: ...

    async def fetch_companies(self, user_id: str) -> list[Company]: ...

    async def submit_response(
        self,
        user_id: str,
        event_id: str,
        status: ResponseStatus,
        note: Optional[str] = None,
    ) -> UserEventResponse: ...

    async def submit_company_order(self, user_id: str, company_id: str, new_index: int) -> None: ...


class ApiBackend:
    """CalendarBackend over the JSON API served by invest_calendar.main."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
        )

    async def __aenter__(self) -> "ApiBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            raise BackendError(f"{method} {path} returned {code}", retryable=code >= 500) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise BackendError(f"{method} {path} returned a non-JSON body", retryable=False) from exc

    async def fetch_events(self, start: date, end: date, user_id: str) -> list[CalendarEvent]:
        data = await self._request(
            "GET", "/api/events/",
            params={"start": start.isoformat(), "end": end.isoformat(), "user_id": user_id},
        )
        if not isinstance(data, list):
            raise BackendError("GET /api/events/ returned a non-list payload", retryable=False)
        events, rejected = ingest_events(data)
        if rejected:
            logger.warning("Dropped %d invalid events from feed %s..%s", len(rejected), start, end)
        return events

    async def fetch_companies(self, user_id: str) -> list[Company]:
        data = await self._request("GET", "/api/companies/", params={"user_id": user_id})
        try:
            return [Company.model_validate(item) for item in data]
        except (TypeError, ValidationError) as exc:
            raise BackendError(f"Malformed company list: {exc}", retryable=False) from exc

    async def submit_response(
        self,
        user_id: str,
        event_id: str,
        status: ResponseStatus,
        note: Optional[str] = None,
    ) -> UserEventResponse:
        data = await self._request("PUT", "/api/responses/", json={
            "user_id": user_id,
            "event_id": event_id,
            "status": ResponseStatus(status).value,
            "note": note,
        })
        try:
            return UserEventResponse.model_validate(data)
        except ValidationError as exc:
            raise BackendError(f"Malformed response record: {exc}", retryable=False) from exc

    async def submit_company_order(self, user_id: str, company_id: str, new_index: int) -> None:
        await self._request("PUT", "/api/companies/order", json={
            "user_id": user_id,
            "company_id": company_id,
            "new_index": new_index,
        })
