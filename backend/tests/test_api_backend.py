"""End-to-end: the engine's HTTP backend against the real app over ASGI."""
from datetime import date

import httpx
import pytest

from invest_calendar.engine.backend import ApiBackend, BackendError
from invest_calendar.engine.rsvp import WriteState
from invest_calendar.engine.session import CalendarSession
from invest_calendar.engine.types import ViewMode
from invest_calendar.models.response import ResponseStatus
from invest_calendar.models.user import User
from invest_calendar.schemas.event import EventCreate
from invest_calendar.services import company_service, event_service
from tests.conftest import utc


def _seed(db):
    user = User(display_name="Analyst", default_timezone="UTC")
    db.add(user)
    db.commit()
    aapl = company_service.create_company(db, "AAPL", "Apple Inc.")
    msft = company_service.create_company(db, "MSFT", "Microsoft Corp.")
    company_service.reorder_company(db, user.user_id, aapl.company_id, 0)
    event = event_service.create_event(db, EventCreate(
        title="Cloud Summit",
        start_date=utc(2024, 3, 4, 9),
        end_date=utc(2024, 3, 5, 17),
        company_ids=[aapl.company_id, msft.company_id],
    ))
    return user.user_id, aapl.company_id, msft.company_id, event.event_id


def _backend(app):
    return ApiBackend(client=httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test"))


class TestApiBackend:

    @pytest.mark.asyncio
    async def test_session_round_trip(self, api_app, db):
        user_id, aapl_id, msft_id, event_id = _seed(db)
        async with _backend(api_app) as backend:
            session = CalendarSession(backend, user_id, anchor=date(2024, 3, 6), view_mode=ViewMode.week)
            assert await session.refresh()
            assert session.grid().placement_count() == 4

            write = await session.set_response(event_id, ResponseStatus.accepted)
            assert write.state == WriteState.confirmed
            assert await session.reorder_company(msft_id, 0)

            # A fresh session sees what the first one persisted
            fresh = CalendarSession(backend, user_id, anchor=date(2024, 3, 6))
            await fresh.refresh()
            assert fresh.rsvp.status(event_id) == ResponseStatus.accepted
            assert [c.id for c in fresh.companies.ordered()] == [msft_id, aapl_id]

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retryable(self, api_app, db):
        user_id, *_ = _seed(db)
        async with _backend(api_app) as backend:
            with pytest.raises(BackendError) as excinfo:
                await backend.submit_response(user_id, "no-such-event", ResponseStatus.accepted)
        assert not excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back_in_session(self, api_app, db):
        user_id, *_ = _seed(db)
        async with _backend(api_app) as backend:
            session = CalendarSession(backend, user_id, anchor=date(2024, 3, 6))
            await session.refresh()
            write = await session.set_response("no-such-event", ResponseStatus.declined)
            assert write.state == WriteState.rolled_back
            assert session.rsvp.status("no-such-event") == ResponseStatus.pending
            assert session.notice.kind == "rsvp_failed"


@pytest.mark.asyncio
async def test_unreachable_backend_is_retryable():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test")
    async with ApiBackend(client=client) as backend:
        with pytest.raises(BackendError) as excinfo:
            await backend.fetch_companies("u1")
    assert excinfo.value.retryable


def _serving(payloads):
    """MockTransport client answering each path with a fixed 200 body."""
    def handler(request):
        body = payloads.get(request.url.path, "[]")
        return httpx.Response(200, text=body, headers={"content-type": "application/json"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


class TestMalformedPayloads:

    @pytest.mark.asyncio
    async def test_non_json_body_is_not_retryable(self):
        client = _serving({"/api/companies/": "<html>proxy error</html>"})
        async with ApiBackend(client=client) as backend:
            with pytest.raises(BackendError) as excinfo:
                await backend.fetch_companies("u1")
        assert not excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_malformed_company_list(self):
        client = _serving({"/api/companies/": '[{"ticker": "AAPL"}]'})
        async with ApiBackend(client=client) as backend:
            with pytest.raises(BackendError) as excinfo:
                await backend.fetch_companies("u1")
        assert not excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_event_feed_that_is_not_a_list(self):
        client = _serving({"/api/events/": '{"detail": "oops"}'})
        async with ApiBackend(client=client) as backend:
            with pytest.raises(BackendError) as excinfo:
                await backend.fetch_events(date(2024, 3, 4), date(2024, 3, 10), "u1")
        assert not excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_garbled_fetch_sets_notice_instead_of_raising(self):
        client = _serving({"/api/companies/": "<html>proxy error</html>"})
        async with ApiBackend(client=client) as backend:
            session = CalendarSession(backend, "u1", anchor=date(2024, 3, 6))
            assert not await session.refresh()
        assert session.notice.kind == "fetch_failed"
        assert not session.notice.retryable

    @pytest.mark.asyncio
    async def test_malformed_rsvp_reply_rolls_back(self):
        client = _serving({"/api/responses/": '{"ok": true}'})
        async with ApiBackend(client=client) as backend:
            session = CalendarSession(backend, "u1", anchor=date(2024, 3, 6))
            write = await session.set_response("e1", ResponseStatus.accepted)
        assert write.state == WriteState.rolled_back
        assert session.rsvp.status("e1") == ResponseStatus.pending
