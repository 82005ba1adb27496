"""Pytest fixtures — SQLite database for API tests, fakes and factories for the engine."""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from invest_calendar.database import Base, get_db
from invest_calendar.engine.backend import BackendError
from invest_calendar.engine.types import CalendarEvent, Company, UserEventResponse
from invest_calendar.main import app
from invest_calendar.models.event import EventType, LocationType
from invest_calendar.models.response import ResponseStatus

# Import all models so they register with Base.metadata
from invest_calendar.models.user import User                               # noqa: F401
from invest_calendar.models.company import Company as CompanyRow           # noqa: F401
from invest_calendar.models.event import Event, EventCompany, EventHost    # noqa: F401
from invest_calendar.models.response import UserEventResponse as ResponseRow  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def api_app(db_engine):
    """The FastAPI app with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(api_app):
    """FastAPI TestClient over the overridden app."""
    with TestClient(api_app) as c:
        yield c


# ---------------------------------------------------------------------------
# API helpers: create records via the API, return the response JSON dict
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "Test User", tz: str = "America/New_York") -> dict:
    """Helper — POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "display_name": name,
        "default_timezone": tz,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_company(client: TestClient, ticker: str, name: Optional[str] = None,
                        sector: str = "Information Technology", subsector: str = "") -> dict:
    """Helper — POST /api/companies and return response JSON."""
    resp = client.post("/api/companies/", json={
        "ticker_symbol": ticker,
        "company_name": name or f"{ticker} Inc.",
        "gics_sector": sector,
        "gics_subsector": subsector,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, start: datetime, end: Optional[datetime] = None,
                      company_ids: Optional[list] = None, hosts: Optional[list] = None,
                      title: str = "Investor Day", **extra) -> dict:
    """Helper — POST /api/events and return response JSON."""
    payload = {
        "title": title,
        "start_date": start.isoformat(),
        "end_date": (end or start + timedelta(hours=1)).isoformat(),
        "company_ids": company_ids or [],
        "hosts": hosts or [],
        **extra,
    }
    resp = client.post("/api/events/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Engine factories
# ---------------------------------------------------------------------------
def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_company(ticker: str, display_order: int = 0, name: Optional[str] = None,
                 sector: str = "Information Technology", subsector: str = "") -> Company:
    return Company(
        id=ticker.lower(),
        ticker_symbol=ticker,
        company_name=name or f"{ticker} Inc.",
        gics_sector=sector,
        gics_subsector=subsector,
        display_order=display_order,
    )


def make_event(event_id: str, start: datetime, end: Optional[datetime] = None, companies=(),
               hosts=(), title: Optional[str] = None, description: str = "",
               event_type: EventType = EventType.standard,
               location_type: LocationType = LocationType.virtual,
               user_response: Optional[UserEventResponse] = None, **extra) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=title or f"Event {event_id}",
        description=description,
        start_date=start,
        end_date=end or start + timedelta(hours=1),
        companies=list(companies),
        hosts=list(hosts),
        event_type=event_type,
        location_type=location_type,
        user_response=user_response,
        **extra,
    )


def make_response(event_id: str, status: ResponseStatus, user_id: str = "u1",
                  note: Optional[str] = None) -> UserEventResponse:
    return UserEventResponse(event_id=event_id, user_id=user_id, status=status, note=note,
                             updated_at=utc(2024, 3, 1))


async def wait_for(condition: Callable[[], bool], attempts: int = 200) -> None:
    """Yield to the loop until condition() holds."""
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition was never met")


class FakeBackend:
    """In-memory CalendarBackend with switchable failures and gates.

    fetch_gates[i] holds the i-th fetch_events call until set; write_gate and
    order_gate hold every submit_response / submit_company_order call until set.
    """

    def __init__(self, events=None, companies=None):
        self.events: list[CalendarEvent] = list(events or [])
        self.companies: list[Company] = list(companies or [])
        self.fail_fetch = False
        self.fail_writes = False
        self.fetch_gates: list[asyncio.Event] = []
        self.write_gate: Optional[asyncio.Event] = None
        self.order_gate: Optional[asyncio.Event] = None
        self.fetch_calls: list[tuple] = []
        self.response_calls: list[tuple] = []
        self.order_calls: list[tuple] = []

    def gate_next_fetch(self) -> asyncio.Event:
        """Hold the next fetch_events call (after its snapshot) until the returned event is set."""
        gates = [asyncio.Event() for _ in range(len(self.fetch_calls) + 1)]
        for gate in gates[:-1]:
            gate.set()
        self.fetch_gates = gates
        return gates[-1]

    async def fetch_events(self, start, end, user_id):
        index = len(self.fetch_calls)
        self.fetch_calls.append((start, end))
        snapshot = list(self.events)
        if index < len(self.fetch_gates):
            await self.fetch_gates[index].wait()
        if self.fail_fetch:
            raise BackendError("events unavailable")
        return snapshot

    async def fetch_companies(self, user_id):
        return list(self.companies)

    async def submit_response(self, user_id, event_id, status, note=None):
        self.response_calls.append((event_id, ResponseStatus(status)))
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            raise BackendError("write rejected", retryable=False)
        return UserEventResponse(event_id=event_id, user_id=user_id, status=status, note=note,
                                 updated_at=datetime.now(timezone.utc))

    async def submit_company_order(self, user_id, company_id, new_index):
        self.order_calls.append((company_id, new_index))
        if self.order_gate is not None:
            await self.order_gate.wait()
        if self.fail_writes:
            raise BackendError("order rejected")
