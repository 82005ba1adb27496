"""Event service — event ingestion, range queries and ORM → engine conversion.

Responsibilities:
- Reject events whose end precedes their start and host records that break
  their host_type shape (422 via the schemas, 404 for unknown companies here)
- Store timestamps in UTC; translate a user's calendar dates into UTC bounds
  with the user's IANA timezone
- Attach the requesting user's RSVP to every event in the feed
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz
from sqlalchemy.orm import Session, selectinload
from fastapi import HTTPException, status

from invest_calendar.config import settings
from invest_calendar.engine.types import (
    CalendarEvent,
    CoHost,
    MultiCorpHost,
    NonCompanyHost,
    SingleCorpHost,
)
from invest_calendar.models.company import Company
from invest_calendar.models.event import Event, EventCompany, EventHost, HostType
from invest_calendar.models.response import UserEventResponse
from invest_calendar.models.user import User
from invest_calendar.schemas.event import EventCreate
from invest_calendar.services import company_service, response_service

logger = logging.getLogger(__name__)


def _host_to_domain(host: EventHost):
    if host.host_type == HostType.single_corp:
        company = company_service.to_domain(host.host_company) if host.host_company else None
        return SingleCorpHost(company_id=host.host_company_id, company=company)
    if host.host_type == HostType.multi_corp:
        return MultiCorpHost(co_hosts=[CoHost.model_validate(c) for c in host.co_hosts or []])
    return NonCompanyHost(organization_name=host.organization_name or "", sector=host.sector or "")


def to_domain(event: Event, response: Optional[UserEventResponse] = None) -> CalendarEvent:
    """Convert an Event row (plus the viewer's response, if any) into the engine model."""
    return CalendarEvent(
        id=event.event_id,
        title=event.title,
        description=event.description,
        start_date=event.start_date,
        end_date=event.end_date,
        location_type=event.location_type,
        location_details=event.location_details,
        virtual_details=event.virtual_details,
        event_type=event.event_type,
        companies=[company_service.to_domain(link.company) for link in event.companies],
        hosts=[_host_to_domain(h) for h in event.hosts],
        user_response=response_service.to_domain(response) if response else None,
    )


def _require_companies(db: Session, company_ids: set[str]) -> None:
    if not company_ids:
        return
    found = {
        cid for (cid,) in db.query(Company.company_id).filter(Company.company_id.in_(company_ids)).all()
    }
    missing = sorted(company_ids - found)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown companies: {', '.join(missing)}",
        )


def create_event(db: Session, payload: EventCreate) -> Event:
    """Create an event with its participating companies and host records."""
    company_ids = list(dict.fromkeys(payload.company_ids))
    referenced = set(company_ids)
    for host in payload.hosts:
        if host.company_id:
            referenced.add(host.company_id)
        referenced.update(c.company_id for c in host.co_hosts if c.company_id)
    _require_companies(db, referenced)

    event = Event(
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        location_type=payload.location_type,
        location_details=payload.location_details,
        virtual_details=payload.virtual_details,
        event_type=payload.event_type,
    )
    event.companies = [
        EventCompany(company_id=cid, position=index) for index, cid in enumerate(company_ids)
    ]
    event.hosts = [
        EventHost(
            position=index,
            host_type=host.host_type,
            host_company_id=host.company_id if host.host_type == HostType.single_corp else None,
            co_hosts=[c.model_dump() for c in host.co_hosts] if host.host_type == HostType.multi_corp else None,
            organization_name=host.organization_name,
            sector=host.sector,
        )
        for index, host in enumerate(payload.hosts)
    ]
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(
        "Created event %s '%s' (%d companies, %d hosts)",
        event.event_id, event.title, len(company_ids), len(payload.hosts),
    )
    return event


def user_timezone(db: Session, user_id: Optional[str]) -> str:
    if user_id:
        user = db.query(User).filter(User.user_id == user_id).first()
        if user:
            return user.default_timezone
    return settings.DEFAULT_TIMEZONE


def utc_bounds(start: date, end: date, tz_name: str) -> tuple[datetime, datetime]:
    """[start 00:00, end+1 00:00) in the given timezone, expressed in UTC."""
    tz = pytz.timezone(tz_name)
    lower = tz.localize(datetime.combine(start, time.min)).astimezone(timezone.utc)
    upper = tz.localize(datetime.combine(end + timedelta(days=1), time.min)).astimezone(timezone.utc)
    return lower, upper


def _responses_for(db: Session, user_id: Optional[str], event_ids: list[str]) -> dict[str, UserEventResponse]:
    if not user_id or not event_ids:
        return {}
    rows = (
        db.query(UserEventResponse)
        .filter(UserEventResponse.user_id == user_id, UserEventResponse.event_id.in_(event_ids))
        .all()
    )
    return {row.event_id: row for row in rows}


def list_events(
    db: Session,
    start: date,
    end: date,
    user_id: Optional[str] = None,
    tz_name: Optional[str] = None,
) -> list[CalendarEvent]:
    """Active events overlapping the calendar dates start..end (inclusive).

    Dates are interpreted in tz_name, defaulting to the user's timezone.
    """
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not precede start")

    tz_name = tz_name or user_timezone(db, user_id)
    lower, upper = utc_bounds(start, end, tz_name)
    rows = (
        db.query(Event)
        .options(selectinload(Event.companies), selectinload(Event.hosts))
        .filter(Event.is_active.is_(True), Event.start_date < upper, Event.end_date >= lower)
        .order_by(Event.start_date, Event.event_id)
        .all()
    )
    responses = _responses_for(db, user_id, [row.event_id for row in rows])
    logger.debug("Range %s..%s (%s) matched %d events", start, end, tz_name, len(rows))
    return [to_domain(row, responses.get(row.event_id)) for row in rows]


def get_event(db: Session, event_id: str, user_id: Optional[str] = None) -> CalendarEvent:
    event = db.query(Event).filter(Event.event_id == event_id, Event.is_active.is_(True)).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return to_domain(event, _responses_for(db, user_id, [event_id]).get(event_id))
