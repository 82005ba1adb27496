"""Domain types for the calendar engine.

These are plain pydantic models, independent of the ORM. The API layer converts
rows into them (see services/event_service.py) and the HTTP client parses the
JSON feed straight into them.
"""
from __future__ import annotations

import enum
from datetime import date, datetime, timedelta, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from invest_calendar.models.event import EventType, HostType, LocationType
from invest_calendar.models.response import ResponseStatus

ALL = "all"


class ViewMode(str, enum.Enum):
    week = "week"
    month = "month"


class Scope(str, enum.Enum):
    all_events = "all_events"
    my_events = "my_events"


class Company(BaseModel):
    model_config = {"frozen": True}

    id: str
    ticker_symbol: str
    company_name: str
    gics_sector: str = ""
    gics_subsector: str = ""
    display_order: int = 0


# ── Hosts (tagged union on host_type) ──────────────────────────────


class CoHost(BaseModel):
    company_id: Optional[str] = None
    ticker: str = ""
    name: str = ""
    sector: str = ""
    is_primary: bool = False


class SingleCorpHost(BaseModel):
    host_type: Literal["single_corp"] = "single_corp"
    company_id: Optional[str] = None
    company: Optional[Company] = None


class MultiCorpHost(BaseModel):
    host_type: Literal["multi_corp"] = "multi_corp"
    co_hosts: list[CoHost] = Field(default_factory=list)


class NonCompanyHost(BaseModel):
    host_type: Literal["non_company"] = "non_company"
    organization_name: str = ""
    sector: str = ""


EventHost = Annotated[
    Union[SingleCorpHost, MultiCorpHost, NonCompanyHost],
    Field(discriminator="host_type"),
]


class ResolvedHost(BaseModel):
    """Uniform display/grouping view of whoever hosts an event."""

    model_config = {"frozen": True}

    host_type: Optional[HostType] = None
    display_name: str
    display_ticker: str = ""
    sector_label: str = ""
    co_host_tickers: tuple[str, ...] = ()
    label: str = ""
    is_unknown: bool = False


# ── Events & responses ─────────────────────────────────────────────


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken as UTC (SQLite drops tzinfo); aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UserEventResponse(BaseModel):
    model_config = {"frozen": True}

    event_id: str
    user_id: str
    status: ResponseStatus = ResponseStatus.pending
    updated_at: Optional[datetime] = None
    note: Optional[str] = None


class CalendarEvent(BaseModel):
    model_config = {"frozen": True}

    id: str
    title: str
    description: str = ""
    start_date: datetime
    end_date: datetime
    location_type: LocationType = LocationType.virtual
    location_details: dict = Field(default_factory=dict)
    virtual_details: dict = Field(default_factory=dict)
    event_type: EventType = EventType.standard
    companies: list[Company] = Field(default_factory=list)
    hosts: list[EventHost] = Field(default_factory=list)
    # The requesting user's RSVP as delivered by the feed, if any.
    user_response: Optional[UserEventResponse] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or ""

    @field_validator("location_details", "virtual_details", mode="before")
    @classmethod
    def _none_to_dict(cls, value):
        return value or {}

    @model_validator(mode="after")
    def _check_span(self) -> "CalendarEvent":
        if self.end_date < self.start_date:
            raise ValueError(f"event {self.id}: end_date precedes start_date")
        return self


# ── View state ─────────────────────────────────────────────────────


class DateRange(BaseModel):
    """Inclusive range of calendar dates."""

    model_config = {"frozen": True}

    start: date
    end: date

    def days(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range((self.end - self.start).days + 1)]

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


class CalendarViewState(BaseModel):
    """Everything that determines what the calendar currently shows.

    Immutable; CalendarSession swaps in a new instance on every change.
    """

    model_config = {"frozen": True}

    anchor_date: date
    view_mode: ViewMode = ViewMode.week
    search_text: str = ""
    event_type_filter: Union[Literal["all"], EventType] = ALL
    location_type_filter: Union[Literal["all"], LocationType] = ALL
    rsvp_filter: Union[Literal["all"], ResponseStatus] = ALL
    scope: Scope = Scope.all_events
