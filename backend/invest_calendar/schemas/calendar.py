"""Pydantic schemas for the assembled calendar grid."""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from invest_calendar.engine.types import CalendarViewState, Company, ResolvedHost
from invest_calendar.models.event import EventType, LocationType
from invest_calendar.models.response import ResponseStatus


class GridEventOut(BaseModel):
    id: str
    title: str
    start_date: datetime
    end_date: datetime
    event_type: EventType
    location_type: LocationType
    location_text: str
    host: ResolvedHost
    company_tickers: list[str]
    rsvp_status: ResponseStatus
    color_code: str


class DayColumnOut(BaseModel):
    date: date
    day_name: str
    label: str


class GridRowOut(BaseModel):
    company: Company
    event_count: int
    cells: list[list[GridEventOut]]


class CalendarGridOut(BaseModel):
    state: CalendarViewState
    range_start: date
    range_end: date
    week_number: int
    year: int
    month: str
    columns: list[DayColumnOut]
    rows: list[GridRowOut]
    unplaced: list[GridEventOut]
    badges: dict[str, int]
    day_counts: Optional[dict[date, dict[str, int]]] = None
