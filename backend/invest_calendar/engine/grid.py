"""Grid assembler — visible date ranges and (company, date) cell placement.

An event lands in the cell of every participating company for every calendar
date its [start, end] span touches. Dates are taken in the viewer's timezone.
"""
import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, Iterator

import pytz
from pydantic import ValidationError

from invest_calendar.engine.types import CalendarEvent, Company, DateRange, ViewMode
from invest_calendar.models.response import ResponseStatus

logger = logging.getLogger(__name__)

MONTH_GRID_DAYS = 42  # 6 rows x 7 weekdays
DAY_NAMES = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]

RSVP_COLORS = {
    ResponseStatus.accepted: "green",
    ResponseStatus.declined: "yellow",
    ResponseStatus.pending: "grey",
}


def rsvp_color(status: ResponseStatus) -> str:
    return RSVP_COLORS[ResponseStatus(status)]


# ── Date ranges ────────────────────────────────────────────────────


def visible_range(anchor: date, view_mode: ViewMode) -> DateRange:
    """Dates shown for the anchor in the given view mode.

    week: the ISO week (Monday..Sunday) containing the anchor.
    month: 42 days starting on the Monday on or before the 1st of the month.
    """
    if ViewMode(view_mode) == ViewMode.week:
        start = anchor - timedelta(days=anchor.weekday())
        return DateRange(start=start, end=start + timedelta(days=6))

    first = anchor.replace(day=1)
    start = first - timedelta(days=first.weekday())
    return DateRange(start=start, end=start + timedelta(days=MONTH_GRID_DAYS - 1))


def shift_anchor(anchor: date, view_mode: ViewMode, steps: int = 1) -> date:
    """Move the anchor by whole weeks or months (day clamped to month length)."""
    if ViewMode(view_mode) == ViewMode.week:
        return anchor + timedelta(weeks=steps)

    month_index = anchor.year * 12 + (anchor.month - 1) + steps
    year, month = divmod(month_index, 12)
    month += 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def week_info(anchor: date) -> dict[str, Any]:
    iso_year, iso_week, _ = anchor.isocalendar()
    return {"week_number": iso_week, "year": iso_year, "month": anchor.strftime("%b")}


def day_columns(date_range: DateRange) -> list[dict[str, Any]]:
    columns = []
    for day in date_range.days():
        name = DAY_NAMES[day.weekday()]
        columns.append({"date": day, "day_name": name, "label": f"{name} {day.day}"})
    return columns


# ── Event dates & ingestion ────────────────────────────────────────


def local_date(moment: datetime, tz_name: str) -> date:
    return moment.astimezone(pytz.timezone(tz_name)).date()


def event_span(event: CalendarEvent, tz_name: str) -> tuple[date, date]:
    return local_date(event.start_date, tz_name), local_date(event.end_date, tz_name)


def event_dates(event: CalendarEvent, tz_name: str = "UTC") -> list[date]:
    """Every calendar date the event touches, inclusive."""
    first, last = event_span(event, tz_name)
    if last < first:
        logger.warning("Event %s ends before it starts; no dates", event.id)
        return []
    return DateRange(start=first, end=last).days()


def ingest_events(records: Iterable[Any]) -> tuple[list[CalendarEvent], list[Any]]:
    """Validate raw event records. Returns (accepted, rejected).

    Invalid records (including end before start) are logged and dropped, never
    reordered or repaired.
    """
    accepted: list[CalendarEvent] = []
    rejected: list[Any] = []
    for record in records:
        if isinstance(record, CalendarEvent):
            accepted.append(record)
            continue
        try:
            accepted.append(CalendarEvent.model_validate(record))
        except ValidationError as exc:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning("Rejected event %s at ingestion: %s", record_id, exc.errors()[0]["msg"])
            rejected.append(record)
    return accepted, rejected


# ── Ordering ───────────────────────────────────────────────────────


def order_companies(companies: Iterable[Company]) -> list[Company]:
    return sorted(companies, key=lambda c: (c.display_order, c.id))


def order_cell(events: Iterable[CalendarEvent]) -> list[CalendarEvent]:
    return sorted(events, key=lambda e: (e.start_date, e.id))


# ── Assembly ───────────────────────────────────────────────────────


@dataclass
class CalendarGrid:
    date_range: DateRange
    companies: list[Company]
    cells: dict[tuple[str, date], list[CalendarEvent]] = field(default_factory=dict)
    # Events with no participating company: no row, still listed elsewhere.
    unplaced: list[CalendarEvent] = field(default_factory=list)

    def cell(self, company_id: str, day: date) -> list[CalendarEvent]:
        return self.cells.get((company_id, day), [])

    def rows(self) -> Iterator[tuple[Company, list[list[CalendarEvent]]]]:
        days = self.date_range.days()
        for company in self.companies:
            yield company, [self.cell(company.id, day) for day in days]

    def placement_count(self) -> int:
        return sum(len(events) for events in self.cells.values())


def assemble_grid(
    events: Iterable[CalendarEvent],
    companies: Iterable[Company],
    date_range: DateRange,
    tz_name: str = "UTC",
) -> CalendarGrid:
    rows = order_companies(companies)
    row_ids = {c.id for c in rows}
    cells: dict[tuple[str, date], list[CalendarEvent]] = defaultdict(list)
    unplaced: list[CalendarEvent] = []

    for event in events:
        if not event.companies:
            unplaced.append(event)
            continue

        first, last = event_span(event, tz_name)
        if last < first:
            logger.warning("Skipping event %s: ends before it starts", event.id)
            continue
        first, last = max(first, date_range.start), min(last, date_range.end)
        if last < first:
            continue
        days = DateRange(start=first, end=last).days()

        for company_id in dict.fromkeys(c.id for c in event.companies):
            if company_id not in row_ids:
                logger.debug("Event %s: company %s has no row in this view", event.id, company_id)
                continue
            for day in days:
                cells[(company_id, day)].append(event)

    ordered = {key: order_cell(value) for key, value in cells.items()}
    return CalendarGrid(date_range=date_range, companies=rows, cells=ordered, unplaced=unplaced)


# ── Aggregates ─────────────────────────────────────────────────────


def day_summaries(
    events: Iterable[CalendarEvent],
    status_of: Callable[[str], ResponseStatus],
    date_range: DateRange,
    tz_name: str = "UTC",
) -> dict[date, dict[str, int]]:
    """Per-day RSVP counts for the mini calendar, rebuilt from scratch each call."""
    summary = {day: {s.value: 0 for s in ResponseStatus} for day in date_range.days()}
    for event in events:
        status = ResponseStatus(status_of(event.id)).value
        for day in event_dates(event, tz_name):
            if day in summary:
                summary[day][status] += 1
    return summary


def company_event_counts(events: Iterable[CalendarEvent], companies: Iterable[Company]) -> dict[str, int]:
    counts = {c.id: 0 for c in companies}
    for event in events:
        for company_id in {c.id for c in event.companies}:
            if company_id in counts:
                counts[company_id] += 1
    return counts
