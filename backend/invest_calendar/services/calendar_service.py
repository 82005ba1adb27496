"""Calendar service — runs the grid engine server-side for one user's view."""
import logging

from sqlalchemy.orm import Session
from fastapi import HTTPException

from invest_calendar.engine.filters import apply_filters, rsvp_counts
from invest_calendar.engine.grid import (
    assemble_grid,
    company_event_counts,
    day_columns,
    day_summaries,
    rsvp_color,
    visible_range,
    week_info,
)
from invest_calendar.engine.hosts import resolve_host
from invest_calendar.engine.locations import location_text
from invest_calendar.engine.types import ALL, CalendarEvent, CalendarViewState
from invest_calendar.models.response import ResponseStatus
from invest_calendar.models.user import User
from invest_calendar.schemas.calendar import CalendarGridOut, DayColumnOut, GridEventOut, GridRowOut
from invest_calendar.services import company_service, event_service

logger = logging.getLogger(__name__)


def _status_lookup(events: list[CalendarEvent]):
    statuses = {e.id: e.user_response.status for e in events if e.user_response is not None}

    def status_of(event_id: str) -> ResponseStatus:
        return statuses.get(event_id, ResponseStatus.pending)

    return status_of, statuses.__contains__


def _event_out(event: CalendarEvent, status: ResponseStatus) -> GridEventOut:
    return GridEventOut(
        id=event.id,
        title=event.title,
        start_date=event.start_date,
        end_date=event.end_date,
        event_type=event.event_type,
        location_type=event.location_type,
        location_text=location_text(event),
        host=resolve_host(event),
        company_tickers=[c.ticker_symbol for c in event.companies],
        rsvp_status=status,
        color_code=rsvp_color(status),
    )


def build_grid(db: Session, user_id: str, state: CalendarViewState, include_day_counts: bool = False) -> CalendarGridOut:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    tz_name = user.default_timezone
    date_range = visible_range(state.anchor_date, state.view_mode)
    events = event_service.list_events(db, date_range.start, date_range.end, user_id, tz_name)
    status_of, has_response = _status_lookup(events)

    filtered = apply_filters(events, state, status_of, has_response)
    badge_base = apply_filters(events, state.model_copy(update={"rsvp_filter": ALL}), status_of, has_response)
    companies = company_service.ordered_companies(db, user_id)
    grid = assemble_grid(filtered, companies, date_range, tz_name)
    counts = company_event_counts(filtered, companies)

    rows = [
        GridRowOut(
            company=company,
            event_count=counts[company.id],
            cells=[[_event_out(e, status_of(e.id)) for e in cell] for cell in cells],
        )
        for company, cells in grid.rows()
    ]
    info = week_info(state.anchor_date)
    logger.info(
        "Grid for user %s %s..%s: %d of %d events, %d placements",
        user_id, date_range.start, date_range.end, len(filtered), len(events), grid.placement_count(),
    )
    return CalendarGridOut(
        state=state,
        range_start=date_range.start,
        range_end=date_range.end,
        week_number=info["week_number"],
        year=info["year"],
        month=info["month"],
        columns=[DayColumnOut(**column) for column in day_columns(date_range)],
        rows=rows,
        unplaced=[_event_out(e, status_of(e.id)) for e in grid.unplaced],
        badges=rsvp_counts(badge_base, status_of),
        day_counts=day_summaries(events, status_of, date_range, tz_name) if include_day_counts else None,
    )
