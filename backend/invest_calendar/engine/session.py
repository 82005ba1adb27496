"""CalendarSession — one user's calendar view, driven by discrete triggers.

Owns the CalendarViewState, the event cache, the RSVP state machine and the
company order store. Everything runs on one asyncio loop; fetches are tagged
with a request token so only the newest one is ever applied.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from invest_calendar.config import settings
from invest_calendar.engine.backend import BackendError, CalendarBackend
from invest_calendar.engine.company_order import CompanyOrderStore
from invest_calendar.engine.filters import (
    CompanyViewFilter,
    apply_filters,
    filter_company_events,
    rsvp_counts,
)
from invest_calendar.engine.grid import (
    CalendarGrid,
    assemble_grid,
    day_summaries,
    order_cell,
    shift_anchor,
    visible_range,
)
from invest_calendar.engine.rsvp import ResponseWrite, RsvpStateMachine, WriteState
from invest_calendar.engine.types import ALL, CalendarEvent, CalendarViewState, DateRange, ViewMode
from invest_calendar.models.response import ResponseStatus

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    """Non-blocking banner shown after a failed fetch or write."""

    kind: str  # fetch_failed | rsvp_failed | reorder_failed
    message: str
    retryable: bool = False


class CalendarSession:
    def __init__(
        self,
        backend: CalendarBackend,
        user_id: str,
        anchor: Optional[date] = None,
        view_mode: Optional[ViewMode] = None,
        tz_name: Optional[str] = None,
    ):
        self._backend = backend
        self.user_id = user_id
        self.tz_name = tz_name or settings.DEFAULT_TIMEZONE
        self._state = CalendarViewState(
            anchor_date=anchor or date.today(),
            view_mode=view_mode or settings.DEFAULT_VIEW_MODE,
        )
        self._events: list[CalendarEvent] = []
        self._request_token = 0
        self._closed = False
        self.loading = False
        self.notice: Optional[Notice] = None
        self.badges: dict[str, int] = {}
        self.day_counts: dict[date, dict[str, int]] = {}
        self.rsvp = RsvpStateMachine(backend, user_id, on_change=self._recompute)
        self.companies = CompanyOrderStore(backend, user_id)

    # ── State ──────────────────────────────────────────────────────

    @property
    def state(self) -> CalendarViewState:
        return self._state

    @property
    def date_range(self) -> DateRange:
        return visible_range(self._state.anchor_date, self._state.view_mode)

    @property
    def events(self) -> list[CalendarEvent]:
        return list(self._events)

    def _replace_state(self, **changes: Any) -> CalendarViewState:
        self._state = CalendarViewState.model_validate({**self._state.model_dump(), **changes})
        return self._state

    def _is_current(self, token: int) -> bool:
        return not self._closed and token == self._request_token

    # ── Fetching ───────────────────────────────────────────────────

    async def refresh(self) -> bool:
        """Fetch events and companies for the visible range.

        Returns True if the result was applied. A result is dropped when a newer
        refresh started meanwhile or the session was closed. On failure the
        previous data stays visible and a retryable notice is set.
        """
        self._request_token += 1
        token = self._request_token
        date_range = self.date_range
        rsvp_epoch = self.rsvp.epoch
        self.loading = True

        try:
            events, companies = await asyncio.gather(
                self._backend.fetch_events(date_range.start, date_range.end, self.user_id),
                self._backend.fetch_companies(self.user_id),
            )
        except BackendError as exc:
            if self._is_current(token):
                self.loading = False
                self.notice = Notice("fetch_failed", str(exc), retryable=exc.retryable)
                logger.warning("Calendar fetch %s..%s failed: %s", date_range.start, date_range.end, exc)
            return False

        if not self._is_current(token):
            logger.debug("Discarding stale calendar fetch #%d (current #%d)", token, self._request_token)
            return False

        self.loading = False
        self.notice = None
        self._events = list(events)
        self.companies.load(companies)
        self.rsvp.load(
            (e.user_response for e in self._events if e.user_response is not None),
            since=rsvp_epoch,
        )
        logger.info("Loaded %d events and %d companies for %s..%s",
                    len(self._events), len(companies), date_range.start, date_range.end)
        return True

    async def retry(self) -> bool:
        return await self.refresh()

    def close(self) -> None:
        """Leave the calendar view; in-flight fetches will not be applied."""
        self._closed = True

    # ── Navigation & filters ───────────────────────────────────────

    async def go_to(self, anchor: date) -> bool:
        previous = self.date_range
        self._replace_state(anchor_date=anchor)
        if self.date_range == previous:
            self._recompute()
            return True
        return await self.refresh()

    async def next(self) -> bool:
        return await self.go_to(shift_anchor(self._state.anchor_date, self._state.view_mode, 1))

    async def previous(self) -> bool:
        return await self.go_to(shift_anchor(self._state.anchor_date, self._state.view_mode, -1))

    async def set_view_mode(self, view_mode: ViewMode) -> bool:
        self._replace_state(view_mode=view_mode)
        return await self.refresh()

    def set_filters(self, **changes: Any) -> CalendarViewState:
        """Update search/type/location/RSVP/scope filters; filtering is local."""
        state = self._replace_state(**changes)
        self._recompute()
        return state

    # ── Derived views ──────────────────────────────────────────────

    def visible_events(self) -> list[CalendarEvent]:
        """Filtered events for list/search views, zero-company events included."""
        filtered = apply_filters(self._events, self._state, self.rsvp.status, self.rsvp.has_response)
        return order_cell(filtered)

    def grid(self) -> CalendarGrid:
        return assemble_grid(self.visible_events(), self.companies.ordered(), self.date_range, self.tz_name)

    def company_view(self, company_id: str, mode: CompanyViewFilter = CompanyViewFilter.all) -> list[CalendarEvent]:
        return filter_company_events(self._events, company_id, mode)

    def _recompute(self) -> None:
        # Badges count the events passing every filter except the RSVP one.
        unfiltered_rsvp = self._state.model_copy(update={"rsvp_filter": ALL})
        candidates = apply_filters(self._events, unfiltered_rsvp, self.rsvp.status, self.rsvp.has_response)
        self.badges = rsvp_counts(candidates, self.rsvp.status)
        self.day_counts = day_summaries(self._events, self.rsvp.status, self.date_range, self.tz_name)

    # ── User actions ───────────────────────────────────────────────

    async def set_response(
        self,
        event_id: str,
        status: ResponseStatus,
        note: Optional[str] = None,
    ) -> ResponseWrite:
        write = await self.rsvp.set_response(event_id, status, note)
        if write.state == WriteState.rolled_back:
            self.notice = Notice("rsvp_failed", write.error or "Could not save your response")
        return write

    async def reorder_company(self, company_id: str, new_index: int) -> bool:
        ok = await self.companies.reorder(company_id, new_index)
        if not ok:
            self.notice = Notice("reorder_failed", self.companies.last_error or "Could not save company order")
        return ok
