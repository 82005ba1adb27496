"""Filter pipeline — pure predicate conjunction over an event set.

Each active filter dimension contributes one side-effect-free predicate, so the
result does not depend on the order predicates are applied in, and applying
the same set twice changes nothing.
"""
import enum
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from invest_calendar.engine.hosts import is_attended_by, is_hosted_by
from invest_calendar.engine.types import ALL, CalendarEvent, CalendarViewState, Scope
from invest_calendar.models.event import EventType, HostType, LocationType
from invest_calendar.models.response import ResponseStatus

Predicate = Callable[[CalendarEvent], bool]
StatusLookup = Callable[[str], ResponseStatus]
RecordLookup = Callable[[str], bool]


def matches_search(event: CalendarEvent, text: str) -> bool:
    """Case-insensitive substring match on title, description, company names and tickers."""
    if not text.strip():
        return True
    needle = text.casefold()
    haystacks = [event.title, event.description]
    for company in event.companies:
        haystacks.append(company.company_name)
        haystacks.append(company.ticker_symbol)
    return any(needle in (h or "").casefold() for h in haystacks)


def search_predicate(text: str) -> Predicate:
    return lambda event: matches_search(event, text)


def event_type_predicate(event_type: EventType) -> Predicate:
    wanted = EventType(event_type)
    return lambda event: event.event_type == wanted


def location_type_predicate(location_type: LocationType) -> Predicate:
    wanted = LocationType(location_type)
    return lambda event: event.location_type == wanted


def rsvp_predicate(status: ResponseStatus, status_of: StatusLookup) -> Predicate:
    """Exact match on the resolved status; events without a record count as pending."""
    wanted = ResponseStatus(status)
    return lambda event: status_of(event.id) == wanted


def my_events_predicate(has_response: RecordLookup) -> Predicate:
    """Only events the user has a response record for, whatever its status."""
    return lambda event: has_response(event.id)


def build_predicates(
    state: CalendarViewState,
    status_of: StatusLookup,
    has_response: RecordLookup,
) -> list[Predicate]:
    """Predicates for every active filter in the view state; "all" contributes none."""
    predicates: list[Predicate] = []
    if state.search_text.strip():
        predicates.append(search_predicate(state.search_text))
    if state.event_type_filter != ALL:
        predicates.append(event_type_predicate(state.event_type_filter))
    if state.location_type_filter != ALL:
        predicates.append(location_type_predicate(state.location_type_filter))
    if state.rsvp_filter != ALL:
        predicates.append(rsvp_predicate(state.rsvp_filter, status_of))
    if state.scope == Scope.my_events:
        predicates.append(my_events_predicate(has_response))
    return predicates


def apply_predicates(events: Iterable[CalendarEvent], predicates: Iterable[Predicate]) -> list[CalendarEvent]:
    checks = list(predicates)
    return [event for event in events if all(check(event) for check in checks)]


def apply_filters(
    events: Iterable[CalendarEvent],
    state: CalendarViewState,
    status_of: StatusLookup,
    has_response: RecordLookup,
) -> list[CalendarEvent]:
    return apply_predicates(events, build_predicates(state, status_of, has_response))


def rsvp_counts(events: Iterable[CalendarEvent], status_of: StatusLookup) -> dict[str, int]:
    """Badge counts per RSVP status, recomputed from the given statuses."""
    counts = {ALL: 0, **{s.value: 0 for s in ResponseStatus}}
    for event in events:
        counts[ALL] += 1
        counts[ResponseStatus(status_of(event.id)).value] += 1
    return counts


# ── Single-company view ────────────────────────────────────────────


class CompanyViewFilter(str, enum.Enum):
    all = "all"
    hosted = "hosted"
    attended = "attended"
    single_corp = "single_corp"
    multi_corp = "multi_corp"
    non_company = "non_company"
    upcoming = "upcoming"
    past = "past"


def _has_host_type(event: CalendarEvent, host_type: HostType) -> bool:
    return any(h.host_type == host_type.value for h in event.hosts)


def filter_company_events(
    events: Iterable[CalendarEvent],
    company_id: str,
    mode: CompanyViewFilter = CompanyViewFilter.all,
    now: Optional[datetime] = None,
) -> list[CalendarEvent]:
    """Events involving one company, narrowed by the company-view mode, sorted by start."""
    now = now or datetime.now(timezone.utc)
    mode = CompanyViewFilter(mode)
    company_events = [e for e in events if any(c.id == company_id for c in e.companies)]

    if mode == CompanyViewFilter.hosted:
        selected = [e for e in company_events if is_hosted_by(e, company_id)]
    elif mode == CompanyViewFilter.attended:
        selected = [e for e in company_events if is_attended_by(e, company_id)]
    elif mode in (CompanyViewFilter.single_corp, CompanyViewFilter.multi_corp, CompanyViewFilter.non_company):
        selected = [e for e in company_events if _has_host_type(e, HostType(mode.value))]
    elif mode == CompanyViewFilter.upcoming:
        selected = [e for e in company_events if e.start_date > now]
    elif mode == CompanyViewFilter.past:
        selected = [e for e in company_events if e.start_date <= now]
    else:
        selected = company_events

    return sorted(selected, key=lambda e: (e.start_date, e.id))
