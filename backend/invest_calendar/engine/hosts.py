"""Host/attribution resolver.

Normalizes the three host shapes (single company, co-hosting companies,
non-company organizer) into one ResolvedHost used for display and grouping.
Resolution never raises: anything it cannot make sense of degrades to
UNKNOWN_HOST and is logged.
"""
import logging
from typing import Optional

from invest_calendar.engine.types import (
    CalendarEvent,
    CoHost,
    Company,
    EventHost,
    MultiCorpHost,
    NonCompanyHost,
    ResolvedHost,
    SingleCorpHost,
)
from invest_calendar.models.event import HostType

logger = logging.getLogger(__name__)

HOST_TYPE_LABELS = {
    HostType.single_corp: "Corporate",
    HostType.multi_corp: "Multi-Corporate",
    HostType.non_company: "Regulatory",
}

UNKNOWN_HOST = ResolvedHost(display_name="Unknown Host", is_unknown=True)


def host_type_label(host_type: Optional[HostType]) -> str:
    """Badge text for a host type; unknown hosts get an empty label."""
    if host_type is None:
        return ""
    return HOST_TYPE_LABELS[HostType(host_type)]


def primary_host(event: CalendarEvent) -> Optional[EventHost]:
    """The host record credited first on the event, if any."""
    return event.hosts[0] if event.hosts else None


def _from_company(company: Company, host_type: HostType = HostType.single_corp) -> ResolvedHost:
    return ResolvedHost(
        host_type=host_type,
        display_name=company.company_name,
        display_ticker=company.ticker_symbol,
        sector_label=company.gics_subsector or company.gics_sector,
        label=host_type_label(host_type),
    )


def _lookup_company(event: CalendarEvent, company_id: Optional[str]) -> Optional[Company]:
    if company_id is None:
        return None
    for company in event.companies:
        if company.id == company_id:
            return company
    return None


def _pick_primary(co_hosts: list[CoHost]) -> Optional[CoHost]:
    primaries = [c for c in co_hosts if c.is_primary]
    if len(primaries) == 1:
        return primaries[0]
    if not co_hosts:
        return None
    # Malformed feed: none or several flagged. First flagged (else first listed) wins.
    chosen = primaries[0] if primaries else co_hosts[0]
    logger.warning(
        "multi_corp host has %d primary co-hosts; using %s",
        len(primaries), chosen.ticker or chosen.company_id,
    )
    return chosen


def _resolve_single(event: CalendarEvent, host: SingleCorpHost) -> ResolvedHost:
    company = host.company or _lookup_company(event, host.company_id)
    if company is None:
        logger.warning("Event %s: single_corp host %s cannot be resolved", event.id, host.company_id)
        return UNKNOWN_HOST
    return _from_company(company)


def _co_host_ticker(event: CalendarEvent, co_host: CoHost) -> str:
    if co_host.ticker:
        return co_host.ticker
    known = _lookup_company(event, co_host.company_id)
    return known.ticker_symbol if known else ""


def _resolve_multi(event: CalendarEvent, host: MultiCorpHost) -> ResolvedHost:
    primary = _pick_primary(host.co_hosts)
    if primary is None:
        logger.warning("Event %s: multi_corp host has no co-hosts", event.id)
        return UNKNOWN_HOST

    known = _lookup_company(event, primary.company_id)
    name = primary.name or (known.company_name if known else "")
    ticker = primary.ticker or (known.ticker_symbol if known else "")
    sector = primary.sector or ((known.gics_subsector or known.gics_sector) if known else "")
    if not name and not ticker:
        logger.warning("Event %s: primary co-host carries no name or ticker", event.id)
        return UNKNOWN_HOST

    return ResolvedHost(
        host_type=HostType.multi_corp,
        display_name=name or ticker,
        display_ticker=ticker,
        sector_label=sector,
        co_host_tickers=tuple(_co_host_ticker(event, c) for c in host.co_hosts if c is not primary),
        label=host_type_label(HostType.multi_corp),
    )


def _resolve_non_company(event: CalendarEvent, host: NonCompanyHost) -> ResolvedHost:
    if not host.organization_name.strip():
        logger.warning("Event %s: non_company host has no organization name", event.id)
        return UNKNOWN_HOST
    return ResolvedHost(
        host_type=HostType.non_company,
        display_name=host.organization_name,
        sector_label=host.sector,
        label=host_type_label(HostType.non_company),
    )


def resolve_host(event: CalendarEvent) -> ResolvedHost:
    """Resolve the display host of an event.

    Falls back to the first participating company when the event has no host
    records at all, and to UNKNOWN_HOST when it has no companies either.
    """
    host = primary_host(event)
    if host is None:
        if event.companies:
            return _from_company(event.companies[0])
        return UNKNOWN_HOST

    if isinstance(host, SingleCorpHost):
        return _resolve_single(event, host)
    if isinstance(host, MultiCorpHost):
        return _resolve_multi(event, host)
    if isinstance(host, NonCompanyHost):
        return _resolve_non_company(event, host)

    logger.warning("Event %s: unsupported host record %r", event.id, host)
    return UNKNOWN_HOST


def hosting_company_ids(event: CalendarEvent) -> set[str]:
    """Ids of every company credited as (co-)host of the event."""
    ids: set[str] = set()
    for host in event.hosts:
        if isinstance(host, SingleCorpHost):
            company_id = host.company.id if host.company else host.company_id
            if company_id:
                ids.add(company_id)
        elif isinstance(host, MultiCorpHost):
            ids.update(c.company_id for c in host.co_hosts if c.company_id)
    return ids


def is_hosted_by(event: CalendarEvent, company_id: str) -> bool:
    return company_id in hosting_company_ids(event)


def is_attended_by(event: CalendarEvent, company_id: str) -> bool:
    """Company participates in the event without hosting it."""
    participates = any(c.id == company_id for c in event.companies)
    return participates and not is_hosted_by(event, company_id)
