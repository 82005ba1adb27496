"""One-line location text from the physical/virtual detail payloads."""
from invest_calendar.engine.types import CalendarEvent
from invest_calendar.models.event import LocationType

PHYSICAL_FIELDS = ("venue", "address", "city", "state", "country")


def physical_text(details: dict) -> str:
    parts = [str(details[key]) for key in PHYSICAL_FIELDS if details.get(key)]
    return ", ".join(parts)


def virtual_text(details: dict) -> str:
    platform = details.get("platform")
    url = details.get("meeting_url")
    meeting_id = details.get("meeting_id")
    if platform and url:
        return f"{platform} - {url}"
    if platform and meeting_id:
        return f"{platform} (ID: {meeting_id})"
    return platform or url or ""


def location_text(event: CalendarEvent) -> str:
    """Display text for the event's location, never empty."""
    if event.location_type == LocationType.physical:
        return physical_text(event.location_details) or "Physical location details not available"
    if event.location_type == LocationType.virtual:
        return virtual_text(event.virtual_details) or "Virtual meeting details not available"
    physical = physical_text(event.location_details) or "Physical location"
    virtual = virtual_text(event.virtual_details) or "Virtual access"
    return f"{physical} / {virtual}"
