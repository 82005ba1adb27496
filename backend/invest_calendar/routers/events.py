"""Event API routes — delegates to event_service."""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from invest_calendar.database import get_db
from invest_calendar.engine.types import CalendarEvent
from invest_calendar.schemas.event import EventCreate
from invest_calendar.services import event_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=CalendarEvent, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create an event with its companies and hosts."""
    event = event_service.create_event(db, payload)
    return event_service.to_domain(event)


@router.get("/", response_model=list[CalendarEvent])
def list_events(
    start: date = Query(..., description="First calendar date, inclusive"),
    end: date = Query(..., description="Last calendar date, inclusive"),
    user_id: Optional[str] = Query(None, description="Viewer; sets timezone and embeds their RSVP"),
    db: Session = Depends(get_db),
):
    """Events overlapping the date range, each with the viewer's response."""
    return event_service.list_events(db, start, end, user_id)


@router.get("/{event_id}", response_model=CalendarEvent)
def get_event(event_id: str, user_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Fetch a single event by ID."""
    return event_service.get_event(db, event_id, user_id)
