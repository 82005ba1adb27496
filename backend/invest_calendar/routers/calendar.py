"""Calendar grid API route."""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from invest_calendar.config import settings
from invest_calendar.database import get_db
from invest_calendar.engine.types import ALL, CalendarViewState, Scope
from invest_calendar.schemas.calendar import CalendarGridOut
from invest_calendar.services import calendar_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/grid", response_model=CalendarGridOut)
def get_grid(
    user_id: str = Query(...),
    anchor: Optional[date] = Query(None, description="Any date inside the period to show"),
    view_mode: Optional[str] = Query(None, description="week | month"),
    search: str = Query(""),
    event_type: str = Query(ALL),
    location_type: str = Query(ALL),
    rsvp: str = Query(ALL),
    scope: str = Query(Scope.all_events.value),
    include_day_counts: bool = Query(False),
    db: Session = Depends(get_db),
):
    """Company x date grid for the user, with filters applied."""
    try:
        state = CalendarViewState(
            anchor_date=anchor or date.today(),
            view_mode=view_mode or settings.DEFAULT_VIEW_MODE,
            search_text=search,
            event_type_filter=event_type,
            location_type_filter=location_type,
            rsvp_filter=rsvp,
            scope=scope,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()],
        )
    return calendar_service.build_grid(db, user_id, state, include_day_counts)
