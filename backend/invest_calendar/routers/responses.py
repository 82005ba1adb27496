"""RSVP API routes."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from invest_calendar.database import get_db
from invest_calendar.engine.types import UserEventResponse
from invest_calendar.schemas.response import ResponseUpsert
from invest_calendar.services import response_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.put("/", response_model=UserEventResponse)
def upsert_response(payload: ResponseUpsert, db: Session = Depends(get_db)):
    """Set the user's response to an event. Repeating the same request changes nothing."""
    response = response_service.upsert_response(
        db=db,
        user_id=payload.user_id,
        event_id=payload.event_id,
        response_status=payload.status,
        note=payload.note,
    )
    return response_service.to_domain(response)


@router.get("/", response_model=list[UserEventResponse])
def list_responses(user_id: str = Query(...), db: Session = Depends(get_db)):
    return [response_service.to_domain(r) for r in response_service.list_responses(db, user_id)]
