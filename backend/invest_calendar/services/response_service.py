"""RSVP persistence — at most one response per (user, event), idempotent upserts."""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session
from fastapi import HTTPException

from invest_calendar.engine.types import UserEventResponse as ResponseView
from invest_calendar.models.event import Event
from invest_calendar.models.response import ResponseStatus, UserEventResponse
from invest_calendar.models.user import User

logger = logging.getLogger(__name__)


def to_domain(response: UserEventResponse) -> ResponseView:
    return ResponseView(
        event_id=response.event_id,
        user_id=response.user_id,
        status=response.status,
        updated_at=response.updated_at,
        note=response.note,
    )


def upsert_response(
    db: Session,
    user_id: str,
    event_id: str,
    response_status: ResponseStatus,
    note: Optional[str] = None,
) -> UserEventResponse:
    """Create or update the user's response. Re-sending the current status is a no-op."""
    if not db.query(User).filter(User.user_id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    if not db.query(Event).filter(Event.event_id == event_id).first():
        raise HTTPException(status_code=404, detail="Event not found")

    response_status = ResponseStatus(response_status)
    existing = (
        db.query(UserEventResponse)
        .filter(UserEventResponse.user_id == user_id, UserEventResponse.event_id == event_id)
        .first()
    )

    if existing and existing.status == response_status and note in (None, existing.note):
        logger.info("User %s already %s event %s; nothing to change", user_id, response_status.value, event_id)
        return existing

    now = datetime.now(timezone.utc)
    if existing:
        existing.status = response_status
        if note is not None:
            existing.note = note
        existing.updated_at = now
        response = existing
    else:
        response = UserEventResponse(
            user_id=user_id,
            event_id=event_id,
            status=response_status,
            note=note,
            updated_at=now,
        )
        db.add(response)

    db.commit()
    db.refresh(response)
    logger.info("User %s responded '%s' to event %s", user_id, response_status.value, event_id)
    return response


def list_responses(db: Session, user_id: str) -> list[UserEventResponse]:
    return (
        db.query(UserEventResponse)
        .filter(UserEventResponse.user_id == user_id)
        .order_by(UserEventResponse.updated_at.desc())
        .all()
    )
