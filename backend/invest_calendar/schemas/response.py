"""Pydantic schemas for RSVP responses."""
from typing import Optional

from pydantic import BaseModel

from invest_calendar.models.response import ResponseStatus


class ResponseUpsert(BaseModel):
    user_id: str
    event_id: str
    status: ResponseStatus
    note: Optional[str] = None
