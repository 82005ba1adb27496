"""UserEventResponse ORM model — one RSVP per (user, event)."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from invest_calendar.database import Base


class ResponseStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class UserEventResponse(Base):
    __tablename__ = "user_event_responses"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_user_event_response"),)

    response_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    status = Column(SAEnum(ResponseStatus), nullable=False, default=ResponseStatus.pending)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False)
