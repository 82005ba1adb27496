"""Event, EventCompany and EventHost ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, Text, Integer, DateTime, Boolean, ForeignKey, Index, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from invest_calendar.database import Base


class EventType(str, enum.Enum):
    standard = "standard"
    catalyst = "catalyst"


class LocationType(str, enum.Enum):
    physical = "physical"
    virtual = "virtual"
    hybrid = "hybrid"


class HostType(str, enum.Enum):
    single_corp = "single_corp"
    multi_corp = "multi_corp"
    non_company = "non_company"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (Index("ix_events_start_end", "start_date", "end_date"),)

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    location_type = Column(SAEnum(LocationType), nullable=False, default=LocationType.virtual)
    location_details = Column(JSON, nullable=True)
    virtual_details = Column(JSON, nullable=True)
    event_type = Column(SAEnum(EventType), nullable=False, default=EventType.standard)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    companies = relationship("EventCompany", back_populates="event", cascade="all, delete-orphan",
                             order_by="EventCompany.position")
    hosts = relationship("EventHost", back_populates="event", cascade="all, delete-orphan",
                         order_by="EventHost.position")


class EventCompany(Base):
    """Participating company of an event; position keeps the feed order."""

    __tablename__ = "event_companies"

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    company_id = Column(String(36), ForeignKey("companies.company_id"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    event = relationship("Event", back_populates="companies")
    company = relationship("Company")


class EventHost(Base):
    """Host record. Only the columns matching host_type are populated.

    single_corp: host_company_id
    multi_corp: co_hosts (list of {company_id, ticker, name, sector, is_primary})
    non_company: organization_name, sector
    """

    __tablename__ = "event_hosts"

    host_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    host_type = Column(SAEnum(HostType), nullable=False)
    host_company_id = Column(String(36), ForeignKey("companies.company_id"), nullable=True)
    co_hosts = Column(JSON, nullable=True)
    organization_name = Column(String(255), nullable=True)
    sector = Column(String(100), nullable=True)

    event = relationship("Event", back_populates="hosts")
    host_company = relationship("Company")
