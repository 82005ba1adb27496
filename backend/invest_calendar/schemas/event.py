"""Pydantic schemas for Events.

Events are returned as engine CalendarEvent models so the JSON feed and the
engine share one shape; only the write side has its own schemas.
"""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from invest_calendar.engine.types import CoHost, as_utc
from invest_calendar.models.event import EventType, HostType, LocationType


class EventHostIn(BaseModel):
    host_type: HostType
    company_id: Optional[str] = None
    co_hosts: list[CoHost] = []
    organization_name: Optional[str] = None
    sector: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> EventHostIn:
        if self.host_type == HostType.single_corp and not self.company_id:
            raise ValueError("single_corp host requires company_id")
        if self.host_type == HostType.multi_corp:
            primaries = sum(1 for c in self.co_hosts if c.is_primary)
            if primaries != 1:
                raise ValueError(f"multi_corp host needs exactly one primary co-host, got {primaries}")
        if self.host_type == HostType.non_company and not (self.organization_name or "").strip():
            raise ValueError("non_company host requires organization_name")
        return self


class EventCreate(BaseModel):
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    location_type: LocationType = LocationType.virtual
    location_details: Optional[dict] = None
    virtual_details: Optional[dict] = None
    event_type: EventType = EventType.standard
    company_ids: list[str] = []
    hosts: list[EventHostIn] = []

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_span(self) -> EventCreate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not precede start_date")
        return self
