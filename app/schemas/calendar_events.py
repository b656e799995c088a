# app/schemas/calendar_events.py
"""
Typed payloads at the integration boundaries (Google Calendar, Zoom).

Provider responses are validated here so the rest of the code never
handles raw dicts.
"""
from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

from app.services.availability.intervals import to_minutes


class CalendarSyncStatus(str, Enum):
    OK = "ok"
    UNCONFIGURED = "unconfigured"   # no credentials / calendar ids
    UNAVAILABLE = "unavailable"     # auth, network or quota failure
    MALFORMED = "malformed"         # provider answered with data we could not parse


class BusyPeriod(BaseModel):
    """Busy window on a single day, business-local HH:MM"""
    start: str = Field(..., description="Busy from (HH:MM)")
    end: str = Field(..., description="Busy until (HH:MM), exclusive")

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, v: str) -> str:
        to_minutes(v)
        return v

    @model_validator(mode="after")
    def end_after_start(self) -> "BusyPeriod":
        if to_minutes(self.end) < to_minutes(self.start):
            raise ValueError("Busy period must not end before it starts")
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)


class CalendarBusyResult(BaseModel):
    """Busy periods for one date, tagged with integration health"""
    status: CalendarSyncStatus = Field(..., description="Integration health for this lookup")
    busy_periods: List[BusyPeriod] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Operator-facing failure detail")

    @property
    def configured(self) -> bool:
        return self.status == CalendarSyncStatus.OK

    @classmethod
    def degraded(cls, status: CalendarSyncStatus, error: Optional[str] = None) -> "CalendarBusyResult":
        return cls(status=status, busy_periods=[], error=error)


class GoogleEventTime(BaseModel):
    dateTime: Optional[datetime] = None
    date: Optional[str] = None  # all-day events
    timeZone: Optional[str] = None


class GoogleEvent(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    transparency: Optional[str] = None
    start: GoogleEventTime
    end: GoogleEventTime

    @property
    def is_all_day(self) -> bool:
        return self.start.dateTime is None or self.end.dateTime is None

    @property
    def blocks_time(self) -> bool:
        return self.status != "cancelled" and self.transparency != "transparent"


class GoogleEventList(BaseModel):
    items: List[GoogleEvent] = Field(default_factory=list)
    nextPageToken: Optional[str] = None


class MeetingRequest(BaseModel):
    """What the meeting provider needs to schedule a call"""
    topic: str = Field(..., description="Meeting title")
    start_time: datetime = Field(..., description="Absolute start instant")
    duration_minutes: int = Field(..., gt=0)
    timezone: str = Field(..., description="IANA zone shown to participants")
    guest_email: str
    guest_name: str

    @field_validator("start_time")
    @classmethod
    def must_be_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("start_time must be timezone-aware")
        return v


class MeetingDetails(BaseModel):
    """Provisioned meeting"""
    meeting_id: str
    join_url: str
    start_url: Optional[str] = None
    password: Optional[str] = None


class ZoomTokenResponse(BaseModel):
    access_token: str
    expires_in: int = 3600


class ZoomMeetingResponse(BaseModel):
    id: int | str
    join_url: str
    start_url: Optional[str] = None
    password: Optional[str] = None

    def to_details(self) -> MeetingDetails:
        return MeetingDetails(
            meeting_id=str(self.id),
            join_url=self.join_url,
            start_url=self.start_url,
            password=self.password or None,
        )
