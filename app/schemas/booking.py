# app/schemas/booking.py
"""Request / response models for the public booking API"""
from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional, List
from datetime import date, datetime, time
from uuid import UUID

from app.schemas.calendar_events import CalendarSyncStatus
from app.services.availability.intervals import to_time


class AvailabilityResponse(BaseModel):
    """Bookable slots for one date"""
    date: date
    timezone: str = Field(..., description="Business timezone the slots are expressed in")
    slots: List[str] = Field(default_factory=list, description="Ascending HH:MM start times")
    configured: bool = Field(..., description="Whether the external calendar was consulted")
    calendar_status: CalendarSyncStatus


class DateAvailabilityResponse(BaseModel):
    date: date
    available: bool


class BookingRequest(BaseModel):
    """Guest booking submission"""
    appointment_date: date = Field(..., description="YYYY-MM-DD")
    appointment_time: time = Field(..., description="HH:MM (24-hour, business timezone)")
    guest_name: str = Field(..., min_length=1, max_length=200)
    guest_email: EmailStr
    guest_phone: Optional[str] = Field(None, max_length=40)
    notes: Optional[str] = Field(None, max_length=2000)
    assessment_id: Optional[str] = None
    bos_submission_id: Optional[str] = None

    @field_validator("appointment_time", mode="before")
    @classmethod
    def parse_time(cls, v):
        if isinstance(v, str):
            return to_time(v)
        return v

    @field_validator("guest_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("guest_phone", "notes")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class BookingResponse(BaseModel):
    appointment_id: UUID
    status: str
    appointment_date: date
    appointment_time: str
    meeting_join_url: Optional[str] = None


class TokenRequest(BaseModel):
    """Cancel token travels in the body, never the query string"""
    cancel_token: str = Field(..., min_length=1)


class RescheduleRequest(TokenRequest):
    new_date: date
    new_time: time

    @field_validator("new_time", mode="before")
    @classmethod
    def parse_time(cls, v):
        if isinstance(v, str):
            return to_time(v)
        return v


class RescheduleResponse(BaseModel):
    appointment_id: UUID
    meeting_join_url: Optional[str] = None
    new_cancel_token: str
    appointment_date: date
    appointment_time: str


class AppointmentSummary(BaseModel):
    """What the self-service cancel / reschedule pages show"""
    id: UUID
    guest_name: str
    guest_email: str
    appointment_date: date
    appointment_time: str
    duration_minutes: int
    timezone: str
    status: str
    meeting_join_url: Optional[str] = None


class CancelResponse(BaseModel):
    success: bool = True
    message: str = "Appointment cancelled successfully"
    appointment: AppointmentSummary


class ReminderSweepSummary(BaseModel):
    checked_at: datetime
    appointments_checked: int = 0
    reminders_24h_sent: int = 0
    reminders_1h_sent: int = 0
