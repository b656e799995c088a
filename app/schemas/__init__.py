# app/schemas/__init__.py
from .calendar_events import (
    CalendarSyncStatus,
    BusyPeriod,
    CalendarBusyResult,
    MeetingRequest,
    MeetingDetails,
)

from .booking import (
    AvailabilityResponse,
    DateAvailabilityResponse,
    BookingRequest,
    BookingResponse,
    TokenRequest,
    RescheduleRequest,
    RescheduleResponse,
    AppointmentSummary,
    CancelResponse,
    ReminderSweepSummary,
)

__all__ = [
    "CalendarSyncStatus",
    "BusyPeriod",
    "CalendarBusyResult",
    "MeetingRequest",
    "MeetingDetails",
    "AvailabilityResponse",
    "DateAvailabilityResponse",
    "BookingRequest",
    "BookingResponse",
    "TokenRequest",
    "RescheduleRequest",
    "RescheduleResponse",
    "AppointmentSummary",
    "CancelResponse",
    "ReminderSweepSummary",
]
