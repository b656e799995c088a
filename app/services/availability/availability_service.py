# ===== app/services/availability/availability_service.py =====
from typing import Iterable, List, Optional, Set, Tuple
from datetime import date, datetime, timedelta, timezone
from uuid import UUID
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session
from app.config.settings import Settings, get_settings
from app.models.admin_settings import AdminSettings
from app.models.availability import WorkingHours, BlockedDate
from app.models.appointment import Appointment, AppointmentStatus
from app.schemas.booking import AvailabilityResponse
from app.schemas.calendar_events import BusyPeriod, CalendarSyncStatus
from app.services.availability.intervals import from_minutes, overlaps, to_minutes
from app.services.calendar.google_calendar_service import GoogleCalendarService
import logging

logger = logging.getLogger(__name__)


def day_of_week(target_date: date) -> int:
    """0=Sunday ... 6=Saturday, the convention working_hours rows use"""
    return (target_date.weekday() + 1) % 7


def is_date_offerable(
        target_date: date,
        today: date,
        hours: Optional[WorkingHours],
        advance_booking_days: int,
        blocked_dates: Iterable[date],
) -> bool:
    """Past dates, today, dates beyond the booking horizon, blocked dates and closed weekdays are never offered"""
    if target_date <= today:
        return False
    if target_date > today + timedelta(days=advance_booking_days):
        return False
    if target_date in set(blocked_dates):
        return False
    return bool(hours and hours.is_available)


def generate_candidate_slots(start_minutes: int, end_minutes: int, duration: int, buffer: int) -> List[int]:
    """Slot starts stepping by duration + buffer; a slot may end exactly at closing time"""
    stride = duration + buffer
    candidates = []
    current = start_minutes
    while current + duration <= end_minutes:
        candidates.append(current)
        current += stride
    return candidates


def resolve_slots(
        hours: WorkingHours,
        duration: int,
        buffer: int,
        booked: Iterable[Tuple[int, int]] = (),
        busy_periods: Iterable[BusyPeriod] = (),
) -> List[str]:
    """
    Bookable HH:MM starts for one open day.

    ``booked`` holds (start_minutes, duration_minutes) of live appointments;
    a candidate is dropped if it collides with any of them or with any busy
    period. Output is ascending and deterministic.
    """
    booked = list(booked)
    busy = [(period.start_minutes, period.end_minutes) for period in busy_periods]

    slots = []
    for candidate in generate_candidate_slots(
            to_minutes(hours.start_time), to_minutes(hours.end_time), duration, buffer
    ):
        if any(candidate == start or overlaps(candidate, duration, start, start + length)
               for start, length in booked):
            continue
        if any(overlaps(candidate, duration, busy_start, busy_end) for busy_start, busy_end in busy):
            continue
        slots.append(from_minutes(candidate))

    return slots


class AvailabilityService:
    """Resolves bookable slots from working hours, bookings, blocked dates and the external calendar"""

    def __init__(
            self,
            db: Session,
            calendar_service: Optional[GoogleCalendarService] = None,
            settings: Optional[Settings] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.calendar_service = calendar_service or GoogleCalendarService(self.settings)

    def get_admin_settings(self) -> AdminSettings:
        """The settings row, or an unsaved one built from environment defaults"""
        admin_settings = self.db.query(AdminSettings).order_by(AdminSettings.id).first()
        if admin_settings:
            return admin_settings

        return AdminSettings(
            appointment_duration_minutes=self.settings.DEFAULT_APPOINTMENT_DURATION_MINUTES,
            buffer_minutes=self.settings.DEFAULT_BUFFER_MINUTES,
            advance_booking_days=self.settings.DEFAULT_ADVANCE_BOOKING_DAYS,
            timezone=self.settings.DEFAULT_TIMEZONE,
        )

    def get_working_hours(self, target_date: date) -> Optional[WorkingHours]:
        return self.db.query(WorkingHours).filter_by(day_of_week=day_of_week(target_date)).first()

    def is_blocked(self, target_date: date) -> bool:
        return self.db.query(BlockedDate.id).filter(BlockedDate.blocked_date == target_date).first() is not None

    @staticmethod
    def local_today(admin_settings: AdminSettings, now: Optional[datetime] = None) -> date:
        now = now or datetime.now(timezone.utc)
        return now.astimezone(ZoneInfo(admin_settings.timezone)).date()

    def _booked_intervals(self, target_date: date, exclude_appointment_id: Optional[UUID]) -> List[Tuple[int, int]]:
        query = self.db.query(Appointment).filter(
            Appointment.appointment_date == target_date,
            Appointment.status != AppointmentStatus.CANCELLED.value,
        )
        if exclude_appointment_id:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return [(to_minutes(appt.appointment_time), appt.duration_minutes) for appt in query.all()]

    def _check_date(self, target_date: date, admin_settings: AdminSettings,
                    now: Optional[datetime]) -> Tuple[bool, Optional[WorkingHours]]:
        hours = self.get_working_hours(target_date)
        blocked: Set[date] = {target_date} if self.is_blocked(target_date) else set()
        offerable = is_date_offerable(
            target_date,
            self.local_today(admin_settings, now),
            hours,
            admin_settings.advance_booking_days,
            blocked,
        )
        return offerable, hours

    def is_date_available(self, target_date: date, now: Optional[datetime] = None) -> bool:
        """Whether the calendar UI should let the guest pick this date"""
        offerable, _ = self._check_date(target_date, self.get_admin_settings(), now)
        return offerable

    def get_available_slots(
            self,
            target_date: date,
            now: Optional[datetime] = None,
            exclude_appointment_id: Optional[UUID] = None
    ) -> AvailabilityResponse:
        """
        Ordered bookable slots for ``target_date``.

        ``exclude_appointment_id`` ignores one live appointment, used when
        that appointment is being moved. External calendar failures never
        empty the list; they only flip ``configured`` to False.
        """
        admin_settings = self.get_admin_settings()
        offerable, hours = self._check_date(target_date, admin_settings, now)

        if not offerable:
            status = CalendarSyncStatus.OK if self.calendar_service.is_configured else CalendarSyncStatus.UNCONFIGURED
            return AvailabilityResponse(
                date=target_date,
                timezone=admin_settings.timezone,
                slots=[],
                configured=status == CalendarSyncStatus.OK,
                calendar_status=status,
            )

        busy = self.calendar_service.get_busy_periods(target_date, admin_settings.timezone)
        if not busy.configured:
            logger.warning(
                f"Calendar integration {busy.status.value} for {target_date.isoformat()}, "
                f"ignoring external busy periods"
            )

        slots = resolve_slots(
            hours,
            admin_settings.appointment_duration_minutes,
            admin_settings.buffer_minutes,
            booked=self._booked_intervals(target_date, exclude_appointment_id),
            busy_periods=busy.busy_periods,
        )

        return AvailabilityResponse(
            date=target_date,
            timezone=admin_settings.timezone,
            slots=slots,
            configured=busy.configured,
            calendar_status=busy.status,
        )
