import uuid
from datetime import date, datetime, time, timezone

from app.models import AdminSettings, Appointment, AppointmentStatus, BlockedDate, WorkingHours
from app.schemas.calendar_events import BusyPeriod, CalendarBusyResult, CalendarSyncStatus
from app.services.availability.availability_service import (
    AvailabilityService,
    day_of_week,
    generate_candidate_slots,
    is_date_offerable,
    resolve_slots,
)

from tests.conftest import NOW, FakeCalendarService

MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)
MORNING = WorkingHours(day_of_week=1, start_time=time(9, 0), end_time=time(12, 0), is_available=True)


def _appointment(appointment_date, appointment_time, status=AppointmentStatus.CONFIRMED, duration=30):
    return Appointment(
        id=uuid.uuid4(),
        guest_name="Ada",
        guest_email="ada@example.com",
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        starts_at=datetime.combine(appointment_date, appointment_time, tzinfo=timezone.utc),
        timezone="America/New_York",
        duration_minutes=duration,
        status=status.value,
        cancel_token=uuid.uuid4().hex,
    )


# ----------------------------------------------------------------------
# Pure resolution
# ----------------------------------------------------------------------

def test_day_of_week_counts_from_sunday():
    assert day_of_week(date(2026, 1, 4)) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2026, 1, 10)) == 6


def test_slots_step_by_duration_plus_buffer():
    assert resolve_slots(MORNING, 30, 15) == ["09:00", "09:45", "10:30", "11:15"]


def test_slot_may_end_exactly_at_closing():
    hours = WorkingHours(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0), is_available=True)
    assert resolve_slots(hours, 30, 0) == ["09:00", "09:30"]
    assert generate_candidate_slots(540, 590, 30, 0) == [540]


def test_booked_slot_is_excluded():
    assert resolve_slots(MORNING, 30, 15, booked=[(630, 30)]) == ["09:00", "09:45", "11:15"]


def test_booking_overlapping_a_candidate_is_excluded():
    # A 60 minute booking at 09:30 (made under older settings) blocks 09:45 but not 09:00
    assert resolve_slots(MORNING, 30, 15, booked=[(570, 60)]) == ["09:00", "10:30", "11:15"]


def test_busy_period_removes_overlapping_slots():
    busy = [BusyPeriod(start="09:15", end="10:00")]
    assert resolve_slots(MORNING, 30, 15, busy_periods=busy) == ["10:30", "11:15"]


def test_busy_period_touching_slot_end_keeps_slot():
    busy = [BusyPeriod(start="09:30", end="09:50")]
    assert resolve_slots(MORNING, 30, 15, busy_periods=busy) == ["09:00", "10:30", "11:15"]


def test_resolution_is_idempotent():
    busy = [BusyPeriod(start="11:00", end="11:20")]
    first = resolve_slots(MORNING, 30, 15, booked=[(540, 30)], busy_periods=busy)
    second = resolve_slots(MORNING, 30, 15, booked=[(540, 30)], busy_periods=busy)
    assert first == second == ["09:45", "10:30"]


def test_offerable_rules():
    today = date(2026, 1, 1)
    assert is_date_offerable(MONDAY, today, MORNING, 30, [])
    assert not is_date_offerable(today, today, MORNING, 30, [])
    assert not is_date_offerable(date(2025, 12, 31), today, MORNING, 30, [])
    assert not is_date_offerable(date(2026, 2, 2), today, MORNING, 30, [])
    assert is_date_offerable(date(2026, 1, 31), today, MORNING, 30, [])
    assert not is_date_offerable(MONDAY, today, MORNING, 30, [MONDAY])
    assert not is_date_offerable(MONDAY, today, None, 30, [])


def test_stride_property():
    assert AdminSettings(appointment_duration_minutes=30, buffer_minutes=15).slot_stride_minutes == 45


# ----------------------------------------------------------------------
# Service against the database
# ----------------------------------------------------------------------

def test_available_slots_for_open_day(booking_config, calendar_service):
    service = AvailabilityService(booking_config, calendar_service=calendar_service)

    result = service.get_available_slots(MONDAY, now=NOW)

    assert result.slots == ["09:00", "09:45", "10:30", "11:15"]
    assert result.configured is True
    assert result.timezone == "America/New_York"
    assert calendar_service.calls == [(MONDAY, "America/New_York")]


def test_live_bookings_removed_and_cancelled_ignored(booking_config, calendar_service):
    booking_config.add(_appointment(MONDAY, time(10, 30)))
    booking_config.add(_appointment(MONDAY, time(9, 0), status=AppointmentStatus.CANCELLED))
    booking_config.add(_appointment(MONDAY, time(9, 45), status=AppointmentStatus.PENDING))
    booking_config.commit()

    service = AvailabilityService(booking_config, calendar_service=calendar_service)

    assert service.get_available_slots(MONDAY, now=NOW).slots == ["09:00", "11:15"]


def test_excluded_appointment_frees_its_slot(booking_config, calendar_service):
    appointment = _appointment(MONDAY, time(10, 30))
    booking_config.add(appointment)
    booking_config.commit()

    service = AvailabilityService(booking_config, calendar_service=calendar_service)
    result = service.get_available_slots(MONDAY, now=NOW, exclude_appointment_id=appointment.id)

    assert "10:30" in result.slots


def test_closed_weekday_and_unconfigured_weekday(booking_config, calendar_service):
    service = AvailabilityService(booking_config, calendar_service=calendar_service)

    assert service.get_available_slots(TUESDAY, now=NOW).slots == []
    assert service.get_available_slots(date(2026, 1, 7), now=NOW).slots == []
    assert calendar_service.calls == []


def test_today_past_and_beyond_horizon_are_empty(booking_config, calendar_service):
    service = AvailabilityService(booking_config, calendar_service=calendar_service)

    # 2026-01-05 in New York is "today" at this instant
    monday_morning = datetime(2026, 1, 5, 13, 0, tzinfo=timezone.utc)
    assert service.get_available_slots(MONDAY, now=monday_morning).slots == []
    assert service.get_available_slots(date(2025, 12, 29), now=NOW).slots == []
    assert service.get_available_slots(date(2026, 2, 2), now=NOW).slots == []
    assert not service.is_date_available(date(2026, 2, 2), now=NOW)
    assert service.is_date_available(MONDAY, now=NOW)


def test_local_today_uses_business_timezone(booking_config, calendar_service):
    service = AvailabilityService(booking_config, calendar_service=calendar_service)

    # 02:00 UTC on Jan 5 is still Jan 4 in New York, so Monday is tomorrow
    late_sunday = datetime(2026, 1, 5, 2, 0, tzinfo=timezone.utc)
    assert service.get_available_slots(MONDAY, now=late_sunday).slots == ["09:00", "09:45", "10:30", "11:15"]


def test_blocked_date_has_no_slots(booking_config, calendar_service):
    booking_config.add(BlockedDate(blocked_date=MONDAY, reason="Holiday"))
    booking_config.commit()

    service = AvailabilityService(booking_config, calendar_service=calendar_service)

    assert service.get_available_slots(MONDAY, now=NOW).slots == []
    assert not service.is_date_available(MONDAY, now=NOW)


def test_external_busy_periods_are_applied(booking_config):
    calendar = FakeCalendarService(CalendarBusyResult(
        status=CalendarSyncStatus.OK,
        busy_periods=[BusyPeriod(start="09:15", end="10:00")],
    ))
    service = AvailabilityService(booking_config, calendar_service=calendar)

    assert service.get_available_slots(MONDAY, now=NOW).slots == ["10:30", "11:15"]


def test_calendar_failure_degrades_without_emptying_slots(booking_config):
    calendar = FakeCalendarService(CalendarBusyResult.degraded(CalendarSyncStatus.UNAVAILABLE, "timeout"))
    service = AvailabilityService(booking_config, calendar_service=calendar)

    result = service.get_available_slots(MONDAY, now=NOW)

    assert result.slots == ["09:00", "09:45", "10:30", "11:15"]
    assert result.configured is False
    assert result.calendar_status == CalendarSyncStatus.UNAVAILABLE


def test_defaults_used_without_settings_row(db, calendar_service):
    db.add(WorkingHours(day_of_week=1, start_time=time(9, 0), end_time=time(10, 0), is_available=True))
    db.commit()

    service = AvailabilityService(db, calendar_service=calendar_service)
    admin_settings = service.get_admin_settings()

    assert admin_settings.appointment_duration_minutes == 30
    assert admin_settings.buffer_minutes == 0
    assert service.get_available_slots(MONDAY, now=NOW).slots == ["09:00", "09:30"]
