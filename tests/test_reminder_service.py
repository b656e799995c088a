import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.models import Appointment, AppointmentStatus
from app.services.reminder.reminder_service import ReminderService

from tests.conftest import FakeEmailService

SWEEP_AT = datetime(2026, 1, 4, 14, 0, tzinfo=timezone.utc)


def _add(db, starts_at, status=AppointmentStatus.CONFIRMED, **flags):
    local = starts_at - timedelta(hours=5)
    appointment = Appointment(
        id=uuid.uuid4(),
        guest_name="Ada",
        guest_email="ada@example.com",
        appointment_date=local.date(),
        appointment_time=local.time(),
        starts_at=starts_at,
        timezone="America/New_York",
        duration_minutes=30,
        status=status.value,
        cancel_token=uuid.uuid4().hex,
        reminder_24h_sent=flags.get("reminder_24h_sent", False),
        reminder_1h_sent=flags.get("reminder_1h_sent", False),
    )
    db.add(appointment)
    db.commit()
    return appointment


@pytest.fixture
def email_service():
    return FakeEmailService()


def test_day_before_reminder_sent_once(db, email_service):
    appointment = _add(db, SWEEP_AT + timedelta(hours=24))
    service = ReminderService(db, email_service=email_service)

    first = service.run(now=SWEEP_AT)
    second = service.run(now=SWEEP_AT + timedelta(minutes=10))

    assert first.reminders_24h_sent == 1
    assert first.appointments_checked == 1
    assert second.reminders_24h_sent == 0
    assert email_service.sent == [(appointment.id, "24h")]

    db.refresh(appointment)
    assert appointment.reminder_24h_sent is True
    assert appointment.reminder_1h_sent is False


def test_window_bounds_are_inclusive(db, email_service):
    _add(db, SWEEP_AT + timedelta(hours=23))
    _add(db, SWEEP_AT + timedelta(hours=25))
    _add(db, SWEEP_AT + timedelta(hours=25, minutes=1))
    _add(db, SWEEP_AT + timedelta(hours=22, minutes=59))

    summary = ReminderService(db, email_service=email_service).run(now=SWEEP_AT)

    assert summary.reminders_24h_sent == 2


def test_hour_before_reminder(db, email_service):
    soon = _add(db, SWEEP_AT + timedelta(minutes=60), reminder_24h_sent=True)
    _add(db, SWEEP_AT + timedelta(minutes=30))
    _add(db, SWEEP_AT + timedelta(minutes=90))

    summary = ReminderService(db, email_service=email_service).run(now=SWEEP_AT)

    assert summary.reminders_1h_sent == 1
    assert summary.reminders_24h_sent == 0
    assert email_service.sent == [(soon.id, "1h")]


def test_cancelled_and_pending_appointments_are_skipped(db, email_service):
    _add(db, SWEEP_AT + timedelta(hours=24), status=AppointmentStatus.CANCELLED)
    _add(db, SWEEP_AT + timedelta(hours=24, minutes=30), status=AppointmentStatus.PENDING)

    summary = ReminderService(db, email_service=email_service).run(now=SWEEP_AT)

    assert summary.appointments_checked == 0
    assert email_service.sent == []


def test_failed_send_leaves_flag_for_next_sweep(db, email_service):
    appointment = _add(db, SWEEP_AT + timedelta(hours=24))
    service = ReminderService(db, email_service=email_service)

    email_service.fail = True
    failed = service.run(now=SWEEP_AT)

    db.refresh(appointment)
    assert failed.reminders_24h_sent == 0
    assert failed.appointments_checked == 1
    assert appointment.reminder_24h_sent is False

    email_service.fail = False
    retried = service.run(now=SWEEP_AT + timedelta(minutes=10))

    assert retried.reminders_24h_sent == 1
    db.refresh(appointment)
    assert appointment.reminder_24h_sent is True


def test_summary_reports_sweep_time(db, email_service):
    summary = ReminderService(db, email_service=email_service).run(now=SWEEP_AT)

    assert summary.checked_at == SWEEP_AT
    assert summary.model_dump()["reminders_1h_sent"] == 0


def test_checked_count_covers_every_confirmed_appointment_owed_a_reminder(db, email_service):
    _add(db, SWEEP_AT + timedelta(days=10))
    _add(db, SWEEP_AT + timedelta(hours=5))
    _add(db, SWEEP_AT + timedelta(hours=24))
    _add(db, SWEEP_AT + timedelta(days=3), reminder_24h_sent=True, reminder_1h_sent=True)

    summary = ReminderService(db, email_service=email_service).run(now=SWEEP_AT)

    assert summary.appointments_checked == 3
    assert summary.reminders_24h_sent == 1
    assert summary.reminders_1h_sent == 0
