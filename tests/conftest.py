import os

# Must be set before any app module reads settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["GOOGLE_SERVICE_ACCOUNT_KEY"] = ""
os.environ["GOOGLE_CALENDAR_IDS"] = "[]"
os.environ["INTERNAL_API_KEY"] = ""

from datetime import datetime, time, timezone
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import AdminSettings, Base, WorkingHours
from app.schemas.calendar_events import CalendarBusyResult, CalendarSyncStatus, MeetingDetails
from app.services.appointment.exceptions import MeetingProvisioningError

# Thursday 2026-01-01 10:00 in New York
NOW = datetime(2026, 1, 1, 15, 0, tzinfo=timezone.utc)


class FakeCalendarService:
    def __init__(self, result: Optional[CalendarBusyResult] = None, is_configured: bool = True):
        self.result = result or CalendarBusyResult(status=CalendarSyncStatus.OK)
        self.is_configured = is_configured
        self.calls = []

    def get_busy_periods(self, target_date, timezone_name):
        self.calls.append((target_date, timezone_name))
        return self.result


class FakeMeetingService:
    def __init__(self):
        self.created: List = []
        self.deleted: List[str] = []
        self.fail_create = False
        self.fail_delete = False

    def create_meeting(self, request):
        if self.fail_create:
            raise MeetingProvisioningError("zoom down")
        self.created.append(request)
        meeting_id = f"meeting-{len(self.created)}"
        return MeetingDetails(
            meeting_id=meeting_id,
            join_url=f"https://zoom.example/j/{meeting_id}",
            start_url=f"https://zoom.example/s/{meeting_id}",
            password="pw",
        )

    def delete_meeting(self, meeting_id):
        if self.fail_delete:
            raise MeetingProvisioningError("zoom down")
        self.deleted.append(meeting_id)
        return True


class FakeNotifier:
    def __init__(self):
        self.events = []

    def appointment_booked(self, appointment):
        self.events.append(("booked", appointment.id))

    def appointment_cancelled(self, appointment):
        self.events.append(("cancelled", appointment.id))

    def appointment_rescheduled(self, new_appointment, original):
        self.events.append(("rescheduled", new_appointment.id, original.id))


class FakeEmailService:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send_appointment_reminder_email(self, appointment, reminder_type):
        if self.fail:
            raise ConnectionError("smtp unavailable")
        self.sent.append((appointment.id, reminder_type))
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def booking_config(db):
    """Mondays 09:00-12:00, 30 minute calls with a 15 minute buffer"""
    db.add(WorkingHours(day_of_week=1, start_time=time(9, 0), end_time=time(12, 0), is_available=True))
    db.add(WorkingHours(day_of_week=2, start_time=time(9, 0), end_time=time(12, 0), is_available=False))
    db.add(AdminSettings(
        appointment_duration_minutes=30,
        buffer_minutes=15,
        advance_booking_days=30,
        timezone="America/New_York",
    ))
    db.commit()
    return db


@pytest.fixture
def calendar_service():
    return FakeCalendarService()


@pytest.fixture
def meeting_service():
    return FakeMeetingService()


@pytest.fixture
def notifier():
    return FakeNotifier()
