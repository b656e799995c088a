import uuid
from datetime import date, datetime, time, timezone

import pytest

from app.models import Appointment
from app.services.appointment.notifier import AppointmentNotifier
from app.services.email.email_service import EmailService, REMINDER_1H, REMINDER_24H
from app.tasks import email_tasks


@pytest.fixture
def appointment():
    return Appointment(
        id=uuid.uuid4(),
        guest_name="Ada",
        guest_email="ada@example.com",
        appointment_date=date(2026, 1, 5),
        appointment_time=time(14, 30),
        starts_at=datetime(2026, 1, 5, 19, 30, tzinfo=timezone.utc),
        timezone="America/New_York",
        duration_minutes=30,
        status="confirmed",
        cancel_token="tok123",
        meeting_join_url="https://zoom.us/j/1",
        meeting_password="pw",
    )


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(to_email, subject, html_content, plain_text=None, cc=None, bcc=None):
        sent.append({"to": to_email, "subject": subject, "html": html_content, "text": plain_text})
        return True

    monkeypatch.setattr(EmailService, "send_email", staticmethod(fake_send))
    return sent


def test_confirmation_contains_join_and_self_service_links(appointment, outbox):
    EmailService.send_appointment_confirmation_email(appointment)

    message = outbox[0]
    assert message["to"] == "ada@example.com"
    assert message["subject"] == "Appointment Confirmed - Monday, January 5, 2026"
    assert "Monday, January 5, 2026 at 2:30 PM" in message["text"]
    assert "https://zoom.us/j/1" in message["html"]
    assert "/cancel-appointment?token=tok123" in message["html"]
    assert "/reschedule?token=tok123" in message["text"]


def test_cancellation_has_no_self_service_links(appointment, outbox):
    EmailService.send_appointment_cancellation_email(appointment)

    message = outbox[0]
    assert message["subject"].startswith("Appointment Cancelled - ")
    assert "token=" not in message["html"]


def test_rescheduled_mentions_previous_time(appointment, outbox):
    previous = Appointment(
        appointment_date=date(2026, 1, 5),
        appointment_time=time(9, 0),
        timezone="America/New_York",
    )

    EmailService.send_appointment_rescheduled_email(appointment, previous)

    assert "Previous time: Monday, January 5, 2026 at 9:00 AM" in outbox[0]["text"]


def test_reminder_subjects(appointment, outbox):
    EmailService.send_appointment_reminder_email(appointment, REMINDER_24H)
    EmailService.send_appointment_reminder_email(appointment, REMINDER_1H)

    assert outbox[0]["subject"] == "📅 Reminder: Your Strategy Call is Tomorrow"
    assert outbox[1]["subject"] == "⏰ Starting Soon: Your Strategy Call in 1 Hour"

    with pytest.raises(ValueError):
        EmailService.send_appointment_reminder_email(appointment, "2h")


class RecordingTask:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    def delay(self, *args):
        if self.fail:
            raise ConnectionError("broker down")
        self.calls.append(args)


def test_notifier_queues_tasks(appointment, monkeypatch):
    confirmation = RecordingTask()
    rescheduled = RecordingTask()
    monkeypatch.setattr(email_tasks, "send_appointment_confirmation_email", confirmation)
    monkeypatch.setattr(email_tasks, "send_appointment_rescheduled_email", rescheduled)

    notifier = AppointmentNotifier()
    notifier.appointment_booked(appointment)
    notifier.appointment_rescheduled(appointment, appointment)

    assert confirmation.calls == [(str(appointment.id),)]
    assert rescheduled.calls == [(str(appointment.id), str(appointment.id))]


def test_notifier_swallows_broker_failures(appointment, monkeypatch):
    monkeypatch.setattr(email_tasks, "send_appointment_cancellation_email", RecordingTask(fail=True))

    AppointmentNotifier().appointment_cancelled(appointment)


def test_guest_name_is_escaped_in_html_only(appointment, outbox):
    appointment.guest_name = '<a href="https://evil.example">Click to verify payment</a>'

    EmailService.send_appointment_confirmation_email(appointment)

    message = outbox[0]
    assert "Hi &lt;a href=&quot;https://evil.example&quot;&gt;" in message["html"]
    assert 'href="https://evil.example"' not in message["html"]
    assert message["text"].startswith('Hi <a href="https://evil.example">')
