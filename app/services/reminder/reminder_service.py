# ===== app/services/reminder/reminder_service.py =====
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple, Type
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.appointment import Appointment, AppointmentStatus
from app.schemas.booking import ReminderSweepSummary
from app.services.email.email_service import EmailService, REMINDER_1H, REMINDER_24H
from app.utils.formatting import ensure_utc

logger = logging.getLogger(__name__)

# Inclusive windows relative to the sweep time. Each is wider than the
# sweep interval so a run landing anywhere in it still catches the meeting.
REMINDER_24H_WINDOW = (timedelta(hours=23), timedelta(hours=25))
REMINDER_1H_WINDOW = (timedelta(minutes=45), timedelta(minutes=75))


class ReminderService:
    """
    Periodic sweep that emails upcoming guests.

    A reminder flag is set only after the email went out, so a failed send
    is retried on the next sweep. A flag that could not be saved after a
    successful send may cause one duplicate reminder; that is logged.
    """

    def __init__(self, db: Session, email_service: Type[EmailService] = EmailService):
        self.db = db
        self.email_service = email_service

    def _pending(self) -> List[Appointment]:
        """Confirmed appointments still owed at least one reminder"""
        return (
            self.db.query(Appointment)
            .filter(
                Appointment.status == AppointmentStatus.CONFIRMED.value,
                or_(
                    Appointment.reminder_24h_sent.is_(False),
                    Appointment.reminder_1h_sent.is_(False),
                ),
            )
            .order_by(Appointment.starts_at)
            .all()
        )

    @staticmethod
    def _in_window(now: datetime, starts_at: datetime, window: Tuple[timedelta, timedelta]) -> bool:
        # Compared in Python so naive (sqlite) and aware values compare alike
        return now + window[0] <= ensure_utc(starts_at) <= now + window[1]

    def _send(self, appointment: Appointment, reminder_type: str, flag_name: str) -> bool:
        try:
            self.email_service.send_appointment_reminder_email(appointment, reminder_type)
        except Exception as e:
            logger.error(f"Failed to send {reminder_type} reminder for appointment {appointment.id}: {e}")
            return False

        try:
            setattr(appointment, flag_name, True)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"{reminder_type} reminder sent for appointment {appointment.id} "
                f"but the flag could not be saved: {e}"
            )
        return True

    def run(self, now: Optional[datetime] = None) -> ReminderSweepSummary:
        now = now or datetime.now(timezone.utc)

        appointments = self._pending()
        sent_24h = sent_1h = 0

        for appointment in appointments:
            if (not appointment.reminder_24h_sent
                    and self._in_window(now, appointment.starts_at, REMINDER_24H_WINDOW)
                    and self._send(appointment, REMINDER_24H, "reminder_24h_sent")):
                sent_24h += 1

            if (not appointment.reminder_1h_sent
                    and self._in_window(now, appointment.starts_at, REMINDER_1H_WINDOW)
                    and self._send(appointment, REMINDER_1H, "reminder_1h_sent")):
                sent_1h += 1

        summary = ReminderSweepSummary(
            checked_at=now,
            appointments_checked=len(appointments),
            reminders_24h_sent=sent_24h,
            reminders_1h_sent=sent_1h,
        )
        logger.info(
            f"Reminder sweep at {now.isoformat()}: {summary.appointments_checked} checked, "
            f"{sent_24h} day-before and {sent_1h} hour-before reminders sent"
        )
        return summary
