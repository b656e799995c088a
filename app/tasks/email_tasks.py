# ===== app/tasks/email_tasks.py =====
from typing import Optional
from uuid import UUID
import logging

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.models.appointment import Appointment
from app.services.email.email_service import EmailService

logger = logging.getLogger(__name__)


def _load(db, appointment_id: str) -> Optional[Appointment]:
    return db.query(Appointment).filter(Appointment.id == UUID(appointment_id)).first()


@celery_app.task(bind=True, max_retries=3)
def send_appointment_confirmation_email(self, appointment_id: str):
    """
    Send booking confirmation to the guest

    Args:
        appointment_id: Appointment UUID as string
    """
    db = SessionLocal()
    try:
        appointment = _load(db, appointment_id)
        if not appointment:
            logger.warning(f"Appointment {appointment_id} not found, skipping confirmation email")
            return {"status": "skipped", "appointment_id": appointment_id}

        logger.info(f"Sending confirmation email for appointment {appointment_id}")
        EmailService.send_appointment_confirmation_email(appointment)

        return {"status": "success", "appointment_id": appointment_id}

    except Exception as exc:
        logger.error(f"Failed to send confirmation email for appointment {appointment_id}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def send_appointment_cancellation_email(self, appointment_id: str):
    db = SessionLocal()
    try:
        appointment = _load(db, appointment_id)
        if not appointment:
            logger.warning(f"Appointment {appointment_id} not found, skipping cancellation email")
            return {"status": "skipped", "appointment_id": appointment_id}

        logger.info(f"Sending cancellation email for appointment {appointment_id}")
        EmailService.send_appointment_cancellation_email(appointment)

        return {"status": "success", "appointment_id": appointment_id}

    except Exception as exc:
        logger.error(f"Failed to send cancellation email for appointment {appointment_id}: {exc}")
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
    finally:
        db.close()


@celery_app.task(bind=True, max_retries=3)
def send_appointment_rescheduled_email(self, appointment_id: str, previous_appointment_id: Optional[str] = None):
    """
    Send one combined notice for a reschedule

    Args:
        appointment_id: The new appointment
        previous_appointment_id: The cancelled appointment it replaces
    """
    db = SessionLocal()
    try:
        appointment = _load(db, appointment_id)
        if not appointment:
            logger.warning(f"Appointment {appointment_id} not found, skipping reschedule email")
            return {"status": "skipped", "appointment_id": appointment_id}

        previous = _load(db, previous_appointment_id) if previous_appointment_id else None

        logger.info(f"Sending reschedule email for appointment {appointment_id}")
        EmailService.send_appointment_rescheduled_email(appointment, previous)

        return {"status": "success", "appointment_id": appointment_id}

    except Exception as exc:
        logger.error(f"Failed to send reschedule email for appointment {appointment_id}: {exc}")
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
    finally:
        db.close()
