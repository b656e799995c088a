# ===== app/tasks/reminder_tasks.py =====
import logging

from app.config.celery_config import celery_app
from app.config.database import SessionLocal
from app.services.reminder.reminder_service import ReminderService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def run_reminder_sweep(self):
    """Scheduled by celery beat every REMINDER_SWEEP_INTERVAL_MINUTES"""
    db = SessionLocal()
    try:
        summary = ReminderService(db).run()
        return summary.model_dump(mode="json")

    except Exception as exc:
        logger.error(f"Reminder sweep failed: {exc}")
        raise self.retry(exc=exc, countdown=60)
    finally:
        db.close()
