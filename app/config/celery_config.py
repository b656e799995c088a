# app/config/celery_config.py
"""Celery configuration, task routing and the beat schedule"""
from datetime import timedelta

from celery import Celery
from kombu import Queue

from app.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure Celery application"""

    celery_app = Celery(
        "booking_service",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=[
            "app.tasks.email_tasks",
            "app.tasks.reminder_tasks",
        ],
    )

    # Configure Celery
    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,

        # Task routing
        task_routes={
            "app.tasks.email_tasks.*": {"queue": "notifications"},
            "app.tasks.reminder_tasks.*": {"queue": "reminders"},
        },

        # Queue definitions
        task_queues=(
            Queue("notifications", routing_key="notifications"),
            Queue("reminders", routing_key="reminders"),
        ),

        # Periodic reminder sweep; the sweep itself is idempotent per threshold
        beat_schedule={
            "appointment-reminder-sweep": {
                "task": "app.tasks.reminder_tasks.run_reminder_sweep",
                "schedule": timedelta(minutes=settings.REMINDER_SWEEP_INTERVAL_MINUTES),
                "options": {"queue": "reminders"},
            },
        },

        # Worker settings
        worker_max_tasks_per_child=1000,
        worker_prefetch_multiplier=1,
        task_acks_late=True,

        # Retry settings
        task_retry_max_retries=3,
        task_retry_delay=60,  # 1 minute

        broker_connection_retry_on_startup=True,
    )

    return celery_app


# Create the Celery app instance
celery_app = create_celery_app()
