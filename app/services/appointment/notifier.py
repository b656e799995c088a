# ============================================================================
# app/services/appointment/notifier.py
# Lifecycle -> email trigger point. Delivery happens in Celery workers.
# ============================================================================
import logging

from app.models.appointment import Appointment

logger = logging.getLogger(__name__)


class AppointmentNotifier:
    """Queues guest notifications after a lifecycle change has been committed.

    A failure to enqueue is logged and swallowed: the booking or cancellation
    it reports on has already succeeded and is not rolled back.
    """

    def appointment_booked(self, appointment: Appointment) -> None:
        from app.tasks.email_tasks import send_appointment_confirmation_email
        self._enqueue(send_appointment_confirmation_email, "confirmation", str(appointment.id))

    def appointment_cancelled(self, appointment: Appointment) -> None:
        from app.tasks.email_tasks import send_appointment_cancellation_email
        self._enqueue(send_appointment_cancellation_email, "cancellation", str(appointment.id))

    def appointment_rescheduled(self, new_appointment: Appointment, original: Appointment) -> None:
        from app.tasks.email_tasks import send_appointment_rescheduled_email
        self._enqueue(
            send_appointment_rescheduled_email,
            "reschedule",
            str(new_appointment.id),
            str(original.id),
        )

    @staticmethod
    def _enqueue(task, kind: str, *args) -> None:
        try:
            task.delay(*args)
            logger.info(f"Queued {kind} email for appointment {args[0]}")
        except Exception as e:
            logger.error(f"Failed to queue {kind} email for appointment {args[0]}: {e}")
