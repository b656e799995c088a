# ============================================================================
# FILE: app/api/v1/internal/operations.py
# Internal endpoints - X-Internal-Key required
# ============================================================================
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from app.api.dependencies import (
    get_appointment_service,
    get_reminder_service,
    raise_http,
    verify_internal_api_key,
)
from app.schemas.booking import AppointmentSummary, ReminderSweepSummary
from app.services.appointment.appointment_service import AppointmentService
from app.services.appointment.exceptions import BookingError
from app.services.reminder.reminder_service import ReminderService

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])


@router.post("/reminders/sweep", response_model=ReminderSweepSummary)
def run_reminder_sweep(reminder_service: ReminderService = Depends(get_reminder_service)):
    """
    Run one reminder sweep now.
    Celery beat runs the same sweep on a schedule; this is for external cron callers.
    """
    return reminder_service.run()


@router.post("/appointments/{appointment_id}/confirm", response_model=AppointmentSummary)
def confirm_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    try:
        appointment = appointment_service.confirm_appointment(appointment_id)
    except BookingError as e:
        raise_http(e)

    return AppointmentService.serialize(appointment)
