# ============================================================================
# FILE: app/api/v1/public/booking.py
# Guest-facing booking endpoints - thin HTTP layer
# ============================================================================
"""
No login. Guests book a slot, then manage it through the cancel token
that arrives in their confirmation email. Tokens are accepted in request
bodies only so they stay out of access logs.
"""
import logging
from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_appointment_service, get_availability_service, raise_http
from app.schemas.booking import (
    AppointmentSummary,
    AvailabilityResponse,
    BookingRequest,
    BookingResponse,
    CancelResponse,
    DateAvailabilityResponse,
    RescheduleRequest,
    RescheduleResponse,
    TokenRequest,
)
from app.services.appointment.appointment_service import AppointmentService
from app.services.appointment.exceptions import BookingError
from app.services.availability.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/booking", tags=["public-booking"])


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
        target_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
        availability_service: AvailabilityService = Depends(get_availability_service)
):
    """Bookable start times for one date, in the business timezone"""
    return availability_service.get_available_slots(target_date)


@router.get("/availability/check", response_model=DateAvailabilityResponse)
def check_date(
        target_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
        availability_service: AvailabilityService = Depends(get_availability_service)
):
    """Whether a date can be picked at all (working day, inside the horizon, not blocked)"""
    return DateAvailabilityResponse(
        date=target_date,
        available=availability_service.is_date_available(target_date),
    )


@router.post("/appointments", response_model=BookingResponse, status_code=201)
def book_appointment(
        request: BookingRequest,
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    try:
        appointment = appointment_service.book_appointment(request)
    except BookingError as e:
        raise_http(e)

    return BookingResponse(
        appointment_id=appointment.id,
        status=appointment.status,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.time_label,
        meeting_join_url=appointment.meeting_join_url,
    )


@router.post("/appointments/lookup", response_model=AppointmentSummary)
def lookup_appointment(
        request: TokenRequest,
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """Details for the cancel / reschedule pages"""
    try:
        appointment = appointment_service.get_by_token(request.cancel_token)
    except BookingError as e:
        raise_http(e)

    return AppointmentService.serialize(appointment)


@router.post("/appointments/cancel", response_model=CancelResponse)
def cancel_appointment(
        request: TokenRequest,
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    try:
        appointment = appointment_service.cancel_by_token(request.cancel_token)
    except BookingError as e:
        raise_http(e)

    return CancelResponse(appointment=AppointmentService.serialize(appointment))


@router.post("/appointments/reschedule", response_model=RescheduleResponse)
def reschedule_appointment(
        request: RescheduleRequest,
        appointment_service: AppointmentService = Depends(get_appointment_service)
):
    """Move a booking; the response carries the new cancel token"""
    try:
        appointment = appointment_service.reschedule_by_token(
            request.cancel_token,
            request.new_date,
            request.new_time,
        )
    except BookingError as e:
        raise_http(e)

    return RescheduleResponse(
        appointment_id=appointment.id,
        meeting_join_url=appointment.meeting_join_url,
        new_cancel_token=appointment.cancel_token,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.time_label,
    )
