# ============================================================================
# FILE: app/api/dependencies.py
# Service factories, the internal API key check and booking error mapping
# ============================================================================
import secrets
import logging

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.settings import Settings, get_settings
from app.services.appointment.appointment_service import AppointmentService
from app.services.appointment.exceptions import BookingError
from app.services.availability.availability_service import AvailabilityService
from app.services.meetings.zoom_service import ZoomMeetingService, get_meeting_service
from app.services.reminder.reminder_service import ReminderService

logger = logging.getLogger(__name__)

# ============================================================================
# Security Schemes
# ============================================================================

internal_key_security = APIKeyHeader(
    name="X-Internal-Key",
    scheme_name="Internal API Key",
    description="Shared secret for schedulers and internal callers",
    auto_error=False,
)


def verify_internal_api_key(
        api_key: str = Security(internal_key_security),
        settings: Settings = Depends(get_settings)
) -> None:
    """Guard for /internal routes; disabled entirely while INTERNAL_API_KEY is unset"""
    if not settings.INTERNAL_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Internal API is not configured"
        )

    if not api_key or not secrets.compare_digest(api_key, settings.INTERNAL_API_KEY):
        logger.warning("Rejected internal API call with missing or invalid key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid internal API key"
        )


def raise_http(error: BookingError):
    """Map a booking failure to an HTTP error carrying only the guest-safe message"""
    if error.status_code >= 500:
        logger.error(f"{type(error).__name__}: {error}")
    else:
        logger.info(f"{type(error).__name__}: {error}")
    raise HTTPException(status_code=error.status_code, detail=error.user_message) from error


# ============================================================================
# Service Factories
# ============================================================================

def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_appointment_service(
        db: Session = Depends(get_db),
        availability_service: AvailabilityService = Depends(get_availability_service),
        meeting_service: ZoomMeetingService = Depends(get_meeting_service)
) -> AppointmentService:
    return AppointmentService(db, availability_service=availability_service, meeting_service=meeting_service)


def get_reminder_service(db: Session = Depends(get_db)) -> ReminderService:
    return ReminderService(db)
