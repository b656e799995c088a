# ============================================================================
# app/services/appointment/exceptions.py
# Booking outcomes that callers are expected to handle
# ============================================================================

GENERIC_FAILURE_MESSAGE = "Something went wrong, please try again."


class BookingError(Exception):
    """Base for booking and lifecycle failures.

    ``status_code`` is the HTTP status the API answers with and
    ``user_message`` is safe to show to a guest; ``str(exc)`` carries the
    operator-facing detail for logs.
    """
    status_code = 400
    user_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.user_message)


class SlotUnavailableError(BookingError):
    """Slot was taken (or never offered) by commit time. Re-query and pick again."""
    status_code = 409
    user_message = "That time is no longer available, please pick another."


class MeetingProvisioningError(BookingError):
    """Video meeting could not be created, updated or removed"""
    status_code = 502


class AppointmentNotFoundError(BookingError):
    status_code = 404
    user_message = "Appointment not found or the link is invalid."


class AppointmentAlreadyCancelledError(BookingError):
    status_code = 409
    user_message = "This appointment has already been cancelled."


class AppointmentInPastError(BookingError):
    status_code = 400
    user_message = "This appointment has already taken place and can no longer be changed."


class InvalidStatusTransitionError(BookingError):
    status_code = 409
    user_message = "This appointment cannot be changed in its current state."
