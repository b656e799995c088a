# ============================================================================
# app/services/appointment/appointment_service.py
# Appointment lifecycle: book, confirm, cancel and reschedule by token
# ============================================================================
"""
State machine for a single appointment.

    pending --confirm--> confirmed --cancel--> cancelled
                              |
                              +--reschedule--> cancelled (old row)
                                               + confirmed (new row)

Rows are never moved in time. A reschedule cancels the original and
creates a new appointment with a fresh cancel token, linking both through
``rescheduled_from_id`` / ``rescheduled_to_id``.

Within ``book_appointment`` the order is fixed: re-check availability,
provision the meeting, persist, then trigger the confirmation email.
"""
import logging
import secrets
import uuid
from datetime import date, datetime, time, timezone
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.appointment import Appointment, AppointmentStatus
from app.schemas.booking import AppointmentSummary, BookingRequest
from app.schemas.calendar_events import MeetingDetails, MeetingRequest
from app.services.appointment.exceptions import (
    AppointmentAlreadyCancelledError,
    AppointmentInPastError,
    AppointmentNotFoundError,
    InvalidStatusTransitionError,
    MeetingProvisioningError,
    SlotUnavailableError,
)
from app.services.appointment.notifier import AppointmentNotifier
from app.services.availability.availability_service import AvailabilityService
from app.services.meetings.zoom_service import ZoomMeetingService, get_meeting_service
from app.utils.formatting import ensure_utc

logger = logging.getLogger(__name__)


def generate_cancel_token() -> str:
    """Unguessable bearer secret for self-service links"""
    return secrets.token_urlsafe(32)


def local_to_utc(appointment_date: date, appointment_time: time, timezone_name: str) -> datetime:
    """Business-local wall time -> UTC instant"""
    local = datetime.combine(appointment_date, appointment_time, tzinfo=ZoneInfo(timezone_name))
    return local.astimezone(timezone.utc)


class AppointmentService:
    """Handles appointment lifecycle operations"""

    def __init__(
            self,
            db: Session,
            availability_service: Optional[AvailabilityService] = None,
            meeting_service: Optional[ZoomMeetingService] = None,
            notifier: Optional[AppointmentNotifier] = None
    ):
        self.db = db
        self.availability_service = availability_service or AvailabilityService(db)
        self.meeting_service = meeting_service or get_meeting_service()
        self.notifier = notifier or AppointmentNotifier()

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def book_appointment(
            self,
            request: BookingRequest,
            now: Optional[datetime] = None,
            initial_status: AppointmentStatus = AppointmentStatus.CONFIRMED
    ) -> Appointment:
        """
        Book a slot for a guest.

        Raises SlotUnavailableError if the slot is not offered any more at
        commit time, MeetingProvisioningError if no meeting link could be
        created. Nothing is persisted in either case.
        """
        now = now or datetime.now(timezone.utc)
        admin_settings = self.availability_service.get_admin_settings()

        self._ensure_slot_available(request.appointment_date, request.appointment_time, now)

        starts_at = local_to_utc(request.appointment_date, request.appointment_time, admin_settings.timezone)
        meeting = self._provision_meeting(
            request.guest_name,
            request.guest_email,
            starts_at,
            admin_settings.appointment_duration_minutes,
            admin_settings.timezone,
        )

        appointment = Appointment(
            id=uuid.uuid4(),
            guest_name=request.guest_name,
            guest_email=str(request.guest_email),
            guest_phone=request.guest_phone,
            notes=request.notes,
            appointment_date=request.appointment_date,
            appointment_time=request.appointment_time.replace(second=0, microsecond=0),
            starts_at=starts_at,
            timezone=admin_settings.timezone,
            duration_minutes=admin_settings.appointment_duration_minutes,
            status=initial_status.value,
            cancel_token=generate_cancel_token(),
            reminder_24h_sent=False,
            reminder_1h_sent=False,
            assessment_id=request.assessment_id,
            bos_submission_id=request.bos_submission_id,
        )
        self._apply_meeting(appointment, meeting)

        self.db.add(appointment)
        self._commit_or_release(meeting)
        self.db.refresh(appointment)

        logger.info(f"Appointment created: {appointment.id} ({appointment.appointment_date} {appointment.time_label})")

        if appointment.status == AppointmentStatus.CONFIRMED.value:
            self.notifier.appointment_booked(appointment)

        return appointment

    def confirm_appointment(self, appointment_id: UUID) -> Appointment:
        """pending -> confirmed; confirming a confirmed appointment is a no-op"""
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        if appointment.status == AppointmentStatus.CONFIRMED.value:
            return appointment
        if appointment.status != AppointmentStatus.PENDING.value:
            raise InvalidStatusTransitionError(f"Cannot confirm appointment in status {appointment.status}")

        appointment.status = AppointmentStatus.CONFIRMED.value
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment confirmed: {appointment.id}")
        self.notifier.appointment_booked(appointment)
        return appointment

    # ------------------------------------------------------------------
    # Token-authenticated self service
    # ------------------------------------------------------------------

    def get_by_token(self, token: str) -> Appointment:
        """Equality lookup on the bearer token"""
        if not token:
            raise AppointmentNotFoundError("Missing cancel token")

        appointment = self.db.query(Appointment).filter(Appointment.cancel_token == token).first()
        if not appointment:
            raise AppointmentNotFoundError("No appointment for the supplied token")
        return appointment

    def cancel_by_token(self, token: str, now: Optional[datetime] = None) -> Appointment:
        now = now or datetime.now(timezone.utc)
        appointment = self.get_by_token(token)
        self._assert_changeable(appointment, now)

        appointment.status = AppointmentStatus.CANCELLED.value
        appointment.cancelled_at = now
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment cancelled: {appointment.id}")

        self._release_meeting(appointment.meeting_id)
        self.notifier.appointment_cancelled(appointment)
        return appointment

    def reschedule_by_token(
            self,
            token: str,
            new_date: date,
            new_time: time,
            now: Optional[datetime] = None
    ) -> Appointment:
        """
        Cancel the token's appointment and book the new slot for the same guest.

        Both writes commit together. Returns the new appointment, which
        carries a new cancel token; the old token now resolves to a
        cancelled row.
        """
        now = now or datetime.now(timezone.utc)
        original = self.get_by_token(token)
        self._assert_changeable(original, now)

        admin_settings = self.availability_service.get_admin_settings()
        self._ensure_slot_available(new_date, new_time, now, exclude_appointment_id=original.id)

        starts_at = local_to_utc(new_date, new_time, admin_settings.timezone)
        meeting = self._provision_meeting(
            original.guest_name,
            original.guest_email,
            starts_at,
            admin_settings.appointment_duration_minutes,
            admin_settings.timezone,
        )

        replacement = Appointment(
            id=uuid.uuid4(),
            guest_name=original.guest_name,
            guest_email=original.guest_email,
            guest_phone=original.guest_phone,
            notes=original.notes,
            appointment_date=new_date,
            appointment_time=new_time.replace(second=0, microsecond=0),
            starts_at=starts_at,
            timezone=admin_settings.timezone,
            duration_minutes=admin_settings.appointment_duration_minutes,
            status=AppointmentStatus.CONFIRMED.value,
            cancel_token=generate_cancel_token(),
            reminder_24h_sent=False,
            reminder_1h_sent=False,
            rescheduled_from_id=original.id,
            assessment_id=original.assessment_id,
            bos_submission_id=original.bos_submission_id,
        )
        self._apply_meeting(replacement, meeting)

        original.status = AppointmentStatus.CANCELLED.value
        original.cancelled_at = now
        original.rescheduled_to_id = replacement.id
        # Free the old slot before the new row claims one
        self.db.flush()

        self.db.add(replacement)
        self._commit_or_release(meeting)
        self.db.refresh(replacement)
        self.db.refresh(original)

        logger.info(f"Appointment rescheduled: {original.id} -> {replacement.id}")

        self._release_meeting(original.meeting_id)
        self.notifier.appointment_rescheduled(replacement, original)
        return replacement

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_slot_available(
            self,
            appointment_date: date,
            appointment_time: time,
            now: datetime,
            exclude_appointment_id: Optional[UUID] = None
    ) -> None:
        availability = self.availability_service.get_available_slots(
            appointment_date, now=now, exclude_appointment_id=exclude_appointment_id
        )
        label = appointment_time.strftime("%H:%M")
        if label not in availability.slots:
            logger.info(f"Slot {appointment_date.isoformat()} {label} no longer available")
            raise SlotUnavailableError(f"{appointment_date.isoformat()} {label} is not bookable")

    @staticmethod
    def _assert_changeable(appointment: Appointment, now: datetime) -> None:
        if appointment.is_cancelled:
            raise AppointmentAlreadyCancelledError(f"Appointment {appointment.id} already cancelled")
        if ensure_utc(appointment.starts_at) < now:
            raise AppointmentInPastError(f"Appointment {appointment.id} started at {appointment.starts_at}")

    def _provision_meeting(
            self,
            guest_name: str,
            guest_email: str,
            starts_at: datetime,
            duration_minutes: int,
            timezone_name: str
    ) -> MeetingDetails:
        return self.meeting_service.create_meeting(MeetingRequest(
            topic=f"Strategy Call with {guest_name}",
            start_time=starts_at,
            duration_minutes=duration_minutes,
            timezone=timezone_name,
            guest_email=guest_email,
            guest_name=guest_name,
        ))

    @staticmethod
    def _apply_meeting(appointment: Appointment, meeting: MeetingDetails) -> None:
        appointment.meeting_id = meeting.meeting_id
        appointment.meeting_join_url = meeting.join_url
        appointment.meeting_start_url = meeting.start_url
        appointment.meeting_password = meeting.password

    def _commit_or_release(self, meeting: MeetingDetails) -> None:
        """Commit; on failure roll back and drop the meeting that was created for it"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Slot claimed concurrently, releasing meeting {meeting.meeting_id}: {e.orig}")
            self._release_meeting(meeting.meeting_id)
            raise SlotUnavailableError("Slot claimed by a concurrent booking") from e
        except Exception:
            self.db.rollback()
            self._release_meeting(meeting.meeting_id)
            raise

    def _release_meeting(self, meeting_id: Optional[str]) -> None:
        if not meeting_id:
            return
        try:
            self.meeting_service.delete_meeting(meeting_id)
        except MeetingProvisioningError as e:
            logger.warning(f"Could not delete meeting {meeting_id}: {e}")

    @staticmethod
    def serialize(appointment: Appointment) -> AppointmentSummary:
        return AppointmentSummary(
            id=appointment.id,
            guest_name=appointment.guest_name,
            guest_email=appointment.guest_email,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.time_label,
            duration_minutes=appointment.duration_minutes,
            timezone=appointment.timezone,
            status=appointment.status,
            meeting_join_url=appointment.meeting_join_url,
        )
