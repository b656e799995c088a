# ===== app/models/appointment.py =====
import enum
import uuid

from sqlalchemy import Column, String, Integer, Text, Date, Time, DateTime, Boolean, Index, Uuid, text
from sqlalchemy.sql import func
from .base import Base


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # One live booking per slot start; cancelled rows keep their history
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "appointment_time",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
        Index("idx_appointments_status_starts_at", "status", "starts_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Guest info
    guest_name = Column(String, nullable=False)
    guest_email = Column(String, nullable=False)
    guest_phone = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Business-local wall time plus the canonical UTC instant
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    timezone = Column(String(50), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)

    # Status tracking
    status = Column(String, nullable=False, default=AppointmentStatus.CONFIRMED.value)

    # Video meeting
    meeting_id = Column(String, nullable=True)
    meeting_join_url = Column(String, nullable=True)
    meeting_start_url = Column(String, nullable=True)
    meeting_password = Column(String, nullable=True)

    # Self-service bearer secret for cancel / reschedule
    cancel_token = Column(String(128), nullable=False, unique=True, index=True)

    # Reminders & notifications (monotonic false -> true)
    reminder_24h_sent = Column(Boolean, nullable=False, default=False)
    reminder_1h_sent = Column(Boolean, nullable=False, default=False)

    # Reschedule audit trail
    rescheduled_from_id = Column(Uuid(as_uuid=True), nullable=True)
    rescheduled_to_id = Column(Uuid(as_uuid=True), nullable=True)

    # Provenance
    assessment_id = Column(String, nullable=True)
    bos_submission_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED.value

    @property
    def time_label(self) -> str:
        return self.appointment_time.strftime("%H:%M")

    def __repr__(self):
        return f"<Appointment(id={self.id}, {self.appointment_date} {self.time_label}, status={self.status})>"
