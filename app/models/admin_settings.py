# ===== app/models/admin_settings.py =====
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint
from sqlalchemy.sql import func
from app.models.base import Base


class AdminSettings(Base):
    """Booking policy. Logically a singleton: the first row wins."""
    __tablename__ = "admin_settings"
    __table_args__ = (
        CheckConstraint("appointment_duration_minutes > 0", name="ck_admin_settings_duration"),
        CheckConstraint("buffer_minutes >= 0", name="ck_admin_settings_buffer"),
    )

    id = Column(Integer, primary_key=True)

    appointment_duration_minutes = Column(Integer, nullable=False, default=30)
    buffer_minutes = Column(Integer, nullable=False, default=0)
    advance_booking_days = Column(Integer, nullable=False, default=30)
    timezone = Column(String(50), nullable=False, default="America/New_York")

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def slot_stride_minutes(self) -> int:
        return self.appointment_duration_minutes + self.buffer_minutes
