# app/models/__init__.py
from .base import Base
from .appointment import Appointment, AppointmentStatus
from .availability import WorkingHours, BlockedDate
from .admin_settings import AdminSettings

__all__ = [
    "Base",
    "Appointment",
    "AppointmentStatus",
    "WorkingHours",
    "BlockedDate",
    "AdminSettings",
]
