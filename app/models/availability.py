# ===== app/models/availability.py =====
from sqlalchemy import Column, String, Integer, Boolean, Time, Date, DateTime, CheckConstraint
from sqlalchemy.sql import func
from app.models.base import Base


class WorkingHours(Base):
    """Weekly working window, one row per day of week"""
    __tablename__ = "working_hours"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_working_hours_day_of_week"),
    )

    id = Column(Integer, primary_key=True)

    day_of_week = Column(Integer, nullable=False, unique=True)  # 0=Sunday, 6=Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<WorkingHours(day={self.day_of_week}, {self.start_time}-{self.end_time}, available={self.is_available})>"


class BlockedDate(Base):
    """A whole calendar day on which no slots are offered (holidays, time-off)"""
    __tablename__ = "blocked_dates"

    id = Column(Integer, primary_key=True)
    blocked_date = Column(Date, nullable=False, unique=True, index=True)
    reason = Column(String, nullable=True)  # "Holiday", "Vacation", etc.

    created_at = Column(DateTime(timezone=True), server_default=func.now())
