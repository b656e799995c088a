# ===== app/scripts/seed_booking_config.py =====
"""
Seed working hours and booking settings.

    python -m app.scripts.seed_booking_config

Idempotent: existing rows are updated in place.
"""
from datetime import time

from app.config.database import SessionLocal
from app.config.settings import get_settings
from app.models.admin_settings import AdminSettings
from app.models.availability import WorkingHours

settings = get_settings()

# 0=Sunday ... 6=Saturday; Mon-Fri 9-5
WEEKLY_HOURS = {
    day: (time(9, 0), time(17, 0), 1 <= day <= 5)
    for day in range(7)
}


def seed_booking_config():
    db = SessionLocal()

    try:
        for day, (start, end, is_available) in WEEKLY_HOURS.items():
            hours = db.query(WorkingHours).filter_by(day_of_week=day).first()
            if not hours:
                hours = WorkingHours(day_of_week=day)
                db.add(hours)
            hours.start_time = start
            hours.end_time = end
            hours.is_available = is_available

        admin_settings = db.query(AdminSettings).order_by(AdminSettings.id).first()
        if not admin_settings:
            db.add(AdminSettings(
                appointment_duration_minutes=settings.DEFAULT_APPOINTMENT_DURATION_MINUTES,
                buffer_minutes=settings.DEFAULT_BUFFER_MINUTES,
                advance_booking_days=settings.DEFAULT_ADVANCE_BOOKING_DAYS,
                timezone=settings.DEFAULT_TIMEZONE,
            ))

        db.commit()
        print("✅ Working hours and booking settings seeded successfully!")

    except Exception as e:
        db.rollback()
        print("❌ Error seeding booking config:", e)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_booking_config()
