"""Health checks"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.redis import ping_redis
from app.config.settings import get_settings
from app.services.calendar.google_calendar_service import GoogleCalendarService
from app.services.meetings.zoom_service import credentials_present

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Liveness"""
    return {"status": "healthy", "service": get_settings().APP_NAME}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Database and Redis reachability plus integration configuration.

    Integrations are reported as configured/unconfigured only; no call is
    made to Google or Zoom from here.
    """
    settings = get_settings()
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = "unhealthy"

    try:
        await ping_redis()
        checks["redis"] = "healthy"
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        checks["redis"] = "unhealthy"

    checks["overall"] = "healthy" if all(v == "healthy" for v in checks.values()) else "degraded"
    checks["integrations"] = {
        "google_calendar": "configured" if GoogleCalendarService(settings).is_configured else "unconfigured",
        "zoom": "configured" if credentials_present(settings) else "unconfigured",
    }

    return checks
