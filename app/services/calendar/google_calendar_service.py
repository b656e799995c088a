# app/services/calendar/google_calendar_service.py
import json
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import ValidationError

from app.config.settings import Settings, get_settings
from app.schemas.calendar_events import (
    BusyPeriod,
    CalendarBusyResult,
    CalendarSyncStatus,
    GoogleEvent,
    GoogleEventList,
)
from app.services.availability.intervals import from_minutes, merge_intervals

logger = logging.getLogger(__name__)

END_OF_DAY_MINUTES = 23 * 60 + 59


class GoogleCalendarService:
    """
    Read-only busy-period lookup against one or more Google calendars.

    Never raises to callers: every failure is folded into a
    CalendarBusyResult with a non-OK status so availability degrades to
    "ignore external busy periods" instead of blocking bookings.
    """
    SCOPES = ['https://www.googleapis.com/auth/calendar.readonly']

    def __init__(self, settings: Optional[Settings] = None, service=None):
        self.settings = settings or get_settings()
        self._service = service

    @property
    def calendar_ids(self) -> List[str]:
        return [cal_id for cal_id in self.settings.GOOGLE_CALENDAR_IDS if cal_id]

    @property
    def is_configured(self) -> bool:
        has_credentials = self._service is not None or bool(self.settings.GOOGLE_SERVICE_ACCOUNT_KEY)
        return has_credentials and bool(self.calendar_ids)

    def _get_service(self):
        """Build the Calendar v3 resource from the service account key"""
        if self._service is None:
            info = json.loads(self.settings.GOOGLE_SERVICE_ACCOUNT_KEY)
            credentials = service_account.Credentials.from_service_account_info(
                info,
                scopes=self.SCOPES,
                subject=self.settings.GOOGLE_IMPERSONATE_EMAIL or None,
            )
            self._service = build('calendar', 'v3', credentials=credentials, cache_discovery=False)
        return self._service

    def get_busy_periods(self, target_date: date, timezone_name: str) -> CalendarBusyResult:
        """Busy periods for one business-local day, merged and sorted"""
        if not self.is_configured:
            logger.info("Google Calendar not configured, returning empty busy periods")
            return CalendarBusyResult.degraded(CalendarSyncStatus.UNCONFIGURED)

        tz = ZoneInfo(timezone_name)
        day_start = datetime.combine(target_date, time.min, tzinfo=tz)
        day_end = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=tz)

        try:
            service = self._get_service()
        except (ValueError, KeyError, GoogleAuthError) as e:
            logger.error(f"Invalid Google service account configuration: {e}")
            return CalendarBusyResult.degraded(CalendarSyncStatus.UNAVAILABLE, "invalid service account key")

        events: List[GoogleEvent] = []
        failed_calendars = 0

        for calendar_id in self.calendar_ids:
            try:
                events.extend(self._list_events(service, calendar_id, day_start, day_end, timezone_name))
            except HttpError as e:
                # A single unreadable calendar should not hide the others
                failed_calendars += 1
                logger.error(f"Failed to fetch events from calendar {calendar_id}: {e}")
            except ValidationError as e:
                logger.error(f"Malformed event payload from calendar {calendar_id}: {e}")
                return CalendarBusyResult.degraded(CalendarSyncStatus.MALFORMED, str(e))
            except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as e:
                logger.error(f"Google Calendar unreachable: {e}")
                return CalendarBusyResult.degraded(CalendarSyncStatus.UNAVAILABLE, str(e))

        if failed_calendars == len(self.calendar_ids):
            return CalendarBusyResult.degraded(CalendarSyncStatus.UNAVAILABLE, "no calendar could be read")

        busy_periods = self.extract_busy_periods(events, target_date, tz)
        logger.info(f"Found {len(busy_periods)} busy periods on {target_date.isoformat()}")
        return CalendarBusyResult(status=CalendarSyncStatus.OK, busy_periods=busy_periods)

    @staticmethod
    def _list_events(service, calendar_id: str, day_start: datetime, day_end: datetime,
                     timezone_name: str) -> List[GoogleEvent]:
        events: List[GoogleEvent] = []
        page_token = None

        while True:
            response = service.events().list(
                calendarId=calendar_id,
                timeMin=day_start.isoformat(),
                timeMax=day_end.isoformat(),
                timeZone=timezone_name,
                singleEvents=True,
                orderBy='startTime',
                pageToken=page_token,
            ).execute()

            page = GoogleEventList.model_validate(response)
            events.extend(page.items)

            page_token = page.nextPageToken
            if not page_token:
                return events

    @staticmethod
    def extract_busy_periods(events: List[GoogleEvent], target_date: date, tz: ZoneInfo) -> List[BusyPeriod]:
        """
        Project timed events onto the target day.

        All-day and free/cancelled events are ignored. Events that start
        before or end after the target day are clipped to 00:00 / 23:59.
        """
        intervals = []

        for event in events:
            if event.is_all_day or not event.blocks_time:
                continue

            start = event.start.dateTime
            end = event.end.dateTime
            start = start.replace(tzinfo=tz) if start.tzinfo is None else start.astimezone(tz)
            end = end.replace(tzinfo=tz) if end.tzinfo is None else end.astimezone(tz)

            if end.date() < target_date or start.date() > target_date:
                continue

            start_minutes = 0 if start.date() < target_date else start.hour * 60 + start.minute
            if end.date() > target_date:
                end_minutes = END_OF_DAY_MINUTES
            else:
                end_minutes = end.hour * 60 + end.minute
                if end.second or end.microsecond:
                    end_minutes = min(end_minutes + 1, END_OF_DAY_MINUTES)

            if end_minutes > start_minutes:
                intervals.append((start_minutes, end_minutes))

        return [
            BusyPeriod(start=from_minutes(start), end=from_minutes(end))
            for start, end in merge_intervals(intervals)
        ]
