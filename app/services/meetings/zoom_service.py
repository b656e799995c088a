# ===== app/services/meetings/zoom_service.py =====
import logging
import time
from functools import lru_cache
from datetime import timezone
from typing import Optional

import httpx
from pydantic import ValidationError

from app.config.settings import Settings, get_settings
from app.schemas.calendar_events import (
    MeetingDetails,
    MeetingRequest,
    ZoomMeetingResponse,
    ZoomTokenResponse,
)
from app.services.appointment.exceptions import MeetingProvisioningError

logger = logging.getLogger(__name__)

SCHEDULED_MEETING = 2


def credentials_present(settings: Settings) -> bool:
    return all([settings.ZOOM_ACCOUNT_ID, settings.ZOOM_CLIENT_ID, settings.ZOOM_CLIENT_SECRET])


class ZoomMeetingService:
    """
    Creates scheduled Zoom meetings through a server-to-server OAuth app.

    Every failure (missing credentials, token exchange, API error, timeout,
    unexpected payload) is raised as MeetingProvisioningError; nothing is
    persisted locally.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.Client] = None):
        self.settings = settings or get_settings()
        self.client = client or httpx.Client(timeout=self.settings.ZOOM_TIMEOUT_SECONDS)
        self._access_token: Optional[str] = None
        self._token_expires_at: float = 0.0

    @property
    def is_configured(self) -> bool:
        return credentials_present(self.settings)

    def get_access_token(self) -> str:
        """Account-credentials grant; the token is cached until shortly before expiry"""
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        if not self.is_configured:
            raise MeetingProvisioningError("Missing Zoom API credentials")

        try:
            response = self.client.post(
                self.settings.ZOOM_OAUTH_URL,
                auth=(self.settings.ZOOM_CLIENT_ID, self.settings.ZOOM_CLIENT_SECRET),
                data={
                    "grant_type": "account_credentials",
                    "account_id": self.settings.ZOOM_ACCOUNT_ID,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Zoom OAuth request failed: {e}")
            raise MeetingProvisioningError(f"Zoom OAuth request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Zoom OAuth error: {response.status_code} {response.text}")
            raise MeetingProvisioningError(f"Failed to get Zoom access token ({response.status_code})")

        try:
            token = ZoomTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise MeetingProvisioningError("Unexpected Zoom OAuth response") from e

        self._access_token = token.access_token
        self._token_expires_at = time.monotonic() + max(token.expires_in - 60, 0)
        return self._access_token

    def create_meeting(self, request: MeetingRequest) -> MeetingDetails:
        """Schedule a meeting and return its join link"""
        access_token = self.get_access_token()

        # Zoom expects UTC as yyyy-MM-ddTHH:mm:ssZ; the timezone field drives display
        start_time = request.start_time.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        payload = {
            "topic": request.topic,
            "type": SCHEDULED_MEETING,
            "start_time": start_time,
            "duration": request.duration_minutes,
            "timezone": request.timezone,
            "agenda": f"Call with {request.guest_name}",
            "settings": {
                "host_video": True,
                "participant_video": True,
                "join_before_host": False,
                "waiting_room": True,
                "meeting_authentication": False,
                "meeting_invitees": [{"email": request.guest_email}],
            },
        }

        try:
            response = self.client.post(
                f"{self.settings.ZOOM_API_BASE_URL}/users/me/meetings",
                headers={"Authorization": f"Bearer {access_token}"},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error(f"Zoom meeting request failed: {e}")
            raise MeetingProvisioningError(f"Zoom meeting request failed: {e}") from e

        if response.status_code not in (200, 201):
            logger.error(f"Zoom API error: {response.status_code} {response.text}")
            raise MeetingProvisioningError(f"Failed to create Zoom meeting ({response.status_code})")

        try:
            meeting = ZoomMeetingResponse.model_validate(response.json()).to_details()
        except (ValueError, ValidationError) as e:
            raise MeetingProvisioningError("Unexpected Zoom meeting response") from e

        logger.info(f"Zoom meeting created: {meeting.meeting_id}")
        return meeting

    def delete_meeting(self, meeting_id: str) -> bool:
        """Delete a meeting; a meeting that no longer exists counts as deleted"""
        access_token = self.get_access_token()

        try:
            response = self.client.delete(
                f"{self.settings.ZOOM_API_BASE_URL}/meetings/{meeting_id}",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise MeetingProvisioningError(f"Zoom delete request failed: {e}") from e

        if response.status_code in (200, 204, 404):
            logger.info(f"Zoom meeting deleted: {meeting_id}")
            return True

        raise MeetingProvisioningError(f"Failed to delete Zoom meeting ({response.status_code})")

    def close(self):
        """Close the HTTP client"""
        self.client.close()


@lru_cache()
def get_meeting_service() -> ZoomMeetingService:
    """Process-wide instance so the OAuth token and connection pool are reused across requests"""
    return ZoomMeetingService()


def close_meeting_service() -> None:
    if get_meeting_service.cache_info().currsize:
        get_meeting_service().close()
        get_meeting_service.cache_clear()
