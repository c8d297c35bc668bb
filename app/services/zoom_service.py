"""
Zoom Meeting Service
Creates, moves and deletes the video meeting attached to an appointment.

Uses Server-to-Server OAuth (account credentials grant). When the Zoom
credentials are not set every call is a no-op that returns None, so local
development and tests run without Zoom.
"""
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import httpx

from ..config import ZOOM_ACCOUNT_ID, ZOOM_API_URL, ZOOM_CLIENT_ID, ZOOM_CLIENT_SECRET, ZOOM_TOKEN_URL
from ..domain.appointments.aggregate import Appointment
from ..domain.errors import ExternalServiceError, InvalidOperationError
from ..domain.state_machine import utcnow

logger = logging.getLogger(__name__)

SCHEDULED_MEETING = 2
PASSWORD_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True)
class ZoomMeeting:
    id: str
    join_url: str
    start_time: Optional[str] = None
    duration: Optional[int] = None
    password: Optional[str] = None


def generate_meeting_password(length: int = 8) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


class ZoomClient:
    """Minimal async client for the Zoom meetings API"""

    def __init__(
        self,
        account_id: Optional[str] = ZOOM_ACCOUNT_ID,
        client_id: Optional[str] = ZOOM_CLIENT_ID,
        client_secret: Optional[str] = ZOOM_CLIENT_SECRET,
        api_url: str = ZOOM_API_URL,
        token_url: str = ZOOM_TOKEN_URL,
        timeout: float = 30.0,
    ):
        self.account_id = account_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_url = api_url.rstrip("/")
        self.token_url = token_url
        self.timeout = timeout
        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None

    def is_configured(self) -> bool:
        return bool(self.account_id and self.client_id and self.client_secret)

    async def _get_access_token(self, http_client: httpx.AsyncClient) -> str:
        """Fetch a token, reusing the cached one until five minutes before it expires"""
        if self._access_token and self._token_expires_at and self._token_expires_at > utcnow() + timedelta(minutes=5):
            return self._access_token

        logger.info("🔄 Requesting Zoom access token")
        response = await http_client.post(
            self.token_url,
            params={"grant_type": "account_credentials", "account_id": self.account_id},
            auth=(self.client_id, self.client_secret),
        )
        if response.status_code != 200:
            logger.error(f"❌ Zoom token request failed: {response.status_code} {response.text}")
            raise ExternalServiceError("Could not authenticate with Zoom")

        tokens = response.json()
        self._access_token = tokens["access_token"]
        self._token_expires_at = utcnow() + timedelta(seconds=int(tokens.get("expires_in", 3600)))
        return self._access_token

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as http_client:
                token = await self._get_access_token(http_client)
                return await http_client.request(
                    method,
                    f"{self.api_url}{path}",
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Zoom {method} {path} failed: {e}")
            raise ExternalServiceError("Zoom is unavailable") from e

    async def create_meeting(self, payload: Dict[str, Any]) -> ZoomMeeting:
        response = await self._request("POST", "/users/me/meetings", payload)
        if response.status_code != 201:
            logger.error(f"❌ Failed to create Zoom meeting: {response.status_code} {response.text}")
            raise ExternalServiceError("Failed to create Zoom meeting")

        data = response.json()
        return ZoomMeeting(
            id=str(data["id"]),
            join_url=data["join_url"],
            start_time=data.get("start_time"),
            duration=data.get("duration"),
            password=data.get("password"),
        )

    async def update_meeting(self, meeting_id: str, payload: Dict[str, Any]) -> None:
        response = await self._request("PATCH", f"/meetings/{meeting_id}", payload)
        if response.status_code != 204:
            logger.error(f"❌ Failed to update Zoom meeting {meeting_id}: {response.status_code} {response.text}")
            raise ExternalServiceError("Failed to update Zoom meeting")

    async def delete_meeting(self, meeting_id: str) -> None:
        response = await self._request("DELETE", f"/meetings/{meeting_id}")
        # 404 means it is already gone
        if response.status_code not in (204, 404):
            logger.error(f"❌ Failed to delete Zoom meeting {meeting_id}: {response.status_code} {response.text}")
            raise ExternalServiceError("Failed to delete Zoom meeting")


def _meeting_payload(appointment: Appointment, password: Optional[str] = None) -> Dict[str, Any]:
    patient = appointment.patient_info.patient_name
    settings: Dict[str, Any] = {
        "host_video": True,
        "participant_video": True,
        "join_before_host": False,
        "mute_upon_entry": True,
        "approval_type": 2,
        "waiting_room": True,
    }
    payload: Dict[str, Any] = {
        "topic": f"Appointment with {patient}",
        "type": SCHEDULED_MEETING,
        "start_time": appointment.appointment_date.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "duration": appointment.duration_in_minutes,
        "timezone": "UTC",
        "agenda": f"Consultation appointment for {patient}",
        "settings": settings,
    }
    if password:
        payload["password"] = password
    return payload


class AppointmentZoomService:
    """
    Keeps an appointment's Zoom meeting in step with the appointment.

    Methods update the aggregate in memory; the caller persists it.
    """

    def __init__(self, client: Optional[ZoomClient] = None):
        self.client = client or get_zoom_client()

    def is_enabled(self) -> bool:
        return self.client.is_configured()

    async def create_meeting_for(self, appointment: Appointment) -> Optional[str]:
        """Create a meeting and attach it; returns the join URL"""
        if not self.is_enabled():
            logger.info(f"ℹ️ Zoom not configured, no meeting for {appointment.appointment_number}")
            return None
        if appointment.has_zoom_meeting():
            raise InvalidOperationError("Appointment already has a Zoom meeting")

        meeting = await self.client.create_meeting(_meeting_payload(appointment, generate_meeting_password()))
        appointment.set_zoom_meeting(meeting.id, meeting.join_url)
        logger.info(f"✅ Zoom meeting {meeting.id} created for {appointment.appointment_number}")
        return meeting.join_url

    async def reschedule_meeting_for(self, appointment: Appointment) -> Optional[str]:
        """Move the existing meeting, or create one if the appointment has none"""
        if not self.is_enabled():
            return None
        if not appointment.has_zoom_meeting():
            return await self.create_meeting_for(appointment)

        await self.client.update_meeting(appointment.zoom_meeting_id, _meeting_payload(appointment))
        logger.info(f"✅ Zoom meeting {appointment.zoom_meeting_id} moved to {appointment.appointment_date}")
        return appointment.zoom_join_url

    async def cancel_meeting_for(self, appointment: Appointment) -> None:
        """Delete the meeting and detach it from the appointment"""
        if not self.is_enabled() or not appointment.has_zoom_meeting():
            return None

        meeting_id = appointment.zoom_meeting_id
        await self.client.delete_meeting(meeting_id)
        appointment.clear_zoom_meeting()
        logger.info(f"🗑️ Zoom meeting {meeting_id} deleted for {appointment.appointment_number}")
        return None


# One client per process so its OAuth token is shared between requests
_zoom_client: Optional[ZoomClient] = None


def get_zoom_client() -> ZoomClient:
    global _zoom_client
    if _zoom_client is None:
        _zoom_client = ZoomClient()
    return _zoom_client


def get_zoom_service() -> AppointmentZoomService:
    """Dependency injection for the Zoom integration"""
    return AppointmentZoomService(get_zoom_client())
