# app/services/notifier.py
"""
SMS notifier — tells the configured phone number that a motion event was
captured, via the Twilio REST API.

POST {TWILIO_API_URL}/2010-04-01/Accounts/{sid}/Messages.json
Auth: HTTP basic (sid, token). Form fields: From, To, Body.
"""

from typing import Optional

import httpx

from app.errors import NotificationError
from app.models.event import Event
from app.utils.logger import get_logger

logger = get_logger(__name__)

MESSAGES_PATH = "/2010-04-01/Accounts/{sid}/Messages.json"


def format_message(event: Event) -> str:
    captured = event.time.strftime("%Y-%m-%d %H:%M:%S") if event.time else "unknown time"
    return f"Motion event '{event.name}' captured at {captured}."


class TwilioNotifier:
    def __init__(
        self,
        sid: Optional[str],
        token: Optional[str],
        from_number: Optional[str],
        to_number: Optional[str],
        api_url: str = "https://api.twilio.com",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.sid = sid
        self.token = token
        self.from_number = from_number
        self.to_number = to_number
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return all((self.sid, self.token, self.from_number, self.to_number))

    def notify(self, event: Event):
        """Send one SMS about the event. Raises NotificationError on any failure."""
        if not self.configured:
            raise NotificationError("SMS credentials not configured")

        url = self.api_url + MESSAGES_PATH.format(sid=self.sid)
        body = {"From": self.from_number, "To": self.to_number, "Body": format_message(event)}

        try:
            with httpx.Client(auth=(self.sid, self.token), timeout=self.timeout,
                              transport=self.transport) as client:
                response = client.post(url, data=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NotificationError(f"SMS to {self.to_number} failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationError(
                f"SMS to {self.to_number} rejected: HTTP {response.status_code}"
            )

        logger.info(f"[NOTIFY] SMS sent to {self.to_number} for event {event.id}")
