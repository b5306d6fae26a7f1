# -------------------- Conversions API sink --------------------
import logging
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .errors import MissingCredentialError
from .models import DispatchResponse

logger = logging.getLogger(__name__)

TIMEOUT_STATUS = 504  # synthetic status for timeouts / connection errors


def build_server_event(event_name: str, event_time: int, event_id: str, custom_data: Dict[str, Any],
                       user_data: Optional[Dict[str, Any]] = None,
                       event_source_url: Optional[str] = None) -> Dict[str, Any]:
    ev = {
        "event_name": event_name,
        "event_time": int(event_time),
        "event_id": event_id,
        "action_source": "website",
        "user_data": dict(user_data or {}),
    }
    if event_source_url:
        ev["event_source_url"] = event_source_url
    if custom_data:
        ev["custom_data"] = custom_data
    return ev


class CapiClient:
    """Posts server events to /{pixel_id}/events. Timeouts come back as a 504 response, not an exception."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()

    def events_url(self, pixel_id: str) -> str:
        return f"{self.settings.graph_base_url}/{pixel_id}/events"

    def dispatch_conversion_event(self, pixel_id: str, server_events: List[Dict[str, Any]], credential: str,
                                  test_event_code: Optional[str] = None) -> DispatchResponse:
        if not credential:
            raise MissingCredentialError(pixel_id)

        payload: Dict[str, Any] = {"data": server_events}
        if test_event_code:
            payload["test_event_code"] = test_event_code
        try:
            r = self.session.post(
                self.events_url(pixel_id),
                params={"access_token": credential},
                json=payload,
                timeout=self.settings.capi_timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            logger.warning("CAPI request did not complete: %s", e, extra={"pixel_id": pixel_id})
            return DispatchResponse(TIMEOUT_STATUS, {"error": {"message": str(e)}}, timed_out=True)

        try:
            body = r.json()
        except ValueError:
            body = {"text": (r.text or "")[:400]}
        if not isinstance(body, dict):
            body = {"data": body}
        return DispatchResponse(r.status_code, body)
