"""Client publishing inventory events to the socket relay over HTTP."""

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from cidms_inventory.common.config.settings import settings
from cidms_inventory.common.exceptions.custom_exceptions import APIError
from cidms_inventory.common.utils.date_utils import now_utc
from cidms_inventory.inventory_domain.domain.services.event_publisher import IEventPublisher

logger = logging.getLogger(__name__)


class EventRelayApiClient(IEventPublisher):
    """Posts events to ``{EVENT_RELAY_URL}/events``; the relay fans them out to socket rooms.

    The session only exists between ``connect()`` and ``disconnect()``.
    """

    def __init__(
        self, base_url: Optional[str] = None, token: Optional[str] = None, timeout: Optional[int] = None
    ) -> None:
        self.base_url = base_url or settings.EVENT_RELAY_URL
        self.token = token or settings.EVENT_RELAY_TOKEN
        self.timeout = timeout or settings.EVENT_RELAY_TIMEOUT
        self.session: Optional[requests.Session] = None

    @property
    def is_connected(self) -> bool:
        return self.session is not None

    def connect(self) -> None:
        if self.session is not None:
            return
        if not self.base_url:
            raise APIError("EVENT_RELAY_URL is not set in environment variables.")

        session = requests.Session()
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
            backoff_factor=0.5,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=5, pool_maxsize=10)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"Content-Type": "application/json"})
        if self.token:
            session.headers.update({"Authorization": f"Bearer {self.token}"})

        self.session = session
        logger.info(f"Connected to event relay at {self.base_url}")

    def disconnect(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
            logger.info("Disconnected from event relay")

    def publish(self, event: str, payload: dict[str, Any]) -> None:
        if self.session is None:
            raise APIError(f"Cannot publish {event}: event relay client is not connected")

        url = f"{self.base_url.rstrip('/')}/events"
        body = {"event": event, "data": payload, "emittedAt": now_utc().isoformat()}

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise APIError(f"Publishing {event} timed out", original_exception=e)
        except requests.exceptions.RequestException as e:
            status_code = e.response.status_code if e.response is not None else None
            raise APIError(f"Error publishing {event}", original_exception=e, status_code=status_code)

        logger.debug(f"Published {event} to event relay")

    def __del__(self) -> None:
        """Clean up the session when the object is destroyed."""
        if getattr(self, "session", None) is not None:
            self.session.close()
