"""
Outbound booking notification.

One POST per successful booking to an automation webhook, which relays
the confirmation to the customer's LINE chat. If NOTIFY_WEBHOOK_URL is
not set, sending is a logged no-op.
"""

import logging
from typing import Any, Optional, Protocol

import httpx

from studio_booking.config import NotifyConfig, settings
from studio_booking.errors import NotificationError
from studio_booking.schemas.booking_schema import BookingDraft
from studio_booking.services import get_service_label

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def send(self, payload: dict[str, Any]) -> None:
        """Deliver one booking notification. Raises NotificationError on failure."""
        ...


def build_notification_payload(
    draft: BookingDraft, booking_id: Optional[str] = None
) -> dict[str, Any]:
    """Booking fields plus service label, member code and preferred display name."""
    return {
        "booking_id": booking_id,
        "user_id": draft.user_id,
        "member_code": draft.member_code,
        "display_name": draft.display_name or draft.name,
        "name": draft.name,
        "phone": draft.phone,
        "date": draft.date,
        "time": draft.time,
        "service_type": draft.service_type,
        "service_label": get_service_label(draft.service_type),
        "remove_gel": draft.remove_gel,
    }


class WebhookNotifier:
    """Posts the payload as JSON to the configured webhook."""

    def __init__(
        self,
        config: Optional[NotifyConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or settings.notify
        self._client = client

    async def send(self, payload: dict[str, Any]) -> None:
        url = self._config.webhook_url
        if not url:
            logger.debug("NOTIFY_WEBHOOK_URL not set; skipping notification")
            return
        try:
            if self._client is not None:
                resp = await self._client.post(url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_sec) as c:
                    resp = await c.post(url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook request failed: {e}") from e
        if not resp.is_success:
            raise NotificationError(
                f"Webhook returned {resp.status_code}: {resp.text[:200] if resp.text else ''}"
            )
        logger.info("Booking notification sent for %s", payload.get("booking_id"))


class RecordingNotifier:
    """Keeps payloads in memory instead of sending them. Used by the console demo and tests."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send(self, payload: dict[str, Any]) -> None:
        self.sent.append(payload)
