"""
Booking submission: customer upsert, booking insert, then notification.

The two writes are sequential and not atomic. If the booking insert
fails the customer row keeps the refreshed name and phone; that is
harmless because the next attempt writes the same values again. The
notification runs as a detached task and can never fail a submission.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from studio_booking.booking.notification import Notifier, build_notification_payload
from studio_booking.errors import BookingWriteError, CustomerWriteError, StoreError
from studio_booking.schemas.booking_schema import BookingDraft, BookingStatus, SubmissionResult
from studio_booking.store.base import BookingStore

logger = logging.getLogger(__name__)


def build_customer_payload(draft: BookingDraft, now: Optional[datetime] = None) -> dict[str, Any]:
    """Customer upsert payload. is_blacklisted is never written from here."""
    payload: dict[str, Any] = {
        "user_id": draft.user_id,
        "name": draft.name,
        "phone": draft.phone,
        "updated_at": (now or datetime.now(timezone.utc)).isoformat(),
    }
    # An empty code would clobber the one already stored for a returning customer.
    if draft.member_code:
        payload["member_code"] = draft.member_code
    return payload


def build_booking_payload(draft: BookingDraft) -> dict[str, Any]:
    return {
        "user_id": draft.user_id,
        "customer_name_snapshot": draft.name,
        "customer_phone_snapshot": draft.phone,
        "service_type": draft.service_type,
        "booking_date": draft.date,
        "booking_time": draft.time,
        "remove_gel": draft.remove_gel,
        "status": BookingStatus.CONFIRMED.value,
        "modification_count": 0,
    }


class BookingSubmitter:
    """Runs the submission transaction against a store."""

    def __init__(self, store: BookingStore, notifier: Notifier) -> None:
        self._store = store
        self._notifier = notifier
        self._pending: set[asyncio.Task] = set()

    async def submit(self, draft: BookingDraft) -> SubmissionResult:
        """
        Persist the customer and the booking, then fire the notification.

        Raises:
            CustomerWriteError: the customer upsert failed; nothing was written.
            BookingWriteError: the booking insert failed after the upsert.
        """
        logger.info("Submitting booking for %s on %s at %s", draft.user_id, draft.date, draft.time)

        try:
            await self._store.upsert_customer(build_customer_payload(draft), conflict_key="user_id")
        except StoreError as e:
            logger.error("Customer upsert failed for %s: %s", draft.user_id, e)
            raise CustomerWriteError("Could not save customer details") from e

        try:
            booking_id = await self._store.insert_booking(build_booking_payload(draft))
        except StoreError as e:
            logger.error(
                "Booking insert failed for %s after customer upsert (customer row kept): %s",
                draft.user_id, e,
            )
            raise BookingWriteError("Could not save booking") from e

        self._dispatch_notification(build_notification_payload(draft, booking_id))
        return SubmissionResult(success=True, booking_id=booking_id, member_code=draft.member_code or None)

    def _dispatch_notification(self, payload: dict[str, Any]) -> None:
        task = asyncio.create_task(self._notify(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, payload: dict[str, Any]) -> None:
        try:
            await self._notifier.send(payload)
        except Exception as e:
            logger.warning("Booking notification failed for %s: %s", payload.get("booking_id"), e)

    async def drain_notifications(self) -> None:
        """Wait for notifications still in flight (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
