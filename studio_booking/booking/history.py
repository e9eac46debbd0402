"""A customer's booking history, newest first."""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from studio_booking.errors import StoreError
from studio_booking.schemas.booking_schema import Booking, BookingStatus
from studio_booking.services import get_service_label
from studio_booking.store.base import BookingStore
from studio_booking.utils import parse_date

logger = logging.getLogger(__name__)


class HistoryStatus(str, Enum):
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class HistoryEntry:
    booking: Booking
    status: HistoryStatus
    service_label: str


def display_status(booking: Booking, today: date) -> HistoryStatus:
    """Cancelled wins; otherwise a booking dated before today counts as completed."""
    if booking.status == BookingStatus.CANCELLED:
        return HistoryStatus.CANCELLED
    if booking.status == BookingStatus.COMPLETED or parse_date(booking.booking_date) < today:
        return HistoryStatus.COMPLETED
    return HistoryStatus.UPCOMING


async def fetch_history(
    store: BookingStore, user_id: str, today: Optional[date] = None
) -> list[HistoryEntry]:
    """Bookings for a customer. A failed fetch is logged and yields an empty list."""
    try:
        bookings = await store.list_bookings(user_id)
    except StoreError as e:
        logger.error("Error fetching history for %s: %s", user_id, e)
        return []
    today = today or date.today()
    return [
        HistoryEntry(
            booking=b,
            status=display_status(b, today),
            service_label=get_service_label(b.service_type),
        )
        for b in bookings
    ]
