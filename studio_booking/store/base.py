"""Protocol for the booking data store. Every implementation raises StoreError on failure."""

from datetime import date
from typing import Any, Optional, Protocol

from studio_booking.schemas.booking_schema import Booking
from studio_booking.schemas.customer_schema import Customer


class BookingStore(Protocol):
    """Data-access interface used by the resolver, the submitter and history."""

    async def get_configured_slots(self, start: date, end: date) -> dict[str, list[str]]:
        """Admin-configured slots per ``YYYY-MM-DD`` date in [start, end]."""
        ...

    async def get_occupied_slots(self, start: date, end: date) -> list[tuple[str, str]]:
        """(date, slot) pairs held by non-cancelled bookings in [start, end]."""
        ...

    async def get_customer(self, user_id: str) -> Optional[Customer]:
        ...

    async def upsert_customer(self, payload: dict[str, Any], conflict_key: str = "user_id") -> None:
        """Insert the customer or merge the payload into the existing row."""
        ...

    async def insert_booking(self, payload: dict[str, Any]) -> str:
        """Insert a booking row and return its id."""
        ...

    async def list_bookings(self, user_id: str) -> list[Booking]:
        """All bookings of a customer, newest date and time first."""
        ...
