"""
In-memory booking store.

Used by tests and the console demo. Mirrors the tables of the hosted
store (availabilities, customers, bookings) and enforces the one
non-cancelled booking per (date, time) rule on insert.
"""

import copy
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from studio_booking.errors import StoreError
from studio_booking.schemas.booking_schema import Booking, BookingStatus
from studio_booking.schemas.customer_schema import Customer

logger = logging.getLogger(__name__)

DEMO_SLOTS = ["11:00", "15:30", "20:00"]
DEMO_DAYS = 45


class InMemoryStore:
    """Dict-backed implementation of the BookingStore protocol."""

    def __init__(
        self,
        slot_config: Optional[dict[str, list[str]]] = None,
        customers: Optional[list[dict[str, Any]]] = None,
    ) -> None:
        self._slot_config: dict[str, list[str]] = dict(slot_config or {})
        self._customers: dict[str, dict[str, Any]] = {}
        self._bookings: dict[str, dict[str, Any]] = {}
        for row in customers or []:
            self._customers[row["user_id"]] = self._new_customer_row(row)

    # ------------------------------------------------------------------ #
    # BookingStore protocol
    # ------------------------------------------------------------------ #

    async def get_configured_slots(self, start: date, end: date) -> dict[str, list[str]]:
        lo, hi = start.isoformat(), end.isoformat()
        return {d: list(slots) for d, slots in self._slot_config.items() if lo <= d <= hi}

    async def get_occupied_slots(self, start: date, end: date) -> list[tuple[str, str]]:
        lo, hi = start.isoformat(), end.isoformat()
        return [
            (row["booking_date"], row["booking_time"])
            for row in self._bookings.values()
            if lo <= row["booking_date"] <= hi and row["status"] != BookingStatus.CANCELLED.value
        ]

    async def get_customer(self, user_id: str) -> Optional[Customer]:
        row = self._customers.get(user_id)
        return Customer(**row) if row else None

    async def upsert_customer(self, payload: dict[str, Any], conflict_key: str = "user_id") -> None:
        key = payload.get(conflict_key)
        if not key:
            raise StoreError(f"Customer payload is missing conflict key '{conflict_key}'")
        existing = self._customers.get(key)
        if existing is None:
            self._customers[key] = self._new_customer_row(payload)
            logger.info("Customer created: %s", key)
        else:
            existing.update(payload)
            logger.debug("Customer updated: %s", key)

    async def insert_booking(self, payload: dict[str, Any]) -> str:
        for field_name in ("user_id", "booking_date", "booking_time"):
            if not payload.get(field_name):
                raise StoreError(f"Booking payload is missing '{field_name}'")
        if self._slot_taken(payload["booking_date"], payload["booking_time"]):
            raise StoreError(
                f"Slot {payload['booking_date']} {payload['booking_time']} is already booked"
            )
        booking_id = uuid.uuid4().hex
        row = {
            "id": booking_id,
            "status": BookingStatus.CONFIRMED.value,
            "remove_gel": False,
            "modification_count": 0,
            "customer_name_snapshot": "",
            "customer_phone_snapshot": "",
            "service_type": "",
            **payload,
            "created_at": datetime.now(timezone.utc),
        }
        self._bookings[booking_id] = row
        logger.info(
            "Booking stored: %s for %s on %s at %s",
            booking_id, row["user_id"], row["booking_date"], row["booking_time"],
        )
        return booking_id

    async def list_bookings(self, user_id: str) -> list[Booking]:
        rows = [r for r in self._bookings.values() if r["user_id"] == user_id]
        rows.sort(key=lambda r: (r["booking_date"], r["booking_time"]), reverse=True)
        return [Booking(**r) for r in rows]

    # ------------------------------------------------------------------ #
    # Admin-side helpers (outside the booking flow)
    # ------------------------------------------------------------------ #

    def set_day_slots(self, day: str, slots: list[str]) -> None:
        """Open a day with the given slots. An empty list closes it."""
        if slots:
            self._slot_config[day] = list(slots)
        else:
            self._slot_config.pop(day, None)

    def set_blacklisted(self, user_id: str, blacklisted: bool = True) -> None:
        if user_id not in self._customers:
            self._customers[user_id] = self._new_customer_row({"user_id": user_id})
        self._customers[user_id]["is_blacklisted"] = blacklisted

    def set_booking_status(self, booking_id: str, status: BookingStatus) -> None:
        if booking_id not in self._bookings:
            raise StoreError(f"Booking {booking_id} not found")
        self._bookings[booking_id]["status"] = status.value

    def customer_row(self, user_id: str) -> Optional[dict[str, Any]]:
        """Raw stored customer row, for inspection."""
        row = self._customers.get(user_id)
        return copy.deepcopy(row) if row else None

    def seed_demo(self, today: date, slots: Optional[list[str]] = None) -> None:
        """Open every day except Sundays for the next DEMO_DAYS days."""
        for offset in range(DEMO_DAYS):
            day = today + timedelta(days=offset)
            if day.weekday() == 6:
                continue
            self.set_day_slots(day.isoformat(), slots or DEMO_SLOTS)

    def reset(self) -> None:
        """Clear all data. Used by test fixtures for isolation."""
        self._slot_config.clear()
        self._customers.clear()
        self._bookings.clear()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _slot_taken(self, booking_date: str, booking_time: str) -> bool:
        return any(
            r["booking_date"] == booking_date
            and r["booking_time"] == booking_time
            and r["status"] != BookingStatus.CANCELLED.value
            for r in self._bookings.values()
        )

    @staticmethod
    def _new_customer_row(payload: dict[str, Any]) -> dict[str, Any]:
        row: dict[str, Any] = {
            "name": "",
            "phone": "",
            "member_code": None,
            "is_blacklisted": False,
        }
        row.update(payload)
        return row
