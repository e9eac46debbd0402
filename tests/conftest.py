"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Any, Optional

import pytest

from studio_booking.booking.availability import AvailabilityResolver
from studio_booking.booking.cutoff import SelectionFilter
from studio_booking.booking.notification import RecordingNotifier
from studio_booking.booking.submission import BookingSubmitter
from studio_booking.errors import StoreError
from studio_booking.flow.form import BookingForm
from studio_booking.flow.state_machine import BookingFlowStateMachine
from studio_booking.schemas.booking_schema import BookingDraft
from studio_booking.store.memory import InMemoryStore

STUDIO_SLOTS = ["11:00", "15:30", "20:00"]


class FailingStore(InMemoryStore):
    """InMemoryStore whose listed methods raise StoreError."""

    def __init__(self, *args: Any, fail_on: tuple[str, ...] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fail_on = set(fail_on)

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise StoreError(f"{method} unavailable")

    async def get_configured_slots(self, start: date, end: date) -> dict[str, list[str]]:
        self._check("get_configured_slots")
        return await super().get_configured_slots(start, end)

    async def get_occupied_slots(self, start: date, end: date) -> list[tuple[str, str]]:
        self._check("get_occupied_slots")
        return await super().get_occupied_slots(start, end)

    async def get_customer(self, user_id: str):
        self._check("get_customer")
        return await super().get_customer(user_id)

    async def upsert_customer(self, payload: dict[str, Any], conflict_key: str = "user_id") -> None:
        self._check("upsert_customer")
        await super().upsert_customer(payload, conflict_key)

    async def insert_booking(self, payload: dict[str, Any]) -> str:
        self._check("insert_booking")
        return await super().insert_booking(payload)

    async def list_bookings(self, user_id: str):
        self._check("list_bookings")
        return await super().list_bookings(user_id)


@pytest.fixture
def store():
    return InMemoryStore(
        slot_config={
            "2024-05-20": list(STUDIO_SLOTS),
            "2024-05-21": ["15:30", "11:00"],
            "2024-05-22": ["11:00"],
        }
    )


@pytest.fixture
def resolver(store):
    return AvailabilityResolver(store, fail_closed_on_occupancy=False)


@pytest.fixture
def selection_filter():
    return SelectionFilter(lead_hours=48, next_month_open_day=15)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def submitter(store, notifier):
    return BookingSubmitter(store, notifier)


@pytest.fixture
def booking_form():
    return BookingForm()


@pytest.fixture
def flow():
    return BookingFlowStateMachine()


@pytest.fixture
def now():
    return datetime(2024, 5, 18, 10, 0)


def make_draft(
    user_id: str = "U0001",
    member_code: str = "CN-ABCD",
    day: str = "2024-05-20",
    time: str = "15:30",
    name: str = "Lin Mei",
    phone: str = "0912345678",
    service_type: str = "magnetic",
    remove_gel: bool = True,
    display_name: Optional[str] = None,
) -> BookingDraft:
    """Helper to create a BookingDraft with sensible defaults."""
    return BookingDraft(
        user_id=user_id,
        member_code=member_code,
        date=day,
        time=time,
        name=name,
        phone=phone,
        service_type=service_type,
        remove_gel=remove_gel,
        display_name=display_name,
    )


async def book(store: InMemoryStore, day: str, time: str, user_id: str = "U0099") -> str:
    """Insert a confirmed booking directly into the store."""
    return await store.insert_booking(
        {"user_id": user_id, "booking_date": day, "booking_time": time, "service_type": "magnetic"}
    )
