"""
Wall-clock rules applied on top of resolved availability.

A slot is only offered when it starts more than the lead time after
now, a past day is never selectable, and the next month only opens for
browsing once the current day of month reaches the configured threshold.
All times are naive local time.
"""

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

from studio_booking.booking.availability import month_range
from studio_booking.config import settings
from studio_booking.schemas.availability_schema import DayAvailability
from studio_booking.utils import parse_date, slot_instant

logger = logging.getLogger(__name__)


class DayState(str, Enum):
    """Why a day is or is not selectable."""

    PAST = "past"
    NOT_LOADED = "not_loaded"
    CLOSED = "closed"
    FULLY_BOOKED = "fully_booked"
    TOO_SOON = "too_soon"
    OPEN = "open"


def next_month(year: int, month: int) -> tuple[int, int]:
    return (year + 1, 1) if month == 12 else (year, month + 1)


def previous_month(year: int, month: int) -> tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


class SelectionFilter:
    """Decides which days and slots the customer may actually pick."""

    def __init__(
        self,
        lead_hours: Optional[int] = None,
        next_month_open_day: Optional[int] = None,
    ) -> None:
        self.lead_hours = settings.rules.lead_hours if lead_hours is None else lead_hours
        self.next_month_open_day = (
            settings.rules.next_month_open_day
            if next_month_open_day is None
            else next_month_open_day
        )

    # ------------------------------------------------------------------ #
    # Slots and days
    # ------------------------------------------------------------------ #

    def cutoff(self, now: datetime) -> datetime:
        """Earliest instant a slot may start after (exclusive)."""
        return now + timedelta(hours=self.lead_hours)

    def is_slot_offerable(self, day: date, slot: str, now: datetime) -> bool:
        return slot_instant(day, slot) > self.cutoff(now)

    def offerable_slots(self, availability: Optional[DayAvailability], now: datetime) -> list[str]:
        """Available slots that are still outside the lead-time window.

        Days that are not loaded yet have no offerable slots.
        """
        if availability is None:
            return []
        day = parse_date(availability.date)
        if day < now.date():
            return []
        return [s for s in availability.available_slots if self.is_slot_offerable(day, s, now)]

    def classify_day(
        self, day: date, availability: Optional[DayAvailability], now: datetime
    ) -> DayState:
        if day < now.date():
            return DayState.PAST
        if availability is None:
            return DayState.NOT_LOADED
        if availability.total_slots == 0:
            return DayState.CLOSED
        if not availability.available_slots:
            return DayState.FULLY_BOOKED
        if not self.offerable_slots(availability, now):
            return DayState.TOO_SOON
        return DayState.OPEN

    def is_day_selectable(
        self, day: date, availability: Optional[DayAvailability], now: datetime
    ) -> bool:
        return self.classify_day(day, availability, now) == DayState.OPEN

    # ------------------------------------------------------------------ #
    # Month window
    # ------------------------------------------------------------------ #

    def next_month_open(self, now: datetime) -> bool:
        return now.day >= self.next_month_open_day

    def visible_months(self, now: datetime) -> list[tuple[int, int]]:
        """Months the customer may browse, current month first."""
        months = [(now.year, now.month)]
        if self.next_month_open(now):
            months.append(next_month(now.year, now.month))
        return months

    def is_month_visible(self, year: int, month: int, now: datetime) -> bool:
        return (year, month) in self.visible_months(now)

    def max_bookable_date(self, now: datetime) -> date:
        """Last day of the furthest browsable month."""
        year, month = self.visible_months(now)[-1]
        return month_range(year, month)[1]

    def can_go_previous(self, year: int, month: int, now: datetime) -> bool:
        return self.is_month_visible(*previous_month(year, month), now)

    def can_go_next(self, year: int, month: int, now: datetime) -> bool:
        return self.is_month_visible(*next_month(year, month), now)
