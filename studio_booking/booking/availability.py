"""
Monthly availability resolution.

Merges the admin's slot configuration (a whitelist: an unconfigured day
is closed) with the slots already held by non-cancelled bookings, and
produces one DayAvailability per calendar day of the month.
"""

import calendar
import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

from studio_booking.config import settings
from studio_booking.errors import ConfigFetchError, OccupancyFetchError, StoreError
from studio_booking.schemas.availability_schema import DayAvailability
from studio_booking.store.base import BookingStore

logger = logging.getLogger(__name__)


def month_range(year: int, month: int) -> tuple[date, date]:
    """Inclusive first and last day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def build_day(day: str, configured: list[str], occupied: set[str]) -> DayAvailability:
    """Availability of one day from its configured and occupied slots."""
    configured_set = set(configured)
    if not configured_set:
        return DayAvailability.rest_day(day)
    available = sorted(configured_set - occupied)
    return DayAvailability(
        date=day,
        is_available=len(available) > 0,
        booked_count=len(configured_set & occupied),
        available_slots=tuple(available),
        total_slots=len(configured_set),
    )


class AvailabilityResolver:
    """Builds the per-day availability grid for a month."""

    def __init__(self, store: BookingStore, fail_closed_on_occupancy: Optional[bool] = None) -> None:
        self._store = store
        if fail_closed_on_occupancy is None:
            fail_closed_on_occupancy = settings.rules.occupancy_fail_closed
        self._fail_closed = fail_closed_on_occupancy

    async def resolve(self, year: int, month: int) -> list[DayAvailability]:
        """
        Return one DayAvailability per day of the month, ascending.

        Raises:
            ConfigFetchError: the slot configuration could not be loaded.
            OccupancyFetchError: occupied slots could not be loaded and the
                resolver is configured to fail closed.
        """
        start, end = month_range(year, month)

        try:
            configured = await self._store.get_configured_slots(start, end)
        except StoreError as e:
            logger.error("Slot configuration fetch failed for %04d-%02d: %s", year, month, e)
            raise ConfigFetchError(f"Cannot load schedule for {year:04d}-{month:02d}") from e

        occupied_by_day: dict[str, set[str]] = defaultdict(set)
        try:
            for day, slot in await self._store.get_occupied_slots(start, end):
                occupied_by_day[day].add(slot)
        except StoreError as e:
            if self._fail_closed:
                logger.error("Occupied slot fetch failed for %04d-%02d: %s", year, month, e)
                raise OccupancyFetchError(
                    f"Cannot load bookings for {year:04d}-{month:02d}"
                ) from e
            logger.warning(
                "Occupied slot fetch failed for %04d-%02d, assuming no bookings: %s",
                year, month, e,
            )
            occupied_by_day.clear()

        days: list[DayAvailability] = []
        current = start
        while current <= end:
            key = current.isoformat()
            days.append(build_day(key, configured.get(key) or [], occupied_by_day.get(key, set())))
            current += timedelta(days=1)

        open_days = sum(1 for d in days if d.is_available)
        logger.debug("Resolved %04d-%02d: %d open days", year, month, open_days)
        return days


class CalendarView:
    """
    The month currently on screen plus every day loaded so far.

    Loads may complete out of order when the user flips months quickly;
    a result for a month that is no longer displayed is dropped.
    """

    def __init__(self, resolver: AvailabilityResolver, year: int, month: int) -> None:
        self._resolver = resolver
        self.year = year
        self.month = month
        self.load_error: Optional[str] = None
        self._days: dict[str, DayAvailability] = {}

    @property
    def displayed(self) -> tuple[int, int]:
        return self.year, self.month

    def show(self, year: int, month: int) -> None:
        """Switch the displayed month. Does not load it."""
        self.year, self.month = year, month
        self.load_error = None

    async def load(self, year: Optional[int] = None, month: Optional[int] = None) -> bool:
        """
        Load a month and merge it if it is still displayed when the fetch returns.

        Returns True when the result was merged. A ConfigFetchError is
        recorded in ``load_error`` instead of being raised so the caller
        can show a "cannot load schedule" state.
        """
        requested = (year or self.year, month or self.month)
        try:
            days = await self._resolver.resolve(*requested)
        except (ConfigFetchError, OccupancyFetchError) as e:
            if requested == self.displayed:
                self.load_error = str(e)
            return False
        return self.apply(requested, days)

    def apply(self, requested: tuple[int, int], days: list[DayAvailability]) -> bool:
        """Merge a resolved month unless the view has moved on."""
        if requested != self.displayed:
            logger.debug(
                "Discarding stale availability for %04d-%02d (showing %04d-%02d)",
                requested[0], requested[1], self.year, self.month,
            )
            return False
        self.load_error = None
        self._days.update({d.date: d for d in days})
        return True

    def get_day(self, day: date) -> Optional[DayAvailability]:
        """Loaded availability for a day, or None if not loaded yet."""
        return self._days.get(day.isoformat())

    def month_days(self) -> list[Optional[DayAvailability]]:
        """Availability for each day of the displayed month (None if not loaded)."""
        start, end = month_range(self.year, self.month)
        return [self._days.get((start + timedelta(days=i)).isoformat()) for i in range((end - start).days + 1)]
