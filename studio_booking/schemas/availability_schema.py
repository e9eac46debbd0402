"""Calendar availability models."""

from pydantic import BaseModel, ConfigDict


class DayAvailability(BaseModel):
    """Availability of a single calendar day. Built fresh per query."""

    model_config = ConfigDict(frozen=True)

    date: str
    is_available: bool
    booked_count: int = 0
    available_slots: tuple[str, ...] = ()
    total_slots: int = 0

    @classmethod
    def rest_day(cls, date: str) -> "DayAvailability":
        """A day with no configured slots."""
        return cls(date=date, is_available=False, booked_count=0, available_slots=(), total_slots=0)
