"""Booking data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingDraft(BaseModel):
    """A completed booking form, ready to submit."""
    user_id: str = Field(min_length=1)
    member_code: str = ""
    date: str
    time: str
    name: str
    phone: str
    service_type: str
    remove_gel: bool
    display_name: Optional[str] = None


class Booking(BaseModel):
    """Stored booking row. Nullable columns arrive as None and fall back to defaults."""
    id: str
    user_id: str
    booking_date: str
    booking_time: str
    service_type: str = ""
    remove_gel: bool = False
    status: BookingStatus = BookingStatus.CONFIRMED
    created_at: datetime
    customer_name_snapshot: str = ""
    customer_phone_snapshot: str = ""
    modification_count: int = 0

    @field_validator("service_type", "customer_name_snapshot", "customer_phone_snapshot", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v

    @field_validator("remove_gel", mode="before")
    @classmethod
    def _null_flag(cls, v):
        return False if v is None else v

    @field_validator("modification_count", mode="before")
    @classmethod
    def _null_count(cls, v):
        return 0 if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def _null_status(cls, v):
        return BookingStatus.CONFIRMED if v is None else v


class SubmissionResult(BaseModel):
    """Outcome of a successful submission."""
    success: bool
    booking_id: Optional[str] = None
    member_code: Optional[str] = None
