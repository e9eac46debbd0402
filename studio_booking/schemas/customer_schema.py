"""Customer data models."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, field_validator


class Customer(BaseModel):
    """Customer record from the store. Nullable columns arrive as None."""
    user_id: str
    name: str = ""
    phone: str = ""
    member_code: Optional[str] = None
    is_blacklisted: bool = False

    @field_validator("name", "phone", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v

    @field_validator("is_blacklisted", mode="before")
    @classmethod
    def _null_flag(cls, v):
        return False if v is None else v


@dataclass
class CustomerProfile:
    """
    What the booking page knows about the visitor before the form renders.

    Built once per session from the identity and the stored customer
    record; used to prefill the form and to gate blacklisted customers.
    """
    user_id: str
    member_code: str
    display_name: str = ""
    name: str = ""
    phone: str = ""
    is_returning: bool = False
    is_blacklisted: bool = False
