"""Customer profile lookup and the blacklist gate."""

import logging
from typing import Optional

from studio_booking.config import settings
from studio_booking.errors import StoreError
from studio_booking.identity import Identity
from studio_booking.schemas.customer_schema import CustomerProfile
from studio_booking.store.base import BookingStore
from studio_booking.utils import generate_member_code

logger = logging.getLogger(__name__)


def new_member_code() -> str:
    return generate_member_code(
        prefix=settings.rules.member_code_prefix,
        length=settings.rules.member_code_length,
    )


async def load_profile(store: BookingStore, identity: Identity) -> CustomerProfile:
    """
    Build the visitor's profile from the stored customer record.

    Returning customers keep their stored member code and get their name
    and phone prefilled. New customers get a fresh member code and the
    login display name as the suggested name. A failed lookup is logged
    and treated as a new customer.
    """
    customer = None
    try:
        customer = await store.get_customer(identity.user_id)
    except StoreError as e:
        logger.warning("Customer lookup failed for %s: %s", identity.user_id, e)

    if customer is None:
        return CustomerProfile(
            user_id=identity.user_id,
            member_code=new_member_code(),
            display_name=identity.display_name,
            name=identity.display_name,
        )

    if customer.is_blacklisted:
        logger.info("Blacklisted customer blocked: %s", identity.user_id)

    return CustomerProfile(
        user_id=identity.user_id,
        member_code=customer.member_code or new_member_code(),
        display_name=identity.display_name,
        name=customer.name,
        phone=customer.phone,
        is_returning=True,
        is_blacklisted=customer.is_blacklisted,
    )


def rejection_message(profile: CustomerProfile) -> Optional[str]:
    """Message shown instead of the booking page, or None if the visitor may book."""
    if profile.is_blacklisted:
        return settings.studio.rejection_message
    return None
