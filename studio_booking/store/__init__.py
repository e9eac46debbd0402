from studio_booking.store.base import BookingStore
from studio_booking.store.memory import InMemoryStore
from studio_booking.store.postgrest import PostgrestStore

__all__ = ["BookingStore", "InMemoryStore", "PostgrestStore"]
