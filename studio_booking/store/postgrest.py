"""Supabase (PostgREST) store client: thin async HTTP layer, no business rules."""

import logging
from datetime import date
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from studio_booking.config import StoreConfig, settings
from studio_booking.errors import StoreError
from studio_booking.schemas.booking_schema import Booking
from studio_booking.schemas.customer_schema import Customer

logger = logging.getLogger(__name__)

ROW_ERRORS = (KeyError, TypeError, ValueError, ValidationError)


class PostgrestStore:
    """BookingStore backed by the hosted Supabase REST API.

    Double booking is prevented by the database: the bookings table must
    carry a unique index on (booking_date, booking_time) for rows whose
    status is not 'cancelled'. A violation comes back as HTTP 409 and is
    raised as StoreError like any other failure.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or settings.store
        self._client = client

    @property
    def base_url(self) -> str:
        return f"{self._config.supabase_url.rstrip('/')}/rest/v1"

    def _headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        h = {
            "apikey": self._config.supabase_key,
            "Authorization": f"Bearer {self._config.supabase_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            h["Prefer"] = prefer
        return h

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        if not self._config.is_configured():
            raise StoreError("Supabase credentials not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY.")
        url = f"{self.base_url}/{path}"
        try:
            if self._client is not None:
                r = await self._client.request(
                    method, url, params=params, json=json_body, headers=self._headers(prefer)
                )
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_sec) as c:
                    r = await c.request(
                        method, url, params=params, json=json_body, headers=self._headers(prefer)
                    )
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}") from e
        if not r.is_success:
            detail = r.text[:500] if r.text else ""
            raise StoreError(f"{method} {path} returned {r.status_code}: {detail}")
        try:
            return r.json() if r.content else None
        except ValueError as e:
            raise StoreError(f"{method} {path} returned invalid JSON") from e

    async def get_configured_slots(self, start: date, end: date) -> dict[str, list[str]]:
        rows = await self._request(
            "GET",
            "availabilities",
            params=[
                ("select", "date,slots"),
                ("date", f"gte.{start.isoformat()}"),
                ("date", f"lte.{end.isoformat()}"),
            ],
        )
        try:
            return {row["date"]: list(row.get("slots") or []) for row in rows or []}
        except ROW_ERRORS as e:
            raise StoreError(f"Malformed availabilities row: {e}") from e

    async def get_occupied_slots(self, start: date, end: date) -> list[tuple[str, str]]:
        rows = await self._request(
            "POST",
            "rpc/get_occupied_slots",
            json_body={"start_date": start.isoformat(), "end_date": end.isoformat()},
        )
        try:
            return [(row["booking_date"], row["booking_time"]) for row in rows or []]
        except ROW_ERRORS as e:
            raise StoreError(f"Malformed occupied slot row: {e}") from e

    async def get_customer(self, user_id: str) -> Optional[Customer]:
        rows = await self._request(
            "GET",
            "customers",
            params={"select": "*", "user_id": f"eq.{user_id}", "limit": "1"},
        )
        if not rows:
            return None
        try:
            return Customer(**rows[0])
        except ROW_ERRORS as e:
            raise StoreError(f"Malformed customer row for {user_id}: {e}") from e

    async def upsert_customer(self, payload: dict[str, Any], conflict_key: str = "user_id") -> None:
        await self._request(
            "POST",
            "customers",
            params={"on_conflict": conflict_key},
            json_body=payload,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def insert_booking(self, payload: dict[str, Any]) -> str:
        rows = await self._request(
            "POST",
            "bookings",
            json_body=[payload],
            prefer="return=representation",
        )
        if not rows:
            raise StoreError("Booking insert returned no row")
        booking_id = str(rows[0].get("id", ""))
        logger.info("Booking stored remotely: %s", booking_id)
        return booking_id

    async def list_bookings(self, user_id: str) -> list[Booking]:
        rows = await self._request(
            "GET",
            "bookings",
            params={
                "select": "*",
                "user_id": f"eq.{user_id}",
                "order": "booking_date.desc,booking_time.desc",
            },
        )
        try:
            return [Booking(**{**row, "id": str(row["id"])}) for row in rows or []]
        except ROW_ERRORS as e:
            raise StoreError(f"Malformed booking row for {user_id}: {e}") from e
