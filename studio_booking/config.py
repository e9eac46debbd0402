"""
Centralized configuration with environment variable overrides.

Booking rules, store credentials, and webhook settings are all
configurable here. Nothing is hardcoded in the booking logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from studio_booking.logging_context import install_session_logging

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    return os.getenv(env_var, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class StudioConfig:
    """Studio-facing settings loaded from environment or defaults."""

    name: str = os.getenv("STUDIO_NAME", "Cresc Nail Studio")
    rejection_message: str = os.getenv(
        "REJECTION_MESSAGE",
        "After reviewing past bookings we are unable to accept your reservation at this time.",
    )
    failure_message: str = os.getenv(
        "FAILURE_MESSAGE", "Booking failed, please try again later."
    )


@dataclass(frozen=True)
class BookingRulesConfig:
    """Lead time, month visibility, and form rules."""

    lead_hours: int = _safe_int("BOOKING_LEAD_HOURS", "48")
    next_month_open_day: int = _safe_int("NEXT_MONTH_OPEN_DAY", "15")
    phone_digits: int = _safe_int("PHONE_DIGITS", "10")
    member_code_prefix: str = os.getenv("MEMBER_CODE_PREFIX", "CN-")
    member_code_length: int = _safe_int("MEMBER_CODE_LENGTH", "4")
    occupancy_fail_closed: bool = _safe_bool("OCCUPANCY_FAIL_CLOSED", "false")


@dataclass(frozen=True)
class StoreConfig:
    """Remote store (Supabase REST) connection settings."""

    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    timeout_sec: float = _safe_float("STORE_TIMEOUT", "10.0")

    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@dataclass(frozen=True)
class NotifyConfig:
    """Outbound booking notification webhook."""

    webhook_url: str = os.getenv("NOTIFY_WEBHOOK_URL", "")
    timeout_sec: float = _safe_float("NOTIFY_TIMEOUT", "5.0")


@dataclass(frozen=True)
class IdentityConfig:
    """Where the fallback pseudo-identity is persisted between runs."""

    session_file: str = os.getenv(
        "SESSION_FILE", os.path.join(os.path.expanduser("~"), ".studio_booking_session")
    )
    user_id_param: str = os.getenv("USER_ID_PARAM", "userId")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    studio: StudioConfig = field(default_factory=StudioConfig)
    rules: BookingRulesConfig = field(default_factory=BookingRulesConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "studio-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.rules.lead_hours < 0:
        raise ValueError(
            f"BOOKING_LEAD_HOURS must be >= 0, got {config.rules.lead_hours}"
        )
    if not 1 <= config.rules.next_month_open_day <= 31:
        raise ValueError(
            "NEXT_MONTH_OPEN_DAY must be between 1 and 31, "
            f"got {config.rules.next_month_open_day}"
        )
    if config.rules.phone_digits < 1:
        raise ValueError(
            f"PHONE_DIGITS must be >= 1, got {config.rules.phone_digits}"
        )
    if config.rules.member_code_length < 1:
        raise ValueError(
            f"MEMBER_CODE_LENGTH must be >= 1, got {config.rules.member_code_length}"
        )
    if config.store.timeout_sec <= 0:
        raise ValueError(
            f"STORE_TIMEOUT must be > 0, got {config.store.timeout_sec}"
        )
    if config.notify.timeout_sec <= 0:
        raise ValueError(
            f"NOTIFY_TIMEOUT must be > 0, got {config.notify.timeout_sec}"
        )
    if config.store.supabase_url and not config.store.supabase_url.startswith(
        ("http://", "https://")
    ):
        raise ValueError(
            f"SUPABASE_URL must be an http(s) URL, got {config.store.supabase_url!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    install_session_logging(getattr(logging, config.log_level.upper(), logging.INFO))
    if not config.store.is_configured():
        logger.warning("Supabase credentials not configured; only the in-memory store is usable")
    logger.info("Configuration loaded for '%s'", config.studio.name)
    return config


# Singleton instance
settings = load_config()
