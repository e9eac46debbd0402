"""Booking session id in every log line.

The console sets the visitor's user id once identity is resolved; from
then on each record that reaches a root handler carries it as
``session_id`` and the shared format prints it. Records logged before a
session starts show ``-``.

Usage:
    with session_scope("U1a2b3c"):
        logger.info("Loading calendar")
    # 2024-05-18 10:00:00 [U1a2b3c] [studio_booking.console] INFO: Loading calendar
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

NO_SESSION = "-"

LOG_FORMAT = "%(asctime)s [%(session_id)s] [%(name)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def set_session_id(session_id: str) -> Token:
    """Bind the session id for the current context. Returns a token for reset."""
    return _session_id.set(session_id or NO_SESSION)


def get_session_id() -> str:
    return _session_id.get()


@contextmanager
def session_scope(session_id: str) -> Iterator[None]:
    """Bind the session id for the duration of a block."""
    token = set_session_id(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)


class SessionIdFilter(logging.Filter):
    """Handler filter stamping ``session_id`` on records from any logger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def attach_session_filter(handler: logging.Handler) -> None:
    """Add the filter to a handler once. The handler's format may then use %(session_id)s."""
    if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
        handler.addFilter(SessionIdFilter())


def install_session_logging(level: int) -> None:
    """Configure root logging with the session format and filter every root handler."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in logging.getLogger().handlers:
        attach_session_filter(handler)
