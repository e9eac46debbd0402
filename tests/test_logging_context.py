"""Tests for the session id logging context."""

import asyncio
import contextvars
import logging

import pytest

from studio_booking.logging_context import (
    LOG_DATEFMT,
    LOG_FORMAT,
    NO_SESSION,
    SessionIdFilter,
    attach_session_filter,
    get_session_id,
    install_session_logging,
    session_scope,
    set_session_id,
)


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []
        self.lines: list[str] = []
        self.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)
        self.lines.append(self.format(record))


@pytest.fixture
def captured():
    handler = ListHandler()
    attach_session_filter(handler)
    logger = logging.getLogger("studio_booking.tests.session")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield logger, handler
    logger.removeHandler(handler)


class TestSessionId:
    def test_default_is_placeholder(self):
        assert contextvars.Context().run(get_session_id) == NO_SESSION

    def test_scope_sets_and_restores(self):
        before = get_session_id()
        with session_scope("U0001"):
            assert get_session_id() == "U0001"
        assert get_session_id() == before

    @pytest.mark.asyncio
    async def test_tasks_inherit_session(self):
        async def read():
            return get_session_id()

        set_session_id("U0042")
        assert await asyncio.create_task(read()) == "U0042"


class TestHandlerFilter:
    def test_record_carries_session_id(self, captured):
        logger, handler = captured
        with session_scope("U0001"):
            logger.info("Loading calendar")
        assert handler.records[0].session_id == "U0001"
        assert "[U0001]" in handler.lines[0]

    def test_line_outside_session(self, captured):
        logger, handler = captured
        contextvars.Context().run(logger.info, "Configuration loaded")
        assert f"[{NO_SESSION}]" in handler.lines[0]

    def test_filter_attached_once(self):
        handler = ListHandler()
        attach_session_filter(handler)
        attach_session_filter(handler)
        assert sum(isinstance(f, SessionIdFilter) for f in handler.filters) == 1

    def test_install_filters_existing_root_handlers(self):
        root = logging.getLogger()
        handler = ListHandler()
        root.addHandler(handler)
        try:
            install_session_logging(logging.INFO)
            assert any(isinstance(f, SessionIdFilter) for f in handler.filters)
        finally:
            root.removeHandler(handler)
