"""Unit tests for logging configuration and correlation ID tracking."""

import asyncio
import logging
import logging.handlers
from collections.abc import Iterator

import pytest

from disk_lens.utils.logging import (
    DEFAULT_LOG_FORMAT,
    CorrelationIDFilter,
    configure_logging,
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    reset_correlation_id,
    set_correlation_id,
)


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    try:
        yield
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


def _record() -> logging.LogRecord:
    return logging.LogRecord("disk_lens.test", logging.INFO, __file__, 1, "message", None, None)


@pytest.mark.unit
class TestCorrelationIDFilter:
    def test_defaults_to_na(self) -> None:
        record = _record()

        assert CorrelationIDFilter().filter(record) is True
        assert record.correlation_id == "N/A"  # pyright: ignore[reportAttributeAccessIssue]

    def test_uses_current_id(self) -> None:
        token = set_correlation_id("abc123")
        try:
            record = _record()
            _ = CorrelationIDFilter().filter(record)
        finally:
            reset_correlation_id(token)

        assert record.correlation_id == "abc123"  # pyright: ignore[reportAttributeAccessIssue]
        assert get_correlation_id() is None


@pytest.mark.unit
class TestCorrelationPropagation:
    @pytest.mark.asyncio
    async def test_copied_into_worker_thread(self) -> None:
        token = set_correlation_id("thread-id")
        try:
            seen = await asyncio.to_thread(get_correlation_id)
        finally:
            reset_correlation_id(token)

        assert seen == "thread-id"

    def test_generated_ids_are_unique(self) -> None:
        assert generate_correlation_id() != generate_correlation_id()


@pytest.mark.unit
@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:
    def test_console_handler_with_filter(self) -> None:
        configure_logging(log_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert any(isinstance(f, CorrelationIDFilter) for f in handler.filters)
        assert handler.formatter is not None
        assert handler.formatter._fmt == DEFAULT_LOG_FORMAT  # pyright: ignore[reportPrivateUsage]

    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging(log_level="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_replaces_existing_handlers(self) -> None:
        configure_logging()
        configure_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_syslog_handler_added_when_enabled(self) -> None:
        configure_logging(enable_syslog=True, syslog_address="/nonexistent/disk-lens/log")

        handlers = logging.getLogger().handlers
        syslog = [h for h in handlers if isinstance(h, logging.handlers.SysLogHandler)]
        assert len(handlers) == 2
        assert len(syslog) == 1
        syslog[0].close()

    def test_get_logger(self) -> None:
        assert get_logger("disk_lens.x") is logging.getLogger("disk_lens.x")
