"""Tests for mimecraft logging helpers."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import pytest
from rich.console import Console
from rich.logging import RichHandler

from mimecraft.environment import EnvironmentContext
from mimecraft.headers import MessageHeaders
from mimecraft.logging import LOGGING_LEVEL, PACKAGE_LOGGER, TRACE_LEVEL, configure_logging
from mimecraft.mailbox import Mailbox


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = logger.handlers[:], logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_trace_level_registered(self) -> None:
        assert logging.getLevelName(TRACE_LEVEL) == "TRACE"
        assert LOGGING_LEVEL.TRACE == TRACE_LEVEL

    @pytest.mark.parametrize(("level", "expected"), [("debug", logging.DEBUG), ("TRACE", TRACE_LEVEL), (30, 30)])
    def test_levels(self, level: int | str, expected: int) -> None:
        logger = configure_logging(level)
        assert logger.name == PACKAGE_LOGGER
        assert logger.level == expected

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")

    def test_single_rich_handler(self) -> None:
        """Reconfiguring replaces the previous handler."""
        configure_logging("INFO")
        logger = configure_logging("DEBUG")
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1

    def test_writes_to_console(self) -> None:
        buffer = io.StringIO()
        configure_logging("DEBUG", console=Console(file=buffer, width=200))
        logging.getLogger("mimecraft.message").debug("composing %s", "now")
        assert "composing now" in buffer.getvalue()


class TestTraceOutput:
    """Header rendering emits trace records only when enabled."""

    def _dump(self) -> None:
        headers = MessageHeaders(EnvironmentContext(), skip_encoding_pure_ascii=True)
        headers.set("From", Mailbox.parse("me@example.com"))
        headers.set("Subject", "hi")
        headers.dump()

    def test_trace_records(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(TRACE_LEVEL, logger="mimecraft.headers"):
            self._dump()
        messages = [r.getMessage() for r in caplog.records if r.levelno == TRACE_LEVEL]
        assert "[headers] Subject (plain) -> 'hi'" in messages

    def test_no_trace_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="mimecraft.headers"):
            self._dump()
        assert not [r for r in caplog.records if r.levelno == TRACE_LEVEL]
        assert any("Generated Message-ID header" in r.getMessage() for r in caplog.records)
