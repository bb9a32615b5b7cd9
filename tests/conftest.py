"""Shared pytest fixtures for the mimecraft test suite."""

from __future__ import annotations

# Disable Rich colors and force wide terminal BEFORE any imports
# Rich checks these at import time
import os

os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"
os.environ["FORCE_COLOR"] = "0"
os.environ["COLUMNS"] = "200"  # Prevent text wrapping in CLI output

from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from mimecraft import (
    ComposerConfig,
    EnvironmentContext,
    FixedClock,
    MimeMessage,
    SequenceRandomSource,
)

# pylint: disable=redefined-outer-name

CRLF = "\r\n"

#: Instant reported by the fixed clock.
FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

#: Tokens drawn by a new message: three boundaries, then the Message-ID.
TOKENS = ("MIXED", "ALT", "REL", "abc123")

#: Header block rendered by ``make_message`` with pure-ASCII encoding skipped.
EXPECTED_HEADERS = CRLF.join(
    [
        "Date: Tue, 02 Jan 2024 03:04:05 +0000",
        "From: Jane Doe <jane@example.com>",
        "To: <bob@example.com>",
        "Message-ID: <abc123@example.com>",
        "Subject: Hello",
        "MIME-Version: 1.0",
    ]
)


@pytest.fixture
def env() -> EnvironmentContext:
    """Environment with CRLF endings, a fixed clock and predictable tokens."""

    return EnvironmentContext(
        clock=FixedClock(FIXED_NOW),
        random_source=SequenceRandomSource(TOKENS),
    )


@pytest.fixture
def make_message(env: EnvironmentContext) -> Callable[..., MimeMessage]:
    """Build messages with sender, recipient and subject already set."""

    def _make(*, skip_encoding_pure_ascii: bool = True, **config: object) -> MimeMessage:
        """Return a deterministic message ready for parts."""

        message = MimeMessage(
            env,
            ComposerConfig(skip_encoding_pure_ascii=skip_encoding_pure_ascii, **config),  # type: ignore[arg-type]
        )
        message.set_sender("Jane Doe <jane@example.com>")
        message.set_to("bob@example.com")
        message.set_subject("Hello")
        return message

    return _make


@pytest.fixture
def message(make_message: Callable[..., MimeMessage]) -> MimeMessage:
    """Deterministic message with sender, recipient and subject."""

    return make_message()


@pytest.fixture
def expected_headers() -> str:
    """Header block rendered for the ``message`` fixture."""

    return EXPECTED_HEADERS
