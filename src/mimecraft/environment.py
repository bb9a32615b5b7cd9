"""Environment capabilities used while composing messages.

The composer never reaches for the wall clock, a random generator or a
base64 codec directly. It receives them through an
:class:`EnvironmentContext` so renders are reproducible under test.

Examples:
    Default environment (CRLF line endings, system clock)::

        >>> env = EnvironmentContext()
        >>> env.eol
        '\\r\\n'
        >>> env.to_base64("hi")
        'aGk='

    Fixed clock and tokens for deterministic output::

        >>> from datetime import datetime, timezone
        >>> env = EnvironmentContext(
        ...     clock=FixedClock(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        ...     random_source=SequenceRandomSource(["a", "b", "c", "d"]),
        ... )
        >>> env.random_source.token()
        'a'
"""

from __future__ import annotations

import base64
import itertools
import secrets
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from mimecraft.validators import is_valid_content_type

#: RFC 5322 line terminator.
CRLF = "\r\n"

#: Number of random bytes behind each generated token.
TOKEN_BYTES = 12


@runtime_checkable
class Clock(Protocol):
    """Protocol for wall-clock access."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...


@runtime_checkable
class RandomSource(Protocol):
    """Protocol for unique token generation (boundaries, Message-ID)."""

    def token(self) -> str:
        """Return a fresh token made of boundary-safe characters."""
        ...


class SystemClock:
    """Clock backed by the system time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock that always returns the same instant.

    Args:
        instant: The datetime to report. Naive values are taken as UTC.
    """

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


class SecretsRandomSource:
    """Random source backed by :mod:`secrets`."""

    def __init__(self, nbytes: int = TOKEN_BYTES) -> None:
        self._nbytes = nbytes

    def token(self) -> str:
        return secrets.token_hex(self._nbytes)


class SequenceRandomSource:
    """Random source replaying a fixed sequence of tokens.

    Once the sequence is exhausted, tokens continue as ``<last>-<n>`` so
    every call still returns a distinct value.
    """

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens: Iterator[str] = iter(tokens)
        self._last = "token"
        self._overflow = itertools.count(1)

    def token(self) -> str:
        try:
            self._last = next(self._tokens)
        except StopIteration:
            return f"{self._last}-{next(self._overflow)}"
        return self._last


def to_base64(data: str) -> str:
    """Encode the UTF-8 bytes of ``data`` as standard base64."""
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def to_base64_websafe(data: str) -> str:
    """Encode the UTF-8 bytes of ``data`` as URL-safe base64 (RFC 4648 section 5)."""
    return base64.urlsafe_b64encode(data.encode("utf-8")).decode("ascii")


@dataclass(frozen=True, slots=True)
class EnvironmentContext:
    """Bundle of collaborators shared by headers, parts and the composer.

    Attributes:
        eol: Line terminator placed between header lines and body sections.
        to_base64: Standard base64 encoder for RFC 2047 encoded words.
        to_base64_websafe: URL-safe base64 encoder for :meth:`MimeMessage.as_encoded`.
        validate_content_type: Syntactic content-type check for attachments.
        clock: Source of the Date header.
        random_source: Source of boundaries and Message-ID tokens.
    """

    eol: str = CRLF
    to_base64: Callable[[str], str] = to_base64
    to_base64_websafe: Callable[[str], str] = to_base64_websafe
    validate_content_type: Callable[[str], bool] = is_valid_content_type
    clock: Clock = field(default_factory=SystemClock)
    random_source: RandomSource = field(default_factory=SecretsRandomSource)


__all__ = [
    "CRLF",
    "Clock",
    "EnvironmentContext",
    "FixedClock",
    "RandomSource",
    "SecretsRandomSource",
    "SequenceRandomSource",
    "SystemClock",
    "to_base64",
    "to_base64_websafe",
]
