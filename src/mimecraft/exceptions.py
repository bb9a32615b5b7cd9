"""Exceptions raised by the mimecraft package.

Exception hierarchy::

    MimecraftError (base, carries a ``code`` tag)
        MissingHeaderError (required header has no value)
        InvalidHeaderValueError (header validator rejected a value, also ValueError)
        InvalidHeaderFieldError (malformed custom header, also ValueError)
        InvalidMailboxError (unrecognized mailbox input, also ValueError)
        MissingFilenameError (attachment without filename)
        InvalidMessageTypeError (unsupported content type, also ValueError)
        MissingBodyError (no text body to render)
        ConfigError (invalid configuration or message description)
"""

from __future__ import annotations

from typing import Any


class MimecraftError(Exception):
    """Base exception for all mimecraft errors.

    Attributes:
        code: Stable tag identifying the failure kind.
        message: Human-readable error message.
        details: Additional error context as key-value pairs.

    Examples:
        >>> raise MimecraftError("Something went wrong")
        Traceback (most recent call last):
        ...
        mimecraft.exceptions.MimecraftError: Something went wrong
    """

    code = "MIMECRAFT_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize MimecraftError.

        Args:
            message: Human-readable error message.
            details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MissingHeaderError(MimecraftError):
    """A required header has no value at render time.

    Attributes:
        header: Name of the missing header.
    """

    code = "MIMECRAFT_MISSING_HEADER"

    def __init__(self, header: str) -> None:
        """Initialize MissingHeaderError.

        Args:
            header: Name of the missing header.
        """
        super().__init__(f'The "{header}" header is required.', details={"header": header})
        self.header = header


class InvalidHeaderValueError(MimecraftError, ValueError):
    """A header validator rejected the supplied value.

    Attributes:
        header: Name of the header being set.
    """

    code = "MIMECRAFT_INVALID_HEADER_VALUE"

    def __init__(self, header: str) -> None:
        """Initialize InvalidHeaderValueError.

        Args:
            header: Name of the header being set.
        """
        super().__init__(f'The value for the header "{header}" is invalid.', details={"header": header})
        self.header = header


class InvalidHeaderFieldError(MimecraftError, ValueError):
    """A custom header descriptor is malformed."""

    code = "MIMECRAFT_INVALID_HEADER_FIELD"


class InvalidMailboxError(MimecraftError, ValueError):
    """Mailbox input could not be recognized."""

    code = "MIMECRAFT_INVALID_MAILBOX"


class MissingFilenameError(MimecraftError):
    """An attachment was added without a filename."""

    code = "MIMECRAFT_MISSING_FILENAME"

    def __init__(self) -> None:
        """Initialize MissingFilenameError."""
        super().__init__('The property "filename" must exist while adding attachments.')


class InvalidMessageTypeError(MimecraftError, ValueError):
    """A text body or attachment carries an unsupported content type.

    Attributes:
        content_type: The rejected content type.
    """

    code = "MIMECRAFT_INVALID_MESSAGE_TYPE"

    def __init__(self, message: str, content_type: str) -> None:
        """Initialize InvalidMessageTypeError.

        Args:
            message: Human-readable error message.
            content_type: The rejected content type.
        """
        super().__init__(message, details={"content_type": content_type})
        self.content_type = content_type


class MissingBodyError(MimecraftError):
    """The message has no plain or HTML text body."""

    code = "MIMECRAFT_MISSING_BODY"

    def __init__(self) -> None:
        """Initialize MissingBodyError."""
        super().__init__("No content added to the message.")


class ConfigError(MimecraftError, ValueError):
    """Configuration or message description is invalid.

    Attributes:
        source: File the invalid data came from, if any.
    """

    code = "MIMECRAFT_CONFIG"

    def __init__(self, message: str, source: str | None = None) -> None:
        """Initialize ConfigError.

        Args:
            message: Human-readable error message.
            source: File the invalid data came from.
        """
        if source:
            message = f"{message} (in {source})"
        super().__init__(message, details={"source": source} if source else None)
        self.source = source


__all__ = [
    "ConfigError",
    "InvalidHeaderFieldError",
    "InvalidHeaderValueError",
    "InvalidMailboxError",
    "InvalidMessageTypeError",
    "MimecraftError",
    "MissingBodyError",
    "MissingFilenameError",
    "MissingHeaderError",
]
