"""Input validation for the mimecraft package.

Content types, transfer encodings and Content-ID values are checked here
before they reach a part's headers.
"""

from __future__ import annotations

import re

# ============================================================================
# Constants - Hard Limits
# ============================================================================

#: Content types accepted for text bodies.
TEXT_CONTENT_TYPES = ("text/plain", "text/html")

#: Content-Transfer-Encoding values defined by RFC 2045.
TRANSFER_ENCODINGS = frozenset({"7bit", "8bit", "binary", "quoted-printable", "base64"})

#: Content type used when the transfer encoding is not recognized.
FALLBACK_CONTENT_TYPE = "application/octet-stream"

#: Maximum length of a content type string.
MAX_CONTENT_TYPE_LENGTH = 255

#: RFC 2045 ``type "/" subtype`` with optional parameters.
CONTENT_TYPE_PATTERN = re.compile(
    r"^[a-z0-9][a-z0-9!#$&^_.+-]*/[a-z0-9][a-z0-9!#$&^_.+-]*(\s*;.*)?$",
    re.IGNORECASE,
)

#: Characters in the 7-bit ASCII range.
_ASCII_PATTERN = re.compile(r"^[\x00-\x7f]*$")


# ============================================================================
# Validation Functions
# ============================================================================


def is_valid_content_type(value: str) -> bool:
    """Return True if ``value`` is a syntactically valid MIME content type.

    Examples:
        >>> is_valid_content_type("image/png")
        True
        >>> is_valid_content_type("text/plain; charset=UTF-8")
        True
        >>> is_valid_content_type("none")
        False
    """
    if not isinstance(value, str) or not value or len(value) > MAX_CONTENT_TYPE_LENGTH:
        return False
    return CONTENT_TYPE_PATTERN.match(value) is not None


def is_supported_encoding(value: str) -> bool:
    """Return True if ``value`` is a known Content-Transfer-Encoding.

    Examples:
        >>> is_supported_encoding("base64")
        True
        >>> is_supported_encoding("uuencode")
        False
    """
    return value in TRANSFER_ENCODINGS


def is_pure_ascii(value: str) -> bool:
    """Return True if every character of ``value`` is in the ASCII range."""
    return _ASCII_PATTERN.match(value) is not None


def normalize_content_id(value: str) -> str:
    """Wrap a bare Content-ID in angle brackets.

    Values that already start or end with a bracket, and values shorter
    than three characters, are returned unchanged.

    Examples:
        >>> normalize_content_id("logo")
        '<logo>'
        >>> normalize_content_id("<logo>")
        '<logo>'
    """
    if len(value) > 2 and not value.startswith("<") and not value.endswith(">"):
        return f"<{value}>"
    return value


__all__ = [
    "CONTENT_TYPE_PATTERN",
    "FALLBACK_CONTENT_TYPE",
    "MAX_CONTENT_TYPE_LENGTH",
    "TEXT_CONTENT_TYPES",
    "TRANSFER_ENCODINGS",
    "is_pure_ascii",
    "is_supported_encoding",
    "is_valid_content_type",
    "normalize_content_id",
]
