"""A single MIME part: content headers plus a payload."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from mimecraft.headers import ContentHeaders, HeaderField, HeaderValue

if TYPE_CHECKING:
    from mimecraft.environment import EnvironmentContext


class MimePart:
    """Content-bearing unit of a message.

    Args:
        env: Environment providing the line terminator.
        data: Payload, already encoded as announced by Content-Transfer-Encoding.
        headers: Initial content headers.

    Examples:
        >>> from mimecraft.environment import EnvironmentContext
        >>> part = MimePart(EnvironmentContext(eol="\\n"), "hi", {"Content-Type": "text/plain"})
        >>> print(part.dump())
        Content-Type: text/plain
        <BLANKLINE>
        hi
    """

    def __init__(
        self,
        env: EnvironmentContext,
        data: str,
        headers: Mapping[str, HeaderValue] | None = None,
    ) -> None:
        self.env = env
        self.data = data
        self.headers = ContentHeaders(env)
        self.set_headers(headers or {})

    def __repr__(self) -> str:
        return f"MimePart(content_type={self.get_header('Content-Type')!r})"

    def dump(self) -> str:
        """Render headers, a blank line and the payload."""
        eol = self.env.eol
        return self.headers.dump() + eol + eol + self.data

    def _disposition_type(self) -> str:
        # Disposition type only, parameters (filename=...) are ignored.
        value = self.headers.get("Content-Disposition")
        if not isinstance(value, str):
            return ""
        return value.split(";", 1)[0].strip().lower()

    def is_attachment(self) -> bool:
        return "attachment" in self._disposition_type()

    def is_inline_attachment(self) -> bool:
        return "inline" in self._disposition_type()

    def content_type(self) -> str:
        """Return the Content-Type header, or ``""`` when unset."""
        value = self.headers.get("Content-Type")
        return value if isinstance(value, str) else ""

    def set_header(self, name: str, value: HeaderValue) -> HeaderField:
        return self.headers.set(name, value)

    def get_header(self, name: str) -> HeaderValue | None:
        return self.headers.get(name)

    def set_headers(self, headers: Mapping[str, HeaderValue]) -> list[HeaderField]:
        return [self.set_header(name, value) for name, value in headers.items()]

    def get_headers(self) -> dict[str, HeaderValue | None]:
        return self.headers.to_dict()


__all__ = ["MimePart"]
