"""Mailbox parsing and rendering.

A mailbox is a single ``name <addr>`` pair tagged with the header it
belongs to (From, To, Cc, ...). Only syntactic recognition is performed;
deliverability is never checked.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from mimecraft.exceptions import InvalidMailboxError

#: ``(name )?<addr>`` as accepted in mailbox text.
MAILBOX_TEXT_PATTERN = re.compile(r"(([^<>\r\n]+)\s)?<[^\r\n]+>")

_QUOTES = ("'", '"')


class MailboxKind(str, Enum):
    """Header a mailbox is destined for."""

    FROM = "From"
    SENDER = "Sender"
    REPLY_TO = "Reply-To"
    TO = "To"
    CC = "Cc"
    BCC = "Bcc"

    @classmethod
    def coerce(cls, value: MailboxKind | str) -> MailboxKind:
        """Return the kind matching ``value`` (enum member or header name, any case).

        Raises:
            InvalidMailboxError: If ``value`` names no known kind.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.lower().replace("_", "-")
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        raise InvalidMailboxError(f"Unknown mailbox kind: {value!r}")


@dataclass(frozen=True, slots=True)
class Mailbox:
    """An email address with an optional display name.

    Attributes:
        addr: The address itself, never empty.
        name: Display name, may be empty.
        kind: Header the mailbox belongs to.

    Examples:
        >>> box = Mailbox.parse('"Jane Doe" <jane@example.com>')
        >>> box.name, box.addr
        ('Jane Doe', 'jane@example.com')
        >>> box.dump()
        '"Jane Doe" <jane@example.com>'
        >>> Mailbox.parse("bob@example.com").dump()
        '<bob@example.com>'
    """

    addr: str
    name: str = ""
    kind: MailboxKind = MailboxKind.TO

    def __post_init__(self) -> None:
        if not isinstance(self.addr, str) or not self.addr:
            raise InvalidMailboxError("Mailbox address must be a non-empty string.")
        if not isinstance(self.name, str):
            raise InvalidMailboxError("Mailbox name must be a string.")

    @classmethod
    def parse(cls, value: Any, kind: MailboxKind | str = MailboxKind.TO) -> Mailbox:
        """Build a mailbox from a mapping, ``name <addr>`` text or a bare address.

        Args:
            value: ``{"addr": ..., "name": ..., "kind": ...}``, a string, or a Mailbox.
            kind: Kind used when ``value`` does not carry its own.

        Returns:
            The parsed mailbox.

        Raises:
            InvalidMailboxError: If ``value`` has none of the accepted shapes.
        """
        kind = MailboxKind.coerce(kind)

        if isinstance(value, Mailbox):
            return value if value.kind is kind else replace(value, kind=kind)

        if isinstance(value, Mapping) and "addr" in value:
            name = value.get("name")
            return cls(
                addr=value["addr"],
                name=name if isinstance(name, str) else "",
                kind=MailboxKind.coerce(value["kind"]) if value.get("kind") else kind,
            )

        if isinstance(value, str) and MAILBOX_TEXT_PATTERN.search(value):
            return cls._parse_text(value.strip(), kind)

        if isinstance(value, str):
            return cls(addr=value, kind=kind)

        raise InvalidMailboxError("Couldn't recognize the input.")

    @classmethod
    def _parse_text(cls, text: str, kind: MailboxKind) -> Mailbox:
        if text.startswith("<") and text.endswith(">"):
            return cls(addr=text[1:-1], kind=kind)

        name, sep, rest = text.rpartition(" <")
        if not sep:
            raise InvalidMailboxError("Couldn't recognize the input.")
        if name.startswith(_QUOTES):
            name = name[1:]
        if name.endswith(_QUOTES):
            name = name[:-1]
        return cls(addr=rest[:-1] if rest.endswith(">") else rest, name=name, kind=kind)

    def get_addr_domain(self) -> str:
        """Return the part of the address after the first ``@``, or ``""``."""
        _, sep, domain = self.addr.partition("@")
        return domain if sep else ""

    def dump(self) -> str:
        """Render as ``"name" <addr>``, or ``<addr>`` for unnamed mailboxes."""
        if self.name:
            return f'"{self.name}" <{self.addr}>'
        return f"<{self.addr}>"


__all__ = [
    "MAILBOX_TEXT_PATTERN",
    "Mailbox",
    "MailboxKind",
]
