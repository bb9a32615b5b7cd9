"""Message composer.

:class:`MimeMessage` owns the top-level headers and an ordered list of
:class:`~mimecraft.part.MimePart`. Rendering classifies the parts, picks a
:class:`~mimecraft.topology.Topology` and joins header and body lines with
the environment line terminator.

Examples:
    >>> msg = create_message()
    >>> _ = msg.set_sender("Jane <jane@example.com>")
    >>> _ = msg.set_to(["bob@example.com", {"addr": "ann@example.com", "name": "Ann"}])
    >>> _ = msg.set_subject("Quarterly report")
    >>> _ = msg.add_message("See attached.", content_type="text/plain")
    >>> _ = msg.add_attachment("UEsDBA==", filename="report.zip", content_type="application/zip")
    >>> raw = msg.as_raw()  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from mimecraft.config import ComposerConfig
from mimecraft.environment import EnvironmentContext
from mimecraft.exceptions import InvalidMessageTypeError, MissingBodyError, MissingFilenameError
from mimecraft.headers import HeaderField, HeaderValue, MessageHeaders
from mimecraft.mailbox import Mailbox, MailboxKind
from mimecraft.part import MimePart
from mimecraft.topology import BodyLayout, Boundaries, Topology, render_body
from mimecraft.validators import (
    FALLBACK_CONTENT_TYPE,
    TEXT_CONTENT_TYPES,
    is_supported_encoding,
    normalize_content_id,
)

log = logging.getLogger(__name__)


class MimeMessage:
    """An email message under construction.

    Boundaries are drawn once from the environment random source at
    construction; Date and Message-ID are generated on first render and
    cached, so repeated renders are byte-identical.

    Args:
        env: Environment capabilities. Built from ``config`` when omitted;
            when given, its ``eol`` takes precedence over ``config.eol``.
        config: Composer settings (defaults apply when omitted).
    """

    def __init__(self, env: EnvironmentContext | None = None, config: ComposerConfig | None = None) -> None:
        self.config = config or ComposerConfig()
        self.env = env or EnvironmentContext(eol=self.config.eol)
        self.headers = MessageHeaders(self.env, skip_encoding_pure_ascii=self.config.skip_encoding_pure_ascii)
        self.boundaries = Boundaries.generate(self.env.random_source)
        self.parts: list[MimePart] = []

    def __repr__(self) -> str:
        return f"MimeMessage(subject={self.get_subject()!r}, parts={len(self.parts)})"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def layout(self) -> BodyLayout:
        """Classify the current parts for rendering."""
        return BodyLayout(
            plain=self.get_message_by_type("text/plain"),
            html=self.get_message_by_type("text/html"),
            attachments=tuple(self.get_attachments()),
            inline=tuple(self.get_inline_attachments()),
        )

    def topology(self) -> Topology:
        """Return the body topology the current parts would render as."""
        return self.layout().topology

    def as_raw(self) -> str:
        """Render the full message text.

        Raises:
            MissingHeaderError: If From or Subject is unset.
            MissingBodyError: If no plain or HTML body was added.
        """
        headers = self.headers.dump()
        layout = self.layout()
        if layout.body is None:
            raise MissingBodyError()

        log.debug("Rendering message as %s (%d parts)", layout.topology.value, len(self.parts))
        return self.env.eol.join([headers, *render_body(layout, self.boundaries, self.env.eol)])

    def as_encoded(self) -> str:
        """Return :meth:`as_raw` as URL-safe base64."""
        return self.env.to_base64_websafe(self.as_raw())

    # ------------------------------------------------------------------
    # Parts
    # ------------------------------------------------------------------

    def add_message(
        self,
        data: str = "",
        content_type: str | None = None,
        *,
        encoding: str | None = None,
        charset: str | None = None,
        headers: Mapping[str, HeaderValue] | None = None,
    ) -> MimePart:
        """Add a plain-text or HTML body.

        Args:
            data: Body text, encoded as announced by ``encoding``.
            content_type: ``text/plain`` or ``text/html``. A ``Content-Type``
                entry in ``headers`` takes precedence.
            encoding: Content-Transfer-Encoding (configured default when omitted).
            charset: Charset parameter (configured default when omitted).
            headers: Extra content headers for the part.

        Returns:
            The stored part.

        Raises:
            InvalidMessageTypeError: If the content type is not a text type.
        """
        extra = dict(headers or {})
        ctype = extra.get("Content-Type") or content_type or "none"
        if ctype not in TEXT_CONTENT_TYPES:
            raise InvalidMessageTypeError(
                f"Valid content types are {', '.join(TEXT_CONTENT_TYPES)} but you specified \"{ctype}\".",
                str(ctype),
            )

        encoding = extra.get("Content-Transfer-Encoding") or encoding or self.config.default_text_encoding
        ctype = self._content_type_for_encoding(str(ctype), str(encoding))
        extra.update(
            {
                "Content-Type": f"{ctype}; charset={charset or self.config.default_charset}",
                "Content-Transfer-Encoding": encoding,
            }
        )
        return self._add_part(data, extra)

    def add_attachment(
        self,
        data: str = "",
        filename: str | None = None,
        content_type: str | None = None,
        *,
        encoding: str | None = None,
        inline: bool = False,
        content_id: str | None = None,
        headers: Mapping[str, HeaderValue] | None = None,
    ) -> MimePart:
        """Add a regular or inline attachment.

        Args:
            data: Payload, already encoded as announced by ``encoding``.
            filename: Name advertised in Content-Type and Content-Disposition.
            content_type: MIME type (``application/octet-stream`` when omitted).
            encoding: Content-Transfer-Encoding (configured default when omitted).
            inline: Use ``inline`` rather than ``attachment`` disposition.
            content_id: Content-ID referenced from HTML as ``cid:...``.
            headers: Extra content headers for the part.

        Returns:
            The stored part.

        Raises:
            MissingFilenameError: If ``filename`` is missing.
            InvalidMessageTypeError: If the environment rejects the content type.
        """
        if not isinstance(filename, str) or not filename:
            raise MissingFilenameError()

        extra = dict(headers or {})
        ctype = str(extra.get("Content-Type") or content_type or FALLBACK_CONTENT_TYPE)
        if not self.env.validate_content_type(ctype):
            raise InvalidMessageTypeError(f'You specified an invalid content type "{ctype}".', ctype)

        encoding = extra.get("Content-Transfer-Encoding") or encoding or self.config.default_attachment_encoding
        ctype = self._content_type_for_encoding(ctype, str(encoding))

        cid = extra.get("Content-ID") or content_id
        if isinstance(cid, str):
            extra["Content-ID"] = normalize_content_id(cid)

        disposition = "inline" if inline else "attachment"
        extra.update(
            {
                "Content-Type": f'{ctype}; name="{filename}"',
                "Content-Transfer-Encoding": encoding,
                "Content-Disposition": f'{disposition}; filename="{filename}"',
            }
        )
        return self._add_part(data, extra)

    def _content_type_for_encoding(self, content_type: str, encoding: str) -> str:
        if is_supported_encoding(encoding):
            return content_type
        # Content-Transfer-Encoding is kept as given; only the type is downgraded.
        log.warning(
            "Unsupported Content-Transfer-Encoding %r, sending %s as %s",
            encoding,
            content_type,
            FALLBACK_CONTENT_TYPE,
        )
        return FALLBACK_CONTENT_TYPE

    def _add_part(self, data: str, headers: Mapping[str, HeaderValue]) -> MimePart:
        part = MimePart(self.env, data, headers)
        self.parts.append(part)
        log.debug("Added part %r", part)
        return part

    def get_message_by_type(self, content_type: str) -> MimePart | None:
        """Return the first non-attachment part whose Content-Type contains ``content_type``."""
        for part in self.parts:
            if part.is_attachment() or part.is_inline_attachment():
                continue
            if content_type in part.content_type():
                return part
        return None

    def get_attachments(self) -> list[MimePart]:
        return [part for part in self.parts if part.is_attachment()]

    def get_inline_attachments(self) -> list[MimePart]:
        return [part for part in self.parts if part.is_inline_attachment()]

    def has_attachments(self) -> bool:
        return any(part.is_attachment() for part in self.parts)

    def has_inline_attachments(self) -> bool:
        return any(part.is_inline_attachment() for part in self.parts)

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def set_sender(self, value: Any, kind: MailboxKind | str = MailboxKind.FROM) -> Mailbox:
        """Set a single-mailbox header (From by default, also Sender or Reply-To)."""
        kind = MailboxKind.coerce(kind)
        mailbox = _with_kind(Mailbox.parse(value, kind), kind)
        self.set_header(kind.value, mailbox)
        return mailbox

    def get_sender(self) -> Mailbox | None:
        value = self.get_header("From")
        return value if isinstance(value, Mailbox) else None

    def set_recipients(self, value: Any, kind: MailboxKind | str = MailboxKind.TO) -> list[Mailbox]:
        """Set To, Cc or Bcc from one mailbox input or an iterable of them."""
        kind = MailboxKind.coerce(kind)
        items: Iterable[Any] = value if isinstance(value, (list, tuple)) else [value]
        mailboxes = [_with_kind(Mailbox.parse(item, kind), kind) for item in items]
        self.set_header(kind.value, mailboxes)
        return mailboxes

    def set_to(self, value: Any) -> list[Mailbox]:
        return self.set_recipients(value, MailboxKind.TO)

    def set_cc(self, value: Any) -> list[Mailbox]:
        return self.set_recipients(value, MailboxKind.CC)

    def set_bcc(self, value: Any) -> list[Mailbox]:
        return self.set_recipients(value, MailboxKind.BCC)

    def get_recipients(self, kind: MailboxKind | str = MailboxKind.TO) -> HeaderValue | None:
        return self.get_header(MailboxKind.coerce(kind).value)

    def set_subject(self, value: str) -> str:
        self.set_header("Subject", value)
        return value

    def get_subject(self) -> str | None:
        value = self.get_header("Subject")
        return value if isinstance(value, str) else None

    def set_header(self, name: str, value: HeaderValue) -> HeaderField:
        """Set a message header; unknown names become custom headers."""
        return self.headers.set(name, value)

    def get_header(self, name: str) -> HeaderValue | None:
        return self.headers.get(name)

    def set_headers(self, headers: Mapping[str, HeaderValue]) -> list[str]:
        for name, value in headers.items():
            self.set_header(name, value)
        return list(headers)

    def get_headers(self) -> dict[str, HeaderValue | None]:
        return self.headers.to_dict()


def _with_kind(mailbox: Mailbox, kind: MailboxKind) -> Mailbox:
    # The header being set decides the kind, not a "kind" key in the input.
    return mailbox if mailbox.kind is kind else replace(mailbox, kind=kind)


def create_message(
    env: EnvironmentContext | None = None,
    config: ComposerConfig | None = None,
    *,
    skip_encoding_pure_ascii: bool | None = None,
) -> MimeMessage:
    """Create an empty :class:`MimeMessage`.

    Args:
        env: Environment capabilities (clock, random source, encoders).
        config: Composer settings.
        skip_encoding_pure_ascii: Shortcut overriding the config flag.
    """
    config = config or ComposerConfig()
    if skip_encoding_pure_ascii is not None:
        config = replace(config, skip_encoding_pure_ascii=skip_encoding_pure_ascii)
    return MimeMessage(env, config)


__all__ = [
    "MimeMessage",
    "create_message",
]
