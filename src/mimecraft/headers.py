"""Header field model for messages and MIME parts.

A registry is an ordered table of :class:`HeaderField` descriptors. Each
descriptor carries a :class:`FieldKind` tag plus an explicit behavior record
(required flag, generator, validator, renderer). Rendering walks the table
in insertion order:

1. disabled fields are skipped;
2. a required field without value raises :class:`MissingHeaderError`;
3. a field without value but with a generator is generated once and the
   result is cached as its value;
4. a field that still has no value is skipped;
5. the value is rendered through the field renderer, or emitted as-is.

Generated values are computed at most once per registry, so rendering the
same message twice yields byte-identical output.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from dataclasses import fields as dataclass_fields
from datetime import timezone
from email.utils import format_datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from mimecraft.exceptions import InvalidHeaderFieldError, InvalidHeaderValueError, MissingHeaderError
from mimecraft.logging import TRACE_LEVEL
from mimecraft.mailbox import Mailbox
from mimecraft.validators import is_pure_ascii

if TYPE_CHECKING:
    from mimecraft.environment import EnvironmentContext

log = logging.getLogger(__name__)

HeaderValue = Union[str, Mailbox, Sequence[Mailbox]]

#: Descriptor keys accepted by :meth:`HeaderRegistry.set_custom` for mappings.
CUSTOM_FIELD_KEYS = frozenset({"name", "value", "renderer", "required", "disabled", "generator", "custom"})

#: RFC 5322 field name: printable ASCII except colon.
FIELD_NAME_PATTERN = re.compile(r"^[\x21-\x39\x3b-\x7e]+$")


class FieldKind(str, Enum):
    """Tag selecting how a header value is validated and rendered."""

    PLAIN = "plain"
    MAILBOX_SINGLE = "mailbox_single"
    MAILBOX_MULTI = "mailbox_multi"
    GENERATED = "generated"
    CUSTOM = "custom"


@dataclass(slots=True)
class HeaderField:
    """A named header with its value and behavior record.

    Attributes:
        name: Header name as rendered.
        kind: Value family of the field.
        value: Current value, ``None`` until set or generated.
        required: Rendering fails when no value is present.
        disabled: Field is left out of the rendered output.
        generator: Produces a value on first render when none is set.
        validator: Checks values passed to :meth:`HeaderRegistry.set`.
        renderer: Turns the value into header text.
        custom: Field was added at runtime rather than predeclared.
    """

    name: str
    kind: FieldKind = FieldKind.PLAIN
    value: HeaderValue | None = None
    required: bool = False
    disabled: bool = False
    generator: Callable[[], str] | None = None
    validator: Callable[[Any], bool] | None = None
    renderer: Callable[[HeaderValue], str] | None = None
    custom: bool = False

    def matches(self, name: str) -> bool:
        """Return True if ``name`` designates this field (case-insensitive)."""
        return self.name.lower() == name.lower()


def is_mailbox(value: Any) -> bool:
    return isinstance(value, Mailbox)


def is_mailbox_list(value: Any) -> bool:
    """Return True for a non-empty sequence made only of mailboxes."""
    return (
        isinstance(value, Sequence)
        and not isinstance(value, str)
        and len(value) > 0
        and all(isinstance(item, Mailbox) for item in value)
    )


def is_text(value: Any) -> bool:
    return isinstance(value, str)


class HeaderRegistry:
    """Ordered, case-insensitively unique table of header fields.

    Args:
        env: Environment providing the line terminator and encoders.
        skip_encoding_pure_ascii: Emit pure-ASCII header text without
            RFC 2047 encoding.
    """

    def __init__(self, env: EnvironmentContext, *, skip_encoding_pure_ascii: bool = False) -> None:
        self.env = env
        self.skip_encoding_pure_ascii = skip_encoding_pure_ascii
        self._fields: list[HeaderField] = self._default_fields()

    def _default_fields(self) -> list[HeaderField]:
        return []

    @property
    def fields(self) -> tuple[HeaderField, ...]:
        """Fields in render order."""
        return tuple(self._fields)

    def _find(self, name: str) -> HeaderField | None:
        for field in self._fields:
            if field.matches(name):
                return field
        return None

    def dump(self) -> str:
        """Render every active field as ``Name: value`` lines.

        Raises:
            MissingHeaderError: If a required field has no value.
        """
        lines: list[str] = []
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)

        for field in self._fields:
            if field.disabled:
                continue
            if field.value is None:
                if field.required:
                    raise MissingHeaderError(field.name)
                if field.generator is None:
                    continue
                field.value = field.generator()
                log.debug("Generated %s header: %s", field.name, field.value)
                if field.value is None:
                    continue

            rendered = self._render(field)
            if trace_enabled:
                log.log(TRACE_LEVEL, "[headers] %s (%s) -> %r", field.name, field.kind.value, rendered)
            lines.append(f"{field.name}: {rendered}")

        return self.env.eol.join(lines)

    def _render(self, field: HeaderField) -> str:
        if field.renderer is not None:
            return field.renderer(field.value)  # type: ignore[arg-type]
        return field.value if isinstance(field.value, str) else ""

    def get(self, name: str) -> HeaderValue | None:
        """Return the value of ``name``, or ``None`` for unknown or unset fields."""
        field = self._find(name)
        return field.value if field is not None else None

    def set(self, name: str, value: HeaderValue) -> HeaderField:
        """Assign ``value`` to ``name``, creating a custom field for unknown names.

        Raises:
            InvalidHeaderValueError: If the field validator rejects the value.
            InvalidHeaderFieldError: If a custom field cannot be created.
        """
        field = self._find(name)
        if field is None:
            return self.set_custom(HeaderField(name=name, kind=FieldKind.CUSTOM, value=value, custom=True))

        if field.validator is not None and not field.validator(value):
            raise InvalidHeaderValueError(field.name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            value = list(value)
        field.value = value
        return field

    def set_custom(self, field: HeaderField | Mapping[str, Any]) -> HeaderField:
        """Append a custom field described by a :class:`HeaderField` or a mapping.

        Mappings may only carry the keys in :data:`CUSTOM_FIELD_KEYS`.

        Raises:
            InvalidHeaderFieldError: If the descriptor is malformed, its value
                is not a string, or the name is already registered.
        """
        if isinstance(field, Mapping):
            field = self._field_from_mapping(field)
        elif not isinstance(field, HeaderField):
            raise InvalidHeaderFieldError("Invalid input for custom header. It must be in type of HeaderField.")

        if not isinstance(field.name, str) or not FIELD_NAME_PATTERN.match(field.name):
            raise InvalidHeaderFieldError(f"Invalid custom header name: {field.name!r}")
        if not isinstance(field.value, str):
            raise InvalidHeaderFieldError("Custom header must have a value.")
        if self._find(field.name) is not None:
            raise InvalidHeaderFieldError(f'The "{field.name}" header is already registered.')

        field.kind = FieldKind.CUSTOM
        field.custom = True
        if field.validator is None:
            field.validator = is_text
        self._fields.append(field)
        return field

    @staticmethod
    def _field_from_mapping(data: Mapping[str, Any]) -> HeaderField:
        unknown = set(data) - CUSTOM_FIELD_KEYS
        if unknown or not isinstance(data.get("name"), str) or not data["name"]:
            raise InvalidHeaderFieldError("Invalid input for custom header. It must be in type of HeaderField.")
        known = {f.name for f in dataclass_fields(HeaderField)}
        return HeaderField(**{key: val for key, val in data.items() if key in known})

    def disable(self, name: str) -> None:
        """Leave ``name`` out of rendered output."""
        self._require(name).disabled = True

    def enable(self, name: str) -> None:
        """Re-include a previously disabled field."""
        self._require(name).disabled = False

    def _require(self, name: str) -> HeaderField:
        field = self._find(name)
        if field is None:
            raise InvalidHeaderFieldError(f'Unknown header "{name}".')
        return field

    def to_dict(self) -> dict[str, HeaderValue | None]:
        """Return ``{name: value}`` for every field in render order."""
        return {field.name: field.value for field in self._fields}

    def encode_word(self, text: str) -> str:
        """Return ``text`` as an RFC 2047 UTF-8 base64 encoded word.

        Pure-ASCII text is returned unchanged when ``skip_encoding_pure_ascii``
        is enabled.
        """
        if self.skip_encoding_pure_ascii and is_pure_ascii(text):
            return text
        return f"=?utf-8?B?{self.env.to_base64(text)}?="

    def render_mailbox(self, mailbox: Mailbox) -> str:
        if not mailbox.name:
            return mailbox.dump()
        return f"{self.encode_word(mailbox.name)} <{mailbox.addr}>"

    def render_mailbox_single(self, value: HeaderValue) -> str:
        return self.render_mailbox(value) if isinstance(value, Mailbox) else ""

    def render_mailbox_multi(self, value: HeaderValue) -> str:
        if isinstance(value, Mailbox):
            return self.render_mailbox(value)
        if is_mailbox_list(value):
            return f",{self.env.eol} ".join(self.render_mailbox(item) for item in value)  # type: ignore[union-attr]
        return ""

    def render_text(self, value: HeaderValue) -> str:
        return self.encode_word(value) if isinstance(value, str) else ""


class MessageHeaders(HeaderRegistry):
    """Top-level message headers in RFC 5322 order.

    Date, Message-ID and MIME-Version are generated on first render when no
    value has been set. From and Subject are required.

    Examples:
        >>> from mimecraft.environment import EnvironmentContext
        >>> headers = MessageHeaders(EnvironmentContext(), skip_encoding_pure_ascii=True)
        >>> _ = headers.set("From", Mailbox.parse("me@example.com"))
        >>> _ = headers.set("Subject", "hello")
        >>> headers.disable("Date"); headers.disable("Message-ID")
        >>> print(headers.dump().replace("\\r\\n", "|"))
        From: <me@example.com>|Subject: hello|MIME-Version: 1.0
    """

    def _default_fields(self) -> list[HeaderField]:
        single = {
            "kind": FieldKind.MAILBOX_SINGLE,
            "validator": is_mailbox,
            "renderer": self.render_mailbox_single,
        }
        multi = {
            "kind": FieldKind.MAILBOX_MULTI,
            "validator": lambda v: is_mailbox(v) or is_mailbox_list(v),
            "renderer": self.render_mailbox_multi,
        }
        return [
            HeaderField("Date", kind=FieldKind.GENERATED, generator=self.generate_date, validator=is_text),
            HeaderField("From", required=True, **single),
            HeaderField("Sender", **single),
            HeaderField("Reply-To", **single),
            HeaderField("To", **multi),
            HeaderField("Cc", **multi),
            HeaderField("Bcc", **multi),
            HeaderField(
                "Message-ID",
                kind=FieldKind.GENERATED,
                generator=self.generate_message_id,
                validator=is_text,
            ),
            HeaderField("Subject", required=True, validator=is_text, renderer=self.render_text),
            HeaderField("MIME-Version", kind=FieldKind.GENERATED, generator=lambda: "1.0", validator=is_text),
        ]

    def generate_date(self) -> str:
        """Format the environment clock per RFC 5322 with a ``+0000`` zone."""
        return format_datetime(self.env.clock.now().astimezone(timezone.utc))

    def generate_message_id(self) -> str:
        """Return ``<token@domain>`` using the domain of the From address."""
        sender = self.get("From")
        domain = sender.get_addr_domain() if isinstance(sender, Mailbox) else ""
        return f"<{self.env.random_source.token()}@{domain}>"


class ContentHeaders(HeaderRegistry):
    """Per-part content headers: four optional, unvalidated fields."""

    def _default_fields(self) -> list[HeaderField]:
        return [
            HeaderField("Content-ID"),
            HeaderField("Content-Type"),
            HeaderField("Content-Transfer-Encoding"),
            HeaderField("Content-Disposition"),
        ]


__all__ = [
    "CUSTOM_FIELD_KEYS",
    "ContentHeaders",
    "FieldKind",
    "HeaderField",
    "HeaderRegistry",
    "HeaderValue",
    "MessageHeaders",
    "is_mailbox",
    "is_mailbox_list",
]
