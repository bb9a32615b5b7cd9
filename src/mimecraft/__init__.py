"""Compose RFC 5322 email messages as raw text.

mimecraft builds a message (headers plus a possibly multipart body) from
mailboxes, one or two text bodies and optional attachments, and renders it
as RFC 5322 / 2045 / 2046 / 2047 text or as URL-safe base64 of that text.

Examples:
    >>> from datetime import datetime, timezone
    >>> from mimecraft import EnvironmentContext, FixedClock, SequenceRandomSource, create_message
    >>> env = EnvironmentContext(
    ...     eol="\\n",
    ...     clock=FixedClock(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
    ...     random_source=SequenceRandomSource(["mix", "alt", "rel", "id"]),
    ... )
    >>> msg = create_message(env, skip_encoding_pure_ascii=True)
    >>> _ = msg.set_sender("Jane <jane@example.com>")
    >>> _ = msg.set_to("bob@example.com")
    >>> _ = msg.set_subject("Hello")
    >>> _ = msg.add_message("Hi Bob", content_type="text/plain")
    >>> print(msg.as_raw())
    Date: Tue, 02 Jan 2024 03:04:05 +0000
    From: Jane <jane@example.com>
    To: <bob@example.com>
    Message-ID: <id@example.com>
    Subject: Hello
    MIME-Version: 1.0
    Content-Type: text/plain; charset=UTF-8
    Content-Transfer-Encoding: 7bit
    <BLANKLINE>
    Hi Bob
"""

from mimecraft.config import ComposerConfig, load_config
from mimecraft.description import build_message, load_description
from mimecraft.environment import (
    Clock,
    EnvironmentContext,
    FixedClock,
    RandomSource,
    SecretsRandomSource,
    SequenceRandomSource,
    SystemClock,
)
from mimecraft.exceptions import (
    ConfigError,
    InvalidHeaderFieldError,
    InvalidHeaderValueError,
    InvalidMailboxError,
    InvalidMessageTypeError,
    MimecraftError,
    MissingBodyError,
    MissingFilenameError,
    MissingHeaderError,
)
from mimecraft.headers import ContentHeaders, FieldKind, HeaderField, HeaderRegistry, MessageHeaders
from mimecraft.mailbox import Mailbox, MailboxKind
from mimecraft.message import MimeMessage, create_message
from mimecraft.meta import __version__
from mimecraft.part import MimePart
from mimecraft.topology import Boundaries, Topology, select_topology

__all__ = [
    "Boundaries",
    "Clock",
    "ComposerConfig",
    "ConfigError",
    "ContentHeaders",
    "EnvironmentContext",
    "FieldKind",
    "FixedClock",
    "HeaderField",
    "HeaderRegistry",
    "InvalidHeaderFieldError",
    "InvalidHeaderValueError",
    "InvalidMailboxError",
    "InvalidMessageTypeError",
    "Mailbox",
    "MailboxKind",
    "MessageHeaders",
    "MimeMessage",
    "MimePart",
    "MimecraftError",
    "MissingBodyError",
    "MissingFilenameError",
    "MissingHeaderError",
    "RandomSource",
    "SecretsRandomSource",
    "SequenceRandomSource",
    "SystemClock",
    "Topology",
    "__version__",
    "build_message",
    "create_message",
    "load_config",
    "load_description",
    "select_topology",
]
