"""Build messages from declarative descriptions.

A description is a mapping (usually loaded from YAML) listing the
mailboxes, subject, bodies and attachments of a message::

    from: "Jane Doe <jane@example.com>"
    to:
      - bob@example.com
      - {addr: ann@example.com, name: Ann}
    subject: Quarterly report
    headers:
      X-Campaign: q3
    messages:
      - content_type: text/plain
        data: See attached.
      - content_type: text/html
        data: <p>See attached. <img src="cid:logo"></p>
    attachments:
      - path: report.pdf
        content_type: application/pdf
      - path: logo.png
        content_type: image/png
        inline: true
        content_id: logo

Attachment ``path`` values are resolved relative to the description file
and base64-encoded on load; ``data`` may be given instead for payloads that
are already encoded.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mimecraft.config import ComposerConfig, expand_env_vars_recursive, read_yaml
from mimecraft.environment import EnvironmentContext
from mimecraft.exceptions import ConfigError
from mimecraft.mailbox import MailboxKind
from mimecraft.message import MimeMessage

log = logging.getLogger(__name__)

#: Maximum encoded line length for base64 bodies (RFC 2045 section 6.8).
BASE64_LINE_LENGTH = 76

_MAILBOX_KEYS = {
    "from": MailboxKind.FROM,
    "sender": MailboxKind.SENDER,
    "reply_to": MailboxKind.REPLY_TO,
}
_RECIPIENT_KEYS = {
    "to": MailboxKind.TO,
    "cc": MailboxKind.CC,
    "bcc": MailboxKind.BCC,
}
_TOP_LEVEL_KEYS = frozenset({*_MAILBOX_KEYS, *_RECIPIENT_KEYS, "subject", "headers", "messages", "attachments"})
_MESSAGE_KEYS = frozenset({"data", "content_type", "encoding", "charset", "headers"})
_ATTACHMENT_KEYS = frozenset({"data", "path", "filename", "content_type", "encoding", "inline", "content_id", "headers"})


def encode_base64_lines(payload: bytes, eol: str) -> str:
    """Base64-encode ``payload`` and wrap it at 76 characters per line.

    Examples:
        >>> encode_base64_lines(b"hello", "\\n")
        'aGVsbG8='
    """
    encoded = base64.b64encode(payload).decode("ascii")
    chunks = [encoded[i : i + BASE64_LINE_LENGTH] for i in range(0, len(encoded), BASE64_LINE_LENGTH)]
    return eol.join(chunks)


def _check_keys(data: Any, allowed: frozenset[str], what: str, source: str | None) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{what} must be a mapping", source)
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(f"Unknown {what} keys: {', '.join(unknown)}", source)
    return data


def _as_list(value: Any, what: str, source: str | None) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'{what}' must be a list", source)
    return value


def _attachment_payload(
    item: Mapping[str, Any],
    base_dir: Path | None,
    eol: str,
    source: str | None,
) -> tuple[str, str | None]:
    """Return ``(data, default_filename)`` for an attachment entry."""
    if "path" in item:
        path = Path(item["path"])
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        try:
            payload = path.read_bytes()
        except OSError as e:
            raise ConfigError(f"Cannot read attachment: {e}", source) from e
        log.debug("Loaded attachment %s (%d bytes)", path, len(payload))
        return encode_base64_lines(payload, eol), path.name

    data = item.get("data")
    if not isinstance(data, str):
        raise ConfigError("Attachment requires 'path' or string 'data'", source)
    return data, None


def build_message(
    description: Mapping[str, Any],
    config: ComposerConfig | None = None,
    *,
    env: EnvironmentContext | None = None,
    base_dir: Path | None = None,
    source: str | None = None,
) -> MimeMessage:
    """Create a :class:`MimeMessage` from a description mapping.

    Args:
        description: Parsed description (see module docstring).
        config: Composer settings.
        env: Environment capabilities (clock, random source, encoders).
        base_dir: Directory attachment paths are relative to.
        source: Origin of the description, used in error messages.

    Returns:
        The composed message, not yet rendered.

    Raises:
        ConfigError: If the description is malformed.
        MimecraftError: If a mailbox, header or part is rejected.
    """
    description = _check_keys(description, _TOP_LEVEL_KEYS, "description", source)
    message = MimeMessage(env, config)

    for key, kind in _MAILBOX_KEYS.items():
        if description.get(key) is not None:
            message.set_sender(description[key], kind)
    for key, kind in _RECIPIENT_KEYS.items():
        if description.get(key) is not None:
            message.set_recipients(description[key], kind)

    if description.get("subject") is not None:
        message.set_subject(str(description["subject"]))

    headers = description.get("headers") or {}
    if not isinstance(headers, Mapping):
        raise ConfigError("'headers' must be a mapping", source)
    message.set_headers({str(name): str(value) for name, value in headers.items()})

    for entry in _as_list(description.get("messages"), "messages", source):
        item = _check_keys(entry, _MESSAGE_KEYS, "message", source)
        message.add_message(
            str(item.get("data", "")),
            item.get("content_type"),
            encoding=item.get("encoding"),
            charset=item.get("charset"),
            headers=item.get("headers"),
        )

    for entry in _as_list(description.get("attachments"), "attachments", source):
        item = _check_keys(entry, _ATTACHMENT_KEYS, "attachment", source)
        inline = item.get("inline", False)
        if not isinstance(inline, bool):
            raise ConfigError(f"Attachment 'inline' must be a boolean, got {inline!r}", source)
        data, default_name = _attachment_payload(item, base_dir, message.env.eol, source)
        message.add_attachment(
            data,
            item.get("filename") or default_name,
            item.get("content_type"),
            encoding=item.get("encoding"),
            inline=inline,
            content_id=item.get("content_id"),
            headers=item.get("headers"),
        )

    return message


def load_description(
    path: str | Path,
    config: ComposerConfig | None = None,
    *,
    env: EnvironmentContext | None = None,
) -> MimeMessage:
    """Read a YAML description file and build its message.

    ``${VAR}`` references in string values are expanded from the environment.

    Raises:
        ConfigError: If the file is unreadable or malformed.
        MimecraftError: If a mailbox, header or part is rejected.
    """
    path = Path(path)
    source = str(path)
    data = expand_env_vars_recursive(read_yaml(path), source)
    if data is None:
        raise ConfigError("Description file is empty", source)
    return build_message(data, config, env=env, base_dir=path.parent, source=source)


__all__ = [
    "BASE64_LINE_LENGTH",
    "build_message",
    "encode_base64_lines",
    "load_description",
]
