"""Tests for building messages from descriptions."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from mimecraft import ComposerConfig, EnvironmentContext, Topology
from mimecraft.description import build_message, encode_base64_lines, load_description
from mimecraft.exceptions import ConfigError, InvalidMailboxError, MissingFilenameError
from mimecraft.mailbox import Mailbox, MailboxKind

CRLF = "\r\n"


@pytest.fixture
def description() -> dict[str, Any]:
    return {
        "from": "Jane Doe <jane@example.com>",
        "to": ["bob@example.com", {"addr": "ann@example.com", "name": "Ann"}],
        "subject": "Hello",
        "messages": [{"content_type": "text/plain", "data": "Hi Bob"}],
    }


class TestEncodeBase64Lines:
    """Tests for wrapped base64 payloads."""

    def test_wraps_at_76(self) -> None:
        text = encode_base64_lines(b"x" * 100, CRLF)
        lines = text.split(CRLF)
        assert [len(line) for line in lines] == [76, 60]

    def test_empty(self) -> None:
        assert encode_base64_lines(b"", CRLF) == ""


class TestBuildMessage:
    """Tests for build_message."""

    def test_headers_and_body(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        message = build_message(description, ComposerConfig(skip_encoding_pure_ascii=True), env=env)
        assert message.get_sender() == Mailbox("jane@example.com", "Jane Doe", MailboxKind.FROM)
        assert [box.addr for box in message.get_recipients()] == ["bob@example.com", "ann@example.com"]
        raw = message.as_raw()
        assert "To: <bob@example.com>," + CRLF + " Ann <ann@example.com>" in raw
        assert raw.endswith("Hi Bob")

    def test_all_mailbox_keys(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description.update({"sender": "ops@example.com", "reply_to": "help@example.com", "cc": "c@example.com"})
        message = build_message(description, env=env)
        assert message.get_header("Sender") == Mailbox("ops@example.com", kind=MailboxKind.SENDER)
        assert message.get_header("Reply-To") == Mailbox("help@example.com", kind=MailboxKind.REPLY_TO)
        assert message.get_recipients("Cc") == [Mailbox("c@example.com", kind=MailboxKind.CC)]

    def test_custom_headers(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description["headers"] = {"X-Campaign": "q3", "X-Count": 7}
        message = build_message(description, env=env)
        assert message.get_header("X-Campaign") == "q3"
        assert message.get_header("X-Count") == "7"

    def test_inline_data_attachment(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description["messages"].append({"content_type": "text/html", "data": '<img src="cid:logo">'})
        description["attachments"] = [
            {"data": "iVBORw0KGgo=", "filename": "logo.png", "content_type": "image/png", "inline": True, "content_id": "logo"}
        ]
        message = build_message(description, env=env)
        assert message.topology() is Topology.RELATED
        (part,) = message.get_inline_attachments()
        assert part.get_header("Content-ID") == "<logo>"

    def test_path_attachment(self, tmp_path: Path, env: EnvironmentContext, description: dict[str, Any]) -> None:
        """Files are read relative to base_dir and base64-encoded."""
        (tmp_path / "notes.txt").write_bytes(b"hello")
        description["attachments"] = [{"path": "notes.txt", "content_type": "text/plain"}]
        message = build_message(description, env=env, base_dir=tmp_path)
        (part,) = message.get_attachments()
        assert part.data == "aGVsbG8="
        assert part.get_header("Content-Disposition") == 'attachment; filename="notes.txt"'

    def test_path_attachment_filename_override(
        self, tmp_path: Path, env: EnvironmentContext, description: dict[str, Any]
    ) -> None:
        (tmp_path / "notes.txt").write_bytes(b"hello")
        description["attachments"] = [{"path": "notes.txt", "filename": "readme.txt"}]
        (part,) = build_message(description, env=env, base_dir=tmp_path).get_attachments()
        assert part.get_header("Content-Type") == 'application/octet-stream; name="readme.txt"'

    def test_missing_attachment_file(self, tmp_path: Path, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description["attachments"] = [{"path": "missing.bin"}]
        with pytest.raises(ConfigError, match="Cannot read attachment"):
            build_message(description, env=env, base_dir=tmp_path)

    def test_data_attachment_without_filename(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description["attachments"] = [{"data": "QQ=="}]
        with pytest.raises(MissingFilenameError):
            build_message(description, env=env)

    def test_attachment_without_payload(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description["attachments"] = [{"filename": "a.bin"}]
        with pytest.raises(ConfigError, match="'path' or string 'data'"):
            build_message(description, env=env)

    @pytest.mark.parametrize(
        ("key", "value", "match"),
        [
            ("colour", "red", "Unknown description keys: colour"),
            ("messages", {"data": "x"}, "'messages' must be a list"),
            ("messages", [{"data": "x", "type": "text/plain"}], "Unknown message keys: type"),
            ("messages", ["text"], "message must be a mapping"),
            ("attachments", [{"path": "a", "size": 1}], "Unknown attachment keys: size"),
            ("headers", ["X-A"], "'headers' must be a mapping"),
        ],
    )
    def test_malformed(
        self, env: EnvironmentContext, description: dict[str, Any], key: str, value: Any, match: str
    ) -> None:
        description[key] = value
        with pytest.raises(ConfigError, match=match):
            build_message(description, env=env, source="msg.yml")

    @pytest.mark.parametrize("value", ["false", "yes", 1])
    def test_inline_must_be_boolean(
        self, env: EnvironmentContext, description: dict[str, Any], value: object
    ) -> None:
        """Quoted YAML booleans are rejected instead of read as truthy."""
        description["attachments"] = [{"data": "QQ==", "filename": "a.png", "inline": value}]
        with pytest.raises(ConfigError, match="'inline' must be a boolean"):
            build_message(description, env=env)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigError, match="description must be a mapping"):
            build_message(["from"])  # type: ignore[arg-type]

    def test_invalid_mailbox(self, env: EnvironmentContext, description: dict[str, Any]) -> None:
        description["to"] = [42]
        with pytest.raises(InvalidMailboxError):
            build_message(description, env=env)


class TestLoadDescription:
    """Tests for load_description."""

    def test_yaml_file(self, tmp_path: Path, env: EnvironmentContext, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MC_RECIPIENT", "bob@example.com")
        (tmp_path / "logo.png").write_bytes(b"\x89PNG")
        path = tmp_path / "message.yml"
        path.write_text(
            "from: Jane <jane@example.com>\n"
            "to: ${MC_RECIPIENT}\n"
            "subject: Report\n"
            "messages:\n"
            "  - content_type: text/html\n"
            "    data: <p>Hi</p>\n"
            "attachments:\n"
            "  - path: logo.png\n"
            "    content_type: image/png\n"
            "    inline: true\n"
            "    content_id: logo\n",
            encoding="utf-8",
        )
        message = load_description(path, env=env)
        assert message.get_recipients() == [Mailbox("bob@example.com")]
        assert message.topology() is Topology.RELATED
        (part,) = message.get_inline_attachments()
        assert part.data == "iVBORw=="

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="empty"):
            load_description(path)
