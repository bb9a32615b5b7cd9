"""Tests for the mimecraft command line interface."""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from mimecraft.cli import app
from mimecraft.logging import PACKAGE_LOGGER, TRACE_LEVEL

# Mark all tests in this module as CLI tests
# Run with: pytest -m cli
pytestmark = pytest.mark.cli

runner = CliRunner()

DESCRIPTION = """\
from: Jane Doe <jane@example.com>
to:
  - bob@example.com
subject: Hello
headers:
  X-Campaign: q3
messages:
  - content_type: text/plain
    data: Hi Bob
  - content_type: text/html
    data: <p>Hi Bob</p>
attachments:
  - path: notes.txt
    content_type: text/plain
"""


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Remove handlers installed by the commands."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = logger.handlers[:], logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def description_file(tmp_path: Path) -> Path:
    (tmp_path / "notes.txt").write_bytes(b"hello")
    path = tmp_path / "message.yml"
    path.write_text(DESCRIPTION, encoding="utf-8")
    return path


def test_no_args_shows_help() -> None:
    """Without arguments the help text is printed."""
    result = runner.invoke(app, [])
    assert "render" in result.output
    assert "inspect" in result.output


def test_render_raw(description_file: Path) -> None:
    """Render prints the raw message text."""
    result = runner.invoke(app, ["render", str(description_file)])
    assert result.exit_code == 0, result.output
    assert "Subject: =?utf-8?B?SGVsbG8=?=" in result.output
    assert "X-Campaign: q3" in result.output
    assert "Content-Type: multipart/mixed; boundary=" in result.output
    assert "Content-Type: multipart/alternative; boundary=" in result.output
    assert 'Content-Disposition: attachment; filename="notes.txt"' in result.output
    assert "aGVsbG8=" in result.output


def test_render_with_config(description_file: Path, tmp_path: Path) -> None:
    """Settings from --config change the rendered output."""
    config = tmp_path / "settings.yml"
    config.write_text("mimecraft:\n  skip_encoding_pure_ascii: true\n", encoding="utf-8")
    result = runner.invoke(app, ["render", str(description_file), "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert "Subject: Hello" in result.output
    assert "From: Jane Doe <jane@example.com>" in result.output


def test_render_encoded(description_file: Path) -> None:
    """--encoded prints URL-safe base64 of the message."""
    result = runner.invoke(app, ["render", str(description_file), "-e"])
    assert result.exit_code == 0, result.output
    decoded = base64.urlsafe_b64decode(result.output.strip()).decode("utf-8")
    assert decoded.startswith("Date: ")
    assert "Subject: =?utf-8?B?SGVsbG8=?=" in decoded


def test_render_missing_subject(tmp_path: Path) -> None:
    """Library errors are reported with their code and exit status 1."""
    path = tmp_path / "message.yml"
    path.write_text("from: jane@example.com\nmessages:\n  - content_type: text/plain\n    data: Hi\n", encoding="utf-8")
    result = runner.invoke(app, ["render", str(path)])
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "MIMECRAFT_MISSING_HEADER" in result.output


def test_render_invalid_description(tmp_path: Path) -> None:
    path = tmp_path / "message.yml"
    path.write_text("colour: red\n", encoding="utf-8")
    result = runner.invoke(app, ["render", str(path)])
    assert result.exit_code == 1
    assert "Unknown description keys: colour" in result.output


def test_render_missing_file(tmp_path: Path) -> None:
    """Typer rejects paths that do not exist."""
    result = runner.invoke(app, ["render", str(tmp_path / "nope.yml")])
    assert result.exit_code == 2


def test_render_verbose_sets_level(description_file: Path) -> None:
    """-vv enables trace logging on the package logger."""
    result = runner.invoke(app, ["render", str(description_file), "-vv"])
    assert result.exit_code == 0, result.output
    assert logging.getLogger(PACKAGE_LOGGER).level == TRACE_LEVEL


def test_inspect(description_file: Path) -> None:
    """Inspect lists headers, parts and the topology."""
    result = runner.invoke(app, ["inspect", str(description_file)])
    assert result.exit_code == 0, result.output
    assert "Topology: mixed" in result.output
    assert "jane@example.com" in result.output
    assert "X-Campaign" in result.output
    assert "text/html; charset=UTF-8" in result.output
    assert 'attachment; filename="notes.txt"' in result.output


def test_inspect_error(tmp_path: Path) -> None:
    path = tmp_path / "message.yml"
    path.write_text("to: [42]\n", encoding="utf-8")
    result = runner.invoke(app, ["inspect", str(path)])
    assert result.exit_code == 1
    assert "MIMECRAFT_INVALID_MAILBOX" in result.output
