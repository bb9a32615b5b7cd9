"""Configuration for the message composer.

Settings are read from the ``mimecraft`` section of a YAML file. Every key
is optional; missing keys fall back to the defaults below.

Example ``mimecraft.yml``::

    mimecraft:
      eol: "\\r\\n"
      skip_encoding_pure_ascii: true
      default_charset: UTF-8
      default_text_encoding: 7bit
      default_attachment_encoding: base64

String values may reference environment variables as ``${VAR}`` or
``${VAR:-default}``.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from mimecraft.exceptions import ConfigError
from mimecraft.validators import TRANSFER_ENCODINGS

log = logging.getLogger(__name__)

#: Name of the section holding composer settings.
CONFIG_SECTION = "mimecraft"

#: File looked up in the working directory when no path is given.
DEFAULT_CONFIG_FILENAME = "mimecraft.yml"

#: Line terminators accepted for ``eol``.
ALLOWED_EOLS = frozenset({"\r\n", "\n"})

# Pattern for environment variable substitution: ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([a-zA-Z_][a-zA-Z0-9_]*)(?::-([^}]*))?\}")

_CHARSET_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:+-]{0,39}$")


def _expand_env_vars(value: str, source: str | None = None) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` references in ``value``.

    Raises:
        ConfigError: If a referenced variable is unset and has no default.

    Examples:
        >>> import os
        >>> os.environ["MIMECRAFT_TEST_EOL"] = "\\n"
        >>> _expand_env_vars("${MIMECRAFT_TEST_EOL}") == "\\n"
        True
        >>> _expand_env_vars("${MIMECRAFT_MISSING:-UTF-8}")
        'UTF-8'
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default_value = match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value
        if default_value is not None:
            return default_value
        raise ConfigError(f"Environment variable '{var_name}' is not set", source)

    return _ENV_VAR_PATTERN.sub(replacer, value)


def expand_env_vars_recursive(data: Any, source: str | None = None) -> Any:
    """Apply :func:`_expand_env_vars` to every string in nested dicts and lists."""
    if isinstance(data, dict):
        return {k: expand_env_vars_recursive(v, source) for k, v in data.items()}
    if isinstance(data, list):
        return [expand_env_vars_recursive(item, source) for item in data]
    if isinstance(data, str):
        return _expand_env_vars(data, source)
    return data


@dataclass(frozen=True, slots=True)
class ComposerConfig:
    """Composer settings.

    Attributes:
        eol: Line terminator (CRLF per RFC 5322, LF for local tooling).
        skip_encoding_pure_ascii: Leave pure-ASCII Subject and display names
            unencoded instead of wrapping them in RFC 2047 encoded words.
        default_charset: Charset announced for text bodies without one.
        default_text_encoding: Transfer encoding for text bodies without one.
        default_attachment_encoding: Transfer encoding for attachments without one.

    Examples:
        >>> ComposerConfig().eol == "\\r\\n"
        True
        >>> ComposerConfig(eol="\\r")
        Traceback (most recent call last):
            ...
        mimecraft.exceptions.ConfigError: Invalid eol '\\r': expected CRLF or LF
    """

    eol: str = "\r\n"
    skip_encoding_pure_ascii: bool = False
    default_charset: str = "UTF-8"
    default_text_encoding: str = "7bit"
    default_attachment_encoding: str = "base64"

    def __post_init__(self) -> None:
        if self.eol not in ALLOWED_EOLS:
            raise ConfigError(f"Invalid eol {self.eol!r}: expected CRLF or LF")
        if not isinstance(self.skip_encoding_pure_ascii, bool):
            raise ConfigError("skip_encoding_pure_ascii must be a boolean")
        if not isinstance(self.default_charset, str) or not _CHARSET_PATTERN.match(self.default_charset):
            raise ConfigError(f"Invalid default_charset {self.default_charset!r}")
        for name in ("default_text_encoding", "default_attachment_encoding"):
            value = getattr(self, name)
            if value not in TRANSFER_ENCODINGS:
                raise ConfigError(f"Invalid {name} {value!r}: expected one of {sorted(TRANSFER_ENCODINGS)}")

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None, source: str | None = None) -> ComposerConfig:
        """Build a config from the ``mimecraft`` section of a parsed file.

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"'{CONFIG_SECTION}' section must be a mapping", source)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown {CONFIG_SECTION} settings: {', '.join(unknown)}", source)

        try:
            return cls(**data)
        except ConfigError as e:
            raise ConfigError(e.message, source) from e


def read_yaml(path: Path) -> Any:
    """Parse a YAML file, wrapping I/O and syntax errors in :class:`ConfigError`."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read file: {e}", str(path)) from e
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", str(path)) from e


def load_config(path: str | Path | None = None) -> ComposerConfig:
    """Load composer settings from a YAML file.

    Args:
        path: File to read. When omitted, ``mimecraft.yml`` in the current
            directory is used if it exists, else defaults are returned.

    Returns:
        The loaded configuration.

    Raises:
        ConfigError: If the file is unreadable, malformed or holds invalid values.
    """
    if path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_FILENAME
        if not candidate.is_file():
            log.debug("No %s found, using default composer settings", DEFAULT_CONFIG_FILENAME)
            return ComposerConfig()
        path = candidate

    path = Path(path)
    source = str(path)
    data = read_yaml(path)
    if data is None:
        return ComposerConfig()
    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML document must be a mapping", source)

    section = expand_env_vars_recursive(data.get(CONFIG_SECTION), source)
    config = ComposerConfig.from_mapping(section, source)
    log.debug("Loaded composer settings from %s", source)
    return config


__all__ = [
    "ALLOWED_EOLS",
    "CONFIG_SECTION",
    "DEFAULT_CONFIG_FILENAME",
    "ComposerConfig",
    "expand_env_vars_recursive",
    "load_config",
    "read_yaml",
]
