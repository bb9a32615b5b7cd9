"""Logging helpers for mimecraft.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers themselves. Applications (and the ``mimecraft`` CLI) call
:func:`configure_logging` to get Rich-formatted console output.

A ``TRACE`` level below ``DEBUG`` is registered for per-field rendering
detail. Check ``log.isEnabledFor(TRACE_LEVEL)`` before building trace
messages.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace

from rich.console import Console
from rich.logging import RichHandler

#: Custom level below DEBUG for very verbose output.
TRACE_LEVEL = 5

#: Root logger of the package.
PACKAGE_LOGGER = "mimecraft"

LOGGING_LEVEL = SimpleNamespace(
    TRACE=TRACE_LEVEL,
    DEBUG=logging.DEBUG,
    INFO=logging.INFO,
    WARNING=logging.WARNING,
    ERROR=logging.ERROR,
    CRITICAL=logging.CRITICAL,
)

logging.addLevelName(TRACE_LEVEL, "TRACE")


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = getattr(LOGGING_LEVEL, level.upper(), None)
    if resolved is None:
        raise ValueError(f"Unknown log level: {level!r}")
    return int(resolved)


def configure_logging(level: int | str = "WARNING", *, console: Console | None = None) -> logging.Logger:
    """Attach a Rich handler to the package logger.

    Calling this again replaces the previously installed handler, so the
    level can be changed at runtime.

    Args:
        level: Level name (``TRACE``, ``DEBUG``, ...) or numeric level.
        console: Rich console to write to (defaults to stderr).

    Returns:
        The configured ``mimecraft`` logger.

    Raises:
        ValueError: If ``level`` is an unknown name.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    return logger


__all__ = [
    "LOGGING_LEVEL",
    "PACKAGE_LOGGER",
    "TRACE_LEVEL",
    "configure_logging",
]
