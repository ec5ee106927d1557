"""spellsift logging utilities.

Every module logs through the single package logger ``log``. The engines
stay silent until ``configure_logging`` attaches a handler; the CLI calls it
once at startup.
"""

from __future__ import annotations

import logging
from typing import Final


_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        """Format one log record with an abbreviated level.

        Args:
            record: Logging record.

        Returns:
            Formatted message string.
        """
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("spellsift")


def configure_logging(*, level: str = "WARNING", stream=None) -> None:
    """Configure the spellsift logger.

    Uses format: HH:MM:SS [<LVL>] <name>: <message>
    where LVL is one of: DEBG/INFO/WARN/ERRO.

    Args:
        level: Logging level name (e.g., WARNING, DEBUG). Unknown names fall
            back to WARNING.
        stream: Optional stream for the handler (defaults to stderr).
    """
    resolved_level = getattr(logging, (level or "WARNING").upper(), None)
    if not isinstance(resolved_level, int):
        resolved_level = logging.WARNING

    formatter = _AbbrevLevelFormatter(
        fmt="%(asctime)s [%(levelabbr)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    log.handlers.clear()
    log.addHandler(handler)
    log.setLevel(resolved_level)
    log.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger.

    Args:
        name: Dotted suffix, e.g. ``"pipeline"``.

    Returns:
        Logger named ``spellsift.<name>``.
    """
    return log.getChild(name)
