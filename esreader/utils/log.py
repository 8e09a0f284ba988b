# esreader/utils/log.py
"""esreader logging utilities.

One package logger, shared by every module, and a helper to attach handlers.
Importing esreader never configures logging; applications call
configure_logging() (or wire the "esreader" logger themselves).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("esreader")
log.addHandler(logging.NullHandler())


def configure_logging(*, level: str = "INFO", log_file: str | None = None) -> None:
    """Attach handlers to the esreader logger.

    Uses format: mm-dd HH:MM:SS [<LVL>] <threadName> <message>
    where LVL is one of: DEBG/INFO/WARN/ERRO.

    Args:
        level: Logging level name (e.g. INFO, DEBUG).
        log_file: Optional path; when given, logs are mirrored there at DEBUG.
    """
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    formatter = _AbbrevLevelFormatter(
        fmt="%(asctime)s [%(levelabbr)s] %(threadName)s %(message)s",
        datefmt="%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(resolved_level)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    log.handlers.clear()
    for handler in handlers:
        log.addHandler(handler)
    log.setLevel(min(logging.DEBUG, resolved_level) if log_file else resolved_level)
    log.propagate = False
