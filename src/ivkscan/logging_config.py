"""
Logging setup for the ivkscan command line and host applications.

The library only creates module loggers; nothing is configured on import.
The CLI writes results to stdout, so every handler installed here writes
to stderr or a file. Console output is ``human`` (coloured only on a
terminal) or ``json``; files are always JSON lines.

Scan counters passed as ``extra=`` (see SCAN_FIELDS) become top-level keys
of the JSON record.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from . import config

# extra= keys carried into JSON records
SCAN_FIELDS = ("outputs", "matched", "elapsed_s", "account_index", "action_index")


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in SCAN_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS [LEVEL] logger: message``, warnings and errors in colour."""

    _COLOURS = {"WARNING": "\033[33m", "ERROR": "\033[31m", "CRITICAL": "\033[1;31m"}
    _RESET = "\033[0m"

    def __init__(self, colour: bool = False):
        super().__init__("%(asctime)s [%(levelname)-7s] %(name)s: %(message)s", "%H:%M:%S")
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        code = self._COLOURS.get(record.levelname) if self.colour else None
        return f"{code}{line}{self._RESET}" if code else line


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure and return the ``ivkscan`` logger.

    Arguments default to IVKSCAN_LOG_LEVEL, IVKSCAN_LOG_FORMAT and
    IVKSCAN_LOG_FILE. Calling it again replaces the previous handlers.
    """
    level = level or config.LOG_LEVEL
    fmt = fmt or config.LOG_FORMAT
    log_file = log_file if log_file is not None else config.LOG_FILE

    logger = logging.getLogger("ivkscan")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        console.setFormatter(_JSONFormatter())
    else:
        console.setFormatter(_ConsoleFormatter(colour=sys.stderr.isatty()))
    logger.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path))
        fh.setFormatter(_JSONFormatter())
        logger.addHandler(fh)
    return logger
