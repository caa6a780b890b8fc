"""Logging for the Recipe Recommendation Engine.

Every engine module logs through the ``recipe_engine`` logger built here.
Output goes to stdout; ``LOG_TYPE=json`` switches to one JSON object per line
for log shippers, anything else gives colored console lines. ``LOG_LEVEL``
picks the threshold (INFO when unset or unrecognized).

Tier code attaches context with ``extra=``; the fields named in
``CONTEXT_FIELDS`` are rendered by both formats when present on a record.
"""

import json
import logging
import os
import sys
from typing import Any, NamedTuple

CONTEXT_FIELDS = ("session_id", "tier", "failure_kind", "cache_key")

ENGINE_LOGGER_NAME = "recipe_engine"
QUIET_LIBRARY_LOGGERS = ("google_genai", "aiohttp.access")


class LevelStyle(NamedTuple):
    color: str
    icon: str


ANSI_RESET = "\033[0m"

LEVEL_STYLES = {
    "DEBUG": LevelStyle("\033[36m", "🔍"),
    "INFO": LevelStyle("\033[32m", "ℹ️"),
    "WARNING": LevelStyle("\033[33m", "⚠️"),
    "ERROR": LevelStyle("\033[31m", "❌"),
}


class _ContextFormatter(logging.Formatter):
    """Base formatter that knows how to pull engine context off a record."""

    @staticmethod
    def context_of(record: logging.LogRecord) -> dict[str, Any]:
        return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(_ContextFormatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the record.

        Keys: timestamp, level, logger, message, any context fields (as
        strings) and ``exception`` when a traceback is attached.
        """
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({field: str(value) for field, value in self.context_of(record).items()})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class RichTextFormatter(_ContextFormatter):
    """Colored console line: icon, time, level, logger, message, ``[k=v ...]``."""

    def format(self, record: logging.LogRecord) -> str:
        style = LEVEL_STYLES.get(record.levelname, LevelStyle(ANSI_RESET, ""))
        context = self.context_of(record)
        tail = " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]" if context else ""

        line = (
            f"{style.color}{style.icon} {self.formatTime(record, '%Y-%m-%d %H:%M:%S')} "
            f"{record.levelname:<8} {record.name:<24} {record.getMessage()}{tail}{ANSI_RESET}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _build_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    json_output = os.getenv("LOG_TYPE", "text").strip().lower() == "json"
    handler.setFormatter(JSONFormatter() if json_output else RichTextFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching a stdout handler on first use.

    Args:
        name: Logger name.

    Returns:
        The configured logger; later calls with the same name reuse it as is.
    """
    named_logger = logging.getLogger(name)
    if named_logger.handlers:
        return named_logger

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO)
    named_logger.setLevel(level)
    named_logger.addHandler(_build_handler(level))
    return named_logger


logger = get_logger(ENGINE_LOGGER_NAME)

for _library_logger in QUIET_LIBRARY_LOGGERS:
    logging.getLogger(_library_logger).setLevel(logging.WARNING)
