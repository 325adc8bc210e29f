"""Standardized logging for eftdoc.

Provides three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message, plus tracebacks of chained errors
- CI/JSON mode: {"level":"...","ts":"...","logger":"...","msg":"..."}

All module loggers live below the ``eftdoc`` logger, so configuring it once
from the CLI flags governs the whole run.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "eftdoc"

# Attribute carrying structured fields on a LogRecord
EXTRA_ATTR = "extra_data"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


RESET = "\033[0m"

LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[31m",
}


def _is_tty(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class HumanFormatter(logging.Formatter):
    """Formatter for human-readable output.

    Format: [LEVEL] message
    """

    def __init__(self, use_colors: bool = False) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _prefix(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        if self.use_colors:
            tag = f"{LEVEL_COLORS.get(record.levelno, RESET)}{tag}{RESET}"
        return tag

    def format(self, record: logging.LogRecord) -> str:
        return f"{self._prefix(record)} {record.getMessage()}"


class VerboseFormatter(HumanFormatter):
    """Formatter for verbose output with timestamps.

    Format: [LEVEL][HH:MM:SS] message

    Exception info attached to the record is appended, so the driver error
    behind a ConnectivityError is visible with ``--verbose``.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{self._prefix(record)}[{timestamp}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Structured fields passed through ``EftdocLogger.structured`` are merged
    into the top-level object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, EXTRA_ATTR, {}))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class EftdocLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **fields: Any) -> None:
        """Log ``msg`` with additional structured fields.

        The fields only show up in JSON mode; other modes print ``msg``.

        Example:
            logger.structured(logging.INFO, "Operation is completed", entities=12)
        """
        if self.isEnabledFor(level):
            self.log(level, msg, extra={EXTRA_ATTR: fields})


logging.setLoggerClass(EftdocLogger)


def get_logger(name: str = ROOT_LOGGER) -> EftdocLogger:
    """Get an eftdoc logger instance."""
    return logging.getLogger(name)  # type: ignore[return-value]


def _formatter(mode: LogMode, use_colors: bool) -> logging.Formatter:
    if mode == LogMode.JSON:
        return JSONFormatter()
    if mode == LogMode.VERBOSE:
        return VerboseFormatter(use_colors=use_colors)
    return HumanFormatter(use_colors=use_colors)


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure the ``eftdoc`` logger with the specified mode.

    Replaces any handler installed by an earlier call.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stdout)
    """
    stream = stream or sys.stdout

    handler = logging.StreamHandler(stream)
    handler.setFormatter(_formatter(mode, _is_tty(stream)))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging based on CLI flags.

    ``--ci`` selects JSON lines and ``--verbose`` timestamps; ``--quiet``
    wins over ``--verbose`` for the level.
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO
    setup_logging(mode=mode, level=level)
