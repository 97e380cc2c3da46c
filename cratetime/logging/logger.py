# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for cratetime.

Every orchestrator notice (skipping, building, failed, aborted) is a single
JSON line so a long batch over the whole index can be grepped or loaded into
a dataframe afterwards.

Two things are worth knowing about where these lines end up:
  - Handlers write to whatever `sys.stdout` was when the logger was created.
    While an OutputCapture guard is live, fd 1 points at the package's
    `stdio` file, so anything logged from inside the guard lands in that
    package's captured log. The orchestrator therefore logs its progress
    notices before acquiring and after releasing the guard.
  - An optional file handler mirrors everything to a run log that is never
    redirected.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "cratetime.batch", "msg": "skipping", "package": "serde"}
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

# Attributes every LogRecord carries. Anything else came in through `extra`.
_STANDARD_ATTRS = frozenset({
    "name",
    "msg",
    "args",
    "created",
    "relativeCreated",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "pathname",
    "filename",
    "module",
    "levelno",
    "levelname",
    "processName",
    "process",
    "threadName",
    "thread",
    "message",
    "msecs",
    "taskName",
})


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields:
      ts     ISO 8601 UTC timestamp
      level  log level name
      module the logger name
      msg    the formatted message string

    Fields passed through `extra=` are merged in, and a formatted traceback
    is attached under `exc` when the call used `exc_info`.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create (or fetch) a structured JSON logger.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a run log. If provided, records go to both
                  stdout and the file.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    # get_logger runs once per module import and again from the CLI with the
    # user's level; only the first call attaches handlers.
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = JsonFormatter()

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def configure_logging(
    root_name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> None:
    """
    Apply a level (and optional run log) to every logger under `root_name`.

    Module loggers are created at import time with the default level, before
    the CLI has parsed `--log-level`; this brings all of them in line.
    """
    level = _resolve_log_level(log_level)
    names = [
        name
        for name in list(logging.Logger.manager.loggerDict)
        if name == root_name or name.startswith(root_name + ".")
    ]
    file_formatter = JsonFormatter()

    for name in names:
        logger = get_logger(name, log_level=log_level)
        if log_file is None:
            continue
        already = any(
            isinstance(handler, logging.FileHandler)
            and Path(handler.baseFilename) == log_file.resolve()
            for handler in logger.handlers
        )
        if not already:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)
