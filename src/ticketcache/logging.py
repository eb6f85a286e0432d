"""Logging for the ticketcache service.

One rotating log file (plus optional console output) shared by the
ticketcache loggers and the uvicorn server loggers. Every record passes
through a redaction filter, so forge tokens and caller bearer credentials
never reach a handler.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "ticketcache.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Server loggers routed into the same handlers when serving
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

_REDACTIONS = [
    (re.compile(r"ghp_[a-zA-Z0-9]{36}"), "[FORGE_TOKEN]"),  # personal access token
    (re.compile(r"gho_[a-zA-Z0-9]{36}"), "[FORGE_TOKEN]"),  # OAuth token
    (re.compile(r"ghs_[a-zA-Z0-9]{36}"), "[FORGE_TOKEN]"),  # installation token
    (re.compile(r"github_pat_[a-zA-Z0-9_]{82}"), "[FORGE_TOKEN]"),  # fine-grained PAT
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"token=[a-zA-Z0-9._-]+"), "token=[REDACTED]"),
]


def sanitize_for_log(text: str) -> str:
    """Remove credentials from text before it is logged.

    Args:
        text: Text that may contain forge tokens or bearer credentials.

    Returns:
        Sanitized text safe for logging.
    """
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


class RedactingFilter(logging.Filter):
    """Rewrites each record's message with credentials removed."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = sanitize_for_log(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _build_handlers(
    log_path: Path, max_bytes: int, backup_count: int, console: bool
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    redactor = RedactingFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
    return handlers


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
    server_loggers: bool = False,
) -> logging.Logger:
    """Set up logging with a rotating file handler.

    Args:
        log_dir: Directory for log files. Defaults to TICKETCACHE_LOG_DIR, then 'logs'.
        log_file: Log file name.
        max_bytes: Maximum size per log file before rotation.
        backup_count: Number of rotated files to keep.
        level: Log level name. Defaults to TICKETCACHE_LOG_LEVEL, then INFO.
        console: Whether to also log to the console.
        server_loggers: Whether the uvicorn loggers write to the same handlers.

    Returns:
        The root ticketcache logger.
    """
    log_dir = Path(log_dir or os.environ.get("TICKETCACHE_LOG_DIR", DEFAULT_LOG_DIR))
    log_dir.mkdir(parents=True, exist_ok=True)

    level = level or os.environ.get("TICKETCACHE_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    log_path = log_dir / log_file
    handlers = _build_handlers(log_path, max_bytes, backup_count, console)

    names = ["ticketcache"]
    if server_loggers:
        names.extend(SERVER_LOGGERS)
    for name in names:
        target = logging.getLogger(name)
        target.setLevel(log_level)
        # Replace rather than add, so repeated setup never duplicates lines
        target.handlers.clear()
        if name in ("ticketcache", "uvicorn"):
            for handler in handlers:
                target.addHandler(handler)

    logger = logging.getLogger("ticketcache")
    logger.info("ticketcache logging initialized (level=%s, file=%s)", level, log_path)
    return logger
