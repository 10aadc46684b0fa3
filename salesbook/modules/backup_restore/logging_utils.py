"""
modules/backup_restore/logging_utils.py

Purpose
-------
Uniform, append-only logging for backup / import / reset operations.

Public API
----------
- get_logger(file_path=None) -> logging.Logger
- log_event(logger, op, phase, message, extra: dict = {})
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from ...config import LOG_PATH
from ...constants import BACKUP_LOG_FILE_NAME

__all__ = ["get_logger", "log_event"]

_DEFAULT_LOG_FILE = LOG_PATH / BACKUP_LOG_FILE_NAME

# One logger name so repeated calls don't add duplicate handlers
_LOGGER_NAME = "salesbook.backup_restore"


class _JsonLineFormatter(logging.Formatter):
    """
    Minimal JSON-lines formatter:
      {"ts":"2025-09-16T12:00:01.123Z","level":"INFO","name":"...","msg":"...","extra":{...}}
    """
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra_payload", None)
        if isinstance(extra, dict):
            payload["extra"] = extra
        return json.dumps(payload, ensure_ascii=False, default=str)


def _file_handler(logger: logging.Logger) -> Optional[logging.FileHandler]:
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler):
            return h
    return None


def get_logger(file_path: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Return a logger that writes JSON lines to logs/backup_restore.log by default
    and mirrors WARNING+ to stderr. Reuses the same handlers across calls; an
    explicit file_path naming a different file moves the file handler there.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    log_file = Path(file_path) if file_path else _DEFAULT_LOG_FILE
    current = _file_handler(logger)
    if logger.handlers and file_path is None:
        return logger
    if current is not None:
        if Path(current.baseFilename).resolve() == log_file.resolve():
            return logger
        logger.removeHandler(current)
        current.close()

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), mode="a", encoding="utf-8", delay=True)
    except OSError:
        fh = None

    if fh is not None:
        fh.setLevel(level)
        fh.setFormatter(_JsonLineFormatter())
        logger.addHandler(fh)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setLevel(level if fh is None else logging.WARNING)
        sh.setFormatter(_JsonLineFormatter())
        logger.addHandler(sh)
    return logger


def log_event(
    logger: logging.Logger,
    op: str,
    phase: str,
    message: str,
    extra: Dict[str, object] | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Log one structured event line.

    Args:
        op: Operation name, e.g. "export", "import", "reset".
        phase: Step within the operation, e.g. "read", "validate", "write".
        extra: Optional additional key/values (paths, counts, success flags).
    """
    extra_payload: Dict[str, object] = {"op": op, "phase": phase}
    for k, v in (extra or {}).items():
        extra_payload.setdefault(k, v)
    logger.log(level, message, extra={"extra_payload": extra_payload})
