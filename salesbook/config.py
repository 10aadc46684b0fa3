from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .constants import DATA_DIR, DB_FILE_NAME, LOG_DIR

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = BASE_DIR / DATA_DIR
DB_PATH = DATA_PATH / DB_FILE_NAME
LOG_PATH = BASE_DIR / LOG_DIR

REMOTE_FIRESTORE = "firestore"
REMOTE_MEMORY = "memory"
REMOTE_NONE = "none"
_REMOTE_KINDS = (REMOTE_FIRESTORE, REMOTE_MEMORY, REMOTE_NONE)


@dataclass
class AppConfig:
    """
    Runtime configuration resolved from the environment.

    Environment variables:
      SALESBOOK_DB_PATH                 SQLite file (default: <package>/data/salesbook.db)
      SALESBOOK_REMOTE                  'firestore' | 'memory' | 'none' (default: 'none')
      SALESBOOK_FIREBASE_CREDENTIALS    service-account JSON path (optional)
      SALESBOOK_FIREBASE_PROJECT        Firebase project id (optional)
      SALESBOOK_LOG_LEVEL               logging level name (default: INFO)
      SALESBOOK_LOG_DIR                 folder for the backup/restore event log
    """
    db_path: Path = DB_PATH
    remote: str = REMOTE_NONE
    firebase_credentials: str | None = None
    firebase_project: str | None = None
    log_level: int = logging.INFO
    log_dir: Path = LOG_PATH

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ

        remote = (env.get("SALESBOOK_REMOTE") or REMOTE_NONE).strip().lower()
        if remote not in _REMOTE_KINDS:
            raise ValueError(
                f"SALESBOOK_REMOTE must be one of {', '.join(_REMOTE_KINDS)} (got {remote!r})."
            )

        level_name = (env.get("SALESBOOK_LOG_LEVEL") or "INFO").strip().upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.INFO

        log_dir = env.get("SALESBOOK_LOG_DIR")
        db_path = env.get("SALESBOOK_DB_PATH")
        return cls(
            db_path=Path(db_path) if db_path else DB_PATH,
            remote=remote,
            firebase_credentials=env.get("SALESBOOK_FIREBASE_CREDENTIALS") or None,
            firebase_project=env.get("SALESBOOK_FIREBASE_PROJECT") or None,
            log_level=level,
            log_dir=Path(log_dir) if log_dir else LOG_PATH,
        )
