"""
modules/backup_restore/validators.py

Purpose
-------
Centralize checks on backup files with clear, user-facing error messages.

Public API
---------
- BackupFormatError
- validate_backup_payload(data) -> int           returns the format version
- validate_record_list(data, label) -> list[dict]
- validate_backup_source(path) -> None
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from ...constants import BACKUP_V1_TABLES, BACKUP_V2_TABLES, BACKUP_VERSION

# Tables a file must carry to be recognised as a backup at all.
REQUIRED_TABLES = ("customers", "products", "sales")


class BackupFormatError(ValueError):
    """The file is not a backup this version can read."""


def validate_record_list(data: Any, label: str) -> list[dict]:
    if not isinstance(data, list):
        raise BackupFormatError(f"Invalid backup file format: '{label}' must be a list.")
    for n, rec in enumerate(data, start=1):
        if not isinstance(rec, dict):
            raise BackupFormatError(f"Invalid backup file format: {label} entry {n} is not an object.")
    return data


def validate_backup_payload(data: Any) -> int:
    """
    Rules:
      - Top level is an object carrying customers, products and sales lists.
      - version is 1 or 2 (missing counts as 1); newer files are refused.
      - Every table present for that version is a list of objects.
    Raises:
      BackupFormatError on failure.
    """
    if not isinstance(data, dict):
        raise BackupFormatError("Invalid backup file format.")
    for name in REQUIRED_TABLES:
        if name not in data:
            raise BackupFormatError("Invalid backup file format.")

    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int) or version < 1:
        raise BackupFormatError(f"Unknown backup version: {version!r}")
    if version > BACKUP_VERSION:
        raise BackupFormatError(
            f"This backup was written by a newer version (format {version}); "
            f"this app reads format {BACKUP_VERSION} and older."
        )

    tables = BACKUP_V1_TABLES if version == 1 else BACKUP_V2_TABLES
    for name in tables:
        if name in data and data[name] is not None:
            validate_record_list(data[name], name)
    return version


def validate_backup_source(path: str | os.PathLike) -> None:
    p = Path(path)
    if not p.exists():
        raise BackupFormatError(f"Backup file not found: {p}")
    if not p.is_file():
        raise BackupFormatError(f"Backup path is not a file: {p}")
    if not os.access(str(p), os.R_OK):
        raise BackupFormatError(f"Backup file is not readable: {p}")
