"""
Backup & Restore module package.

JSON backups of the whole database (format 2, reads format 1), per-entity
JSON export/import, and a local reset to defaults.
"""

from __future__ import annotations

from .service import BackupJob, BackupService
from .validators import BackupFormatError

MODULE_TITLE: str = "Backup & Restore"
__all__ = ["MODULE_TITLE", "BackupFormatError", "BackupJob", "BackupService"]
