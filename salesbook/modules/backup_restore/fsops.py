"""
modules/backup_restore/fsops.py

File-system helpers for writing backup files without leaving half-written
output behind.

- ensure_writable_dir(path) -> None
- make_temp_file(suffix="", dir=None) -> str
- atomic_write_text(dest, text) -> Path
- backup_file_name(day) -> str
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from ...constants import BACKUP_FILE_PREFIX

__all__ = ["ensure_writable_dir", "make_temp_file", "atomic_write_text", "backup_file_name"]


def _fsync_dir(path: Path) -> None:
    """Best-effort fsync for a directory after a rename."""
    try:
        fd = os.open(str(path), os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def ensure_writable_dir(path: str | os.PathLike) -> None:
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"Folder does not exist: {p}")
    if not p.is_dir():
        raise RuntimeError(f"Not a folder: {p}")
    if not os.access(str(p), os.W_OK | os.X_OK):
        raise RuntimeError(f"Folder is not writable: {p}")


def make_temp_file(suffix: str = "", dir: Optional[str] = None) -> str:
    """Create an empty temp file (closed) and return its path."""
    fd, path = tempfile.mkstemp(suffix=suffix, dir=dir)
    os.close(fd)
    return path


def atomic_write_text(dest: str | os.PathLike, text: str) -> Path:
    """
    Write `text` to a temp file beside `dest`, fsync it, then os.replace()
    it into place. `dest` is either the old file or the new one, never a
    partial write.
    """
    target = Path(dest)
    parent = target.parent if target.parent != Path("") else Path.cwd()
    ensure_writable_dir(parent)
    if target.exists() and target.is_dir():
        raise RuntimeError("Destination path points to a directory, not a file.")

    tmp = Path(make_temp_file(suffix=".tmp", dir=str(parent)))
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    _fsync_dir(parent)
    return target


def backup_file_name(day: str) -> str:
    """sp_sales_backup_<YYYY-MM-DD>.json"""
    return f"{BACKUP_FILE_PREFIX}{day}.json"
