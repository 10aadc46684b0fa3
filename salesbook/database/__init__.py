# salesbook/database/__init__.py
from __future__ import annotations

from pathlib import Path

from ..config import DB_PATH
from .store import LocalStore, StoreError, Subscription, normalize_id


def get_store(db_path: str | Path | None = None, *, seed: bool = True) -> LocalStore:
    """
    Open the local store at `db_path` (default: config.DB_PATH).

    Schema and seed data are applied idempotently. The caller owns the
    returned instance and should keep exactly one per process.
    """
    return LocalStore(db_path or DB_PATH, seed=seed)


__all__ = [
    "get_store",
    "LocalStore",
    "StoreError",
    "Subscription",
    "normalize_id",
]
