# salesbook/database/store.py
"""
LocalStore: the on-device record store.

One instance per process, constructed by the caller and passed to whatever
needs it (repositories, sync engine, backup service).

Writes go through `transaction()`, which serializes every writer (UI thread
and cloud listener threads) on one re-entrant lock and one explicit SQLite
transaction. Nested `transaction()` blocks become SAVEPOINTs.

Observers attach with `subscribe(table, callback)`; callbacks fire once per
touched table after the outermost transaction commits, on the committing
thread.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Optional

from PySide6.QtCore import QObject, Qt, Signal

from ..constants import ENTITY_TABLES, SCHEMA_VERSION, TABLE_SEQUENCES
from ..utils.helpers import id_key
from . import schema as schema_module
from . import versioning

_log = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


class StoreError(Exception):
    """A local read/write failed; the operation did not happen."""


def normalize_id(value: Any) -> Any:
    """
    Coerce an identifier to its stored form: int when it parses as one,
    otherwise the original text. Used for both local ids and cloud document ids.
    """
    if isinstance(value, bool):
        raise StoreError(f"Invalid record id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    text = str(value).strip()
    if not text:
        raise StoreError("Record id cannot be empty.")
    try:
        return int(text)
    except ValueError:
        return text


class StoreNotifier(QObject):
    """Qt-side change feed; UI models can connect to table_changed directly."""
    table_changed = Signal(str)


class Subscription:
    """Handle returned by LocalStore.subscribe(); call cancel() (or the handle) to detach."""

    def __init__(self, signal, slot: Callable[[str], None]) -> None:
        self._signal = signal
        self._slot: Optional[Callable[[str], None]] = slot

    @property
    def active(self) -> bool:
        return self._slot is not None

    def cancel(self) -> None:
        if self._slot is None:
            return
        try:
            self._signal.disconnect(self._slot)
        except (RuntimeError, TypeError):
            # Already disconnected (e.g. notifier destroyed at shutdown).
            pass
        self._slot = None

    __call__ = cancel


class LocalStore:
    def __init__(self, db_path: str | Path = MEMORY_DB, *, seed: bool = True) -> None:
        self.db_path = str(db_path)
        if self.db_path != MEMORY_DB:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()
        self._depth = 0
        self._touched: set[str] = set()

        self._conn = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        if self.db_path != MEMORY_DB:
            self._conn.execute("PRAGMA journal_mode = WAL;")

        self.notifier = StoreNotifier()

        with self.transaction():
            schema_module.init_schema(self._conn)
            if versioning.get_current_version(self._conn) is None:
                versioning.set_current_version(self._conn, SCHEMA_VERSION)
            if seed:
                from .seeders.default_data import seed as seed_default_data
                seed_default_data(self)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @property
    def schema_version(self) -> str | None:
        with self._lock:
            return versioning.get_current_version(self._conn)

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    @contextmanager
    def transaction(self) -> Iterator["LocalStore"]:
        """
        Serialize a group of writes. The outermost block is one SQLite
        transaction; inner blocks are savepoints and roll back on their own.
        """
        touched: list[str] = []
        with self._lock:
            depth = self._depth
            try:
                if depth == 0:
                    self._conn.execute("BEGIN IMMEDIATE")
                    self._touched = set()
                else:
                    self._conn.execute(f"SAVEPOINT sp_{depth}")
            except sqlite3.Error as e:
                raise StoreError(f"Could not start a local transaction: {e}") from e

            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                try:
                    if depth == 0:
                        self._conn.execute("ROLLBACK")
                        self._touched = set()
                    else:
                        self._conn.execute(f"ROLLBACK TO sp_{depth}")
                        self._conn.execute(f"RELEASE sp_{depth}")
                except sqlite3.Error:
                    _log.exception("Rollback failed")
                raise
            self._depth -= 1
            try:
                if depth == 0:
                    self._conn.execute("COMMIT")
                    touched = sorted(self._touched)
                    self._touched = set()
                else:
                    self._conn.execute(f"RELEASE sp_{depth}")
            except sqlite3.Error as e:
                if depth == 0:
                    self._conn.execute("ROLLBACK")
                    self._touched = set()
                raise StoreError(f"Could not commit local changes: {e}") from e

        for table in touched:
            self.notifier.table_changed.emit(table)

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #

    def subscribe(self, table: str, callback: Callable[[str], None]) -> Subscription:
        """
        Call `callback(table)` after every committed transaction that wrote
        to `table`. Returns a Subscription; cancel it to detach.
        """
        self._check_table(table)

        def _slot(name: str) -> None:
            if name != table:
                return
            try:
                callback(name)
            except Exception:
                _log.exception("Observer for %s failed", table)

        self.notifier.table_changed.connect(_slot, Qt.ConnectionType.DirectConnection)
        return Subscription(self.notifier.table_changed, _slot)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, table: str, record_id: Any) -> Optional[dict]:
        self._check_table(table)
        with self._lock:
            row = self._conn.execute(
                f"SELECT id, body FROM {table} WHERE id = ?", (normalize_id(record_id),)
            ).fetchone()
        return self._decode(row) if row else None

    def all(self, table: str) -> list[dict]:
        """Every row, oldest insert first."""
        self._check_table(table)
        with self._lock:
            rows = self._conn.execute(f"SELECT id, body FROM {table} ORDER BY rowid").fetchall()
        return [self._decode(r) for r in rows]

    def first(self, table: str) -> Optional[dict]:
        self._check_table(table)
        with self._lock:
            row = self._conn.execute(
                f"SELECT id, body FROM {table} ORDER BY rowid LIMIT 1"
            ).fetchone()
        return self._decode(row) if row else None

    def where_equals(self, table: str, field: str, value: Any) -> list[dict]:
        """Rows whose `field` matches `value` by canonical id form (1 == '1' == 1.0)."""
        wanted = id_key(value)
        return [r for r in self.all(table) if id_key(r.get(field)) == wanted]

    def count(self, table: str) -> int:
        self._check_table(table)
        with self._lock:
            row = self._conn.execute(f"SELECT COUNT(*) AS n FROM {table}").fetchone()
        return int(row["n"])

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def insert(self, table: str, record: dict) -> Any:
        """
        Add a new row and return its id. A fresh id is allocated unless the
        record carries one; an existing id is an error.
        """
        self._check_table(table)
        with self.transaction():
            rid = record.get("id")
            rid = self._next_id(table) if rid is None else normalize_id(rid)
            self._execute(
                f"INSERT INTO {table}(id, body) VALUES (?, ?)",
                (rid, self._encode(record)),
            )
            self._bump_sequence(table, rid)
            self._touched.add(table)
        return rid

    def put(self, table: str, record: dict) -> Any:
        """Insert or fully replace the row keyed by record['id'] (allocated if absent)."""
        self._check_table(table)
        with self.transaction():
            rid = record.get("id")
            rid = self._next_id(table) if rid is None else normalize_id(rid)
            self._execute(
                f"INSERT INTO {table}(id, body) VALUES (?, ?) "
                f"ON CONFLICT(id) DO UPDATE SET body = excluded.body",
                (rid, self._encode(record)),
            )
            self._bump_sequence(table, rid)
            self._touched.add(table)
        return rid

    def bulk_put(self, table: str, records: Iterable[dict]) -> list:
        with self.transaction():
            return [self.put(table, r) for r in records]

    def delete(self, table: str, record_id: Any) -> bool:
        self._check_table(table)
        with self.transaction():
            cur = self._execute(f"DELETE FROM {table} WHERE id = ?", (normalize_id(record_id),))
            self._touched.add(table)
        return cur.rowcount > 0

    def clear(self, table: str) -> None:
        self._check_table(table)
        with self.transaction():
            self._execute(f"DELETE FROM {table}", ())
            self._touched.add(table)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in ENTITY_TABLES:
            raise StoreError(f"Unknown table: {table!r}")

    def _execute(self, sql: str, params: tuple) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    @staticmethod
    def _encode(record: dict) -> str:
        body = {k: v for k, v in record.items() if k != "id"}
        try:
            return json.dumps(body, ensure_ascii=False, separators=(",", ":"), allow_nan=False, default=str)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Record is not JSON-serializable: {e}") from e

    @staticmethod
    def _decode(row: sqlite3.Row) -> dict:
        rec = json.loads(row["body"])
        rec["id"] = row["id"]
        return rec

    def _next_id(self, table: str) -> int:
        seq = self._conn.execute(
            f"SELECT seq FROM {TABLE_SEQUENCES} WHERE name = ?", (table,)
        ).fetchone()
        top = self._conn.execute(
            f"SELECT MAX(id) AS m FROM {table} WHERE typeof(id) = 'integer'"
        ).fetchone()
        return max(int(seq["seq"]) if seq else 0, int(top["m"] or 0)) + 1

    def _bump_sequence(self, table: str, rid: Any) -> None:
        if not isinstance(rid, int):
            return
        self._execute(
            f"INSERT INTO {TABLE_SEQUENCES}(name, seq) VALUES (?, ?) "
            f"ON CONFLICT(name) DO UPDATE SET seq = MAX(seq, excluded.seq)",
            (table, rid),
        )
