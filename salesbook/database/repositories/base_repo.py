from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Optional

from ...utils.helpers import day_key
from ..store import LocalStore, normalize_id

if TYPE_CHECKING:  # pragma: no cover
    from ...modules.sync.engine import SyncEngine


# Domain-level error the controller can surface directly (e.g., toast/snackbar)
class DomainError(Exception):
    pass


def newest_first(rows: list[dict]) -> list[dict]:
    """Sort dated records newest day first; same-day rows by id, highest first."""
    def key(r: dict):
        rid = r.get("id")
        return (day_key(r.get("date")) or "", rid if isinstance(rid, int) else -1)
    return sorted(rows, key=key, reverse=True)


class SyncedRepo:
    """
    Base for every cloud-mirrored table.

    create/update/delete do the local write first and, once it has
    committed, hand the full record to the sync engine. A local failure
    raises (StoreError/DomainError) and nothing is pushed; a push failure
    is the sync engine's business and never reaches the caller.
    """

    table: str = ""

    def __init__(self, store: LocalStore, sync: Optional["SyncEngine"] = None) -> None:
        self.store = store
        self.sync = sync

    # ---- Queries ----------------------------------------------------------

    def get(self, record_id: Any) -> Optional[dict]:
        if record_id is None or str(record_id).strip() == "":
            return None
        return self.store.get(self.table, record_id)

    def require(self, record_id: Any, label: str = "Record") -> dict:
        rec = self.get(record_id)
        if rec is None:
            raise DomainError(f"{label} {record_id!r} was not found.")
        return rec

    def list_all(self) -> list[dict]:
        return self.store.all(self.table)

    def count(self) -> int:
        return self.store.count(self.table)

    # ---- Mutations --------------------------------------------------------

    def _create(self, record: dict) -> Any:
        rid = self.store.insert(self.table, record)
        if self.sync is not None:
            self.sync.push(self.table, {**record, "id": rid})
        return rid

    def _update(self, record_id: Any, changes: dict) -> dict:
        """
        Merge `changes` over the stored row and write the complete result;
        the cloud always receives the whole object, never a partial patch.
        """
        with self.store.transaction():
            prior = self.store.get(self.table, record_id)
            if prior is None:
                raise DomainError(f"Record {record_id!r} was not found.")
            full = {**prior, **changes, "id": prior["id"]}
            self.store.put(self.table, full)
        if self.sync is not None:
            self.sync.push(self.table, full)
        return full

    def delete(self, record_id: Any) -> bool:
        rid = normalize_id(record_id)
        removed = self.store.delete(self.table, rid)
        if removed and self.sync is not None:
            self.sync.push_delete(self.table, rid)
        return removed

    # ---- Bulk (JSON import/export) ----------------------------------------

    def export_records(self) -> list[dict]:
        return self.store.all(self.table)

    def upsert_records(self, records: Iterable[Any]) -> list[dict]:
        """
        Write records by id (records without an id get a fresh one) in one
        transaction, without pushing. Returns the records as stored.
        """
        rows = list(records)
        if not all(isinstance(r, dict) for r in rows):
            raise DomainError("Invalid file format: expected a list of objects.")
        with self.store.transaction():
            return [{**r, "id": self.store.put(self.table, r)} for r in rows]

    def push_records(self, records: Iterable[dict]) -> None:
        if self.sync is None:
            return
        for rec in records:
            self.sync.push(self.table, rec)

    def import_records(self, records: Iterable[Any]) -> int:
        """
        Merge records into the table (upsert by id) and push each one like a
        normal save. Returns the number written.
        """
        written = self.upsert_records(records)
        self.push_records(written)
        return len(written)
