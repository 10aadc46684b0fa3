"""
modules/backup_restore/service.py

Purpose
-------
JSON backup, restore and reset of the local database.

Backup file (format 2):
    {"version": 2, "timestamp": "<ISO-8601 UTC>",
     "customers": [...], "products": [...], "sales": [...], "settings": [...],
     "vendors": [...], "vendor_bills": [...], "payments": [...]}

Format 1 files (customers/products/sales/settings only) still import.

Import is a merge: every record is upserted by id, existing rows not in the
file are left alone. The whole import is one local transaction; records are
pushed to the cloud only after it commits.

Public interface
----------------
- BackupService.export_database(dest) -> Path
- BackupService.import_database(src) -> dict[str, int]
- BackupService.export_table(table, dest) / import_table(table, src)
- BackupService.reset_database()
- BackupJob.run_export_async(dest) / run_import_async(src)   (emit `finished`)
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

from ...constants import (
    BACKUP_V1_TABLES,
    BACKUP_V2_TABLES,
    BACKUP_VERSION,
    ENTITY_TABLES,
    TABLE_CUSTOMERS,
    TABLE_PAYMENTS,
    TABLE_PRODUCTS,
    TABLE_SALES,
    TABLE_SETTINGS,
    TABLE_VENDOR_BILLS,
    TABLE_VENDORS,
)
from ...database.repositories import (
    CustomersRepo,
    PaymentsRepo,
    ProductsRepo,
    SalesRepo,
    SettingsRepo,
    SyncedRepo,
    VendorBillsRepo,
    VendorsRepo,
)
from ...database.seeders.default_data import seed as seed_default_data
from ...database.store import LocalStore
from ...utils.helpers import today_str
from . import fsops
from .logging_utils import get_logger, log_event
from .validators import BackupFormatError, validate_backup_payload, validate_backup_source, validate_record_list

if TYPE_CHECKING:  # pragma: no cover
    from ..sync.engine import SyncEngine

_REPO_TYPES: dict[str, type[SyncedRepo]] = {
    TABLE_CUSTOMERS: CustomersRepo,
    TABLE_PRODUCTS: ProductsRepo,
    TABLE_SALES: SalesRepo,
    TABLE_SETTINGS: SettingsRepo,
    TABLE_VENDORS: VendorsRepo,
    TABLE_VENDOR_BILLS: VendorBillsRepo,
    TABLE_PAYMENTS: PaymentsRepo,
}


def _read_json(src: str | Path):
    validate_backup_source(src)
    try:
        with open(src, "r", encoding="utf-8") as f:
            return json.load(f)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BackupFormatError("Failed to import backup. Invalid file.") from exc


def _dump(data) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2, default=str)


class BackupService:
    def __init__(
        self,
        store: LocalStore,
        sync: Optional["SyncEngine"] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self._repos = {t: cls(store, sync) for t, cls in _REPO_TYPES.items()}
        self._log = logger or get_logger()

    def repo(self, table: str) -> SyncedRepo:
        try:
            return self._repos[table]
        except KeyError:
            raise ValueError(f"Table {table!r} cannot be exported.") from None

    # ------------------------------------------------------------------ #
    # Whole-database backup
    # ------------------------------------------------------------------ #

    def build_backup(self) -> dict:
        data: dict = {
            "version": BACKUP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }
        for table in BACKUP_V2_TABLES:
            data[table] = self._repos[table].export_records()
        return data

    def export_database(self, dest: str | Path) -> Path:
        """
        Write a backup file. `dest` may be a folder, in which case the file is
        named sp_sales_backup_<today>.json inside it.
        """
        target = Path(dest)
        if target.is_dir():
            target = target / fsops.backup_file_name(today_str())
        data = self.build_backup()
        log_event(self._log, "export", "write", "Writing backup", {"path": str(target)})
        fsops.atomic_write_text(target, _dump(data))
        counts = {t: len(data[t]) for t in BACKUP_V2_TABLES}
        log_event(self._log, "export", "done", "Backup exported successfully.", {"path": str(target), **counts})
        return target

    def import_database(self, src: str | Path) -> dict[str, int]:
        """
        Merge a backup file into the local database. Returns records written
        per table. Raises BackupFormatError for unreadable or invalid files;
        nothing is written in that case.
        """
        log_event(self._log, "import", "read", "Reading backup", {"path": str(src)})
        try:
            data = _read_json(src)
            version = validate_backup_payload(data)
        except BackupFormatError as exc:
            log_event(self._log, "import", "validate", str(exc), {"path": str(src)}, level=logging.WARNING)
            raise

        tables = BACKUP_V1_TABLES if version == 1 else BACKUP_V2_TABLES
        written: dict[str, list[dict]] = {}
        with self.store.transaction():
            for table in tables:
                rows = data.get(table) or []
                written[table] = self._repos[table].upsert_records(rows)
        for table, records in written.items():
            self._repos[table].push_records(records)

        counts = {t: len(r) for t, r in written.items()}
        log_event(self._log, "import", "done", "Backup imported successfully.",
                  {"path": str(src), "version": version, **counts})
        return counts

    # ------------------------------------------------------------------ #
    # Per-entity JSON (customers.json, products.json, ...)
    # ------------------------------------------------------------------ #

    def export_table(self, table: str, dest: str | Path) -> Path:
        records = self.repo(table).export_records()
        target = fsops.atomic_write_text(dest, _dump(records))
        log_event(self._log, "export", "done", f"Exported {table}", {"path": str(target), "count": len(records)})
        return target

    def import_table(self, table: str, src: str | Path) -> int:
        repo = self.repo(table)
        data = validate_record_list(_read_json(src), table)
        n = repo.import_records(data)
        log_event(self._log, "import", "done", f"Imported {table}", {"path": str(src), "count": n})
        return n

    # ------------------------------------------------------------------ #
    # Reset
    # ------------------------------------------------------------------ #

    def reset_database(self) -> None:
        """
        Wipe every local table and re-create the default settings and admin
        user. Local only: nothing is deleted in the cloud. Id sequences are
        kept so old ids are never handed out again.
        """
        with self.store.transaction():
            for table in ENTITY_TABLES:
                self.store.clear(table)
            seed_default_data(self.store)
        log_event(self._log, "reset", "done", "Local database reset to defaults", level=logging.WARNING)


# ----------------------------
# Background jobs
# ----------------------------

class _JobRunnable(QRunnable):
    """Thin QRunnable wrapper that executes a callable."""
    def __init__(self, work: Callable[[], None]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._work = work

    @Slot()
    def run(self) -> None:  # type: ignore[override]
        self._work()


class BackupJob(QObject):
    """
    Runs export/import off the UI thread and reports through `finished`:
    (success, message, path-or-empty).
    """
    finished = Signal(bool, str, str)

    def __init__(self, service: BackupService, pool: Optional[QThreadPool] = None) -> None:
        super().__init__()
        self._service = service
        self._pool = pool or QThreadPool.globalInstance()
        self._log = logging.getLogger(__name__)

    def run_export_async(self, dest: str | Path) -> None:
        self._pool.start(_JobRunnable(lambda: self._run_export(dest)))

    def run_import_async(self, src: str | Path) -> None:
        self._pool.start(_JobRunnable(lambda: self._run_import(src)))

    def _run_export(self, dest) -> None:
        try:
            path = self._service.export_database(dest)
        except Exception as exc:
            self._log.debug("Export failed:\n%s", traceback.format_exc())
            self.finished.emit(False, f"Failed to export backup.\n\n{exc.__class__.__name__}: {exc}", "")
            return
        self.finished.emit(True, "Backup exported successfully.", str(path))

    def _run_import(self, src) -> None:
        try:
            self._service.import_database(src)
        except BackupFormatError:
            self.finished.emit(False, "Failed to import backup. Invalid file.", str(src))
            return
        except Exception as exc:
            self._log.debug("Import failed:\n%s", traceback.format_exc())
            self.finished.emit(False, f"Failed to import backup.\n\n{exc.__class__.__name__}: {exc}", str(src))
            return
        self.finished.emit(True, "Backup imported successfully.", str(src))
