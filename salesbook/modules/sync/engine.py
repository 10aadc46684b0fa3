"""
sync/engine.py

Two independent one-way channels between the LocalStore and a RemoteStore.

Local -> Remote
    push(collection, record) / push_delete(collection, id) are called by the
    repositories right after their local write has committed. The remote
    write runs on the engine's own QThreadPool (one worker, so pushes reach
    the cloud in the order they were made) and the caller never waits for it.
    Failures are logged and reported through `push_failed`; the local write
    stands and nothing is retried.

    While a document has a push in flight, or its last push failed, cloud
    changes for it are not applied locally: they describe an older version
    than the one this device holds. A later successful push clears the mark.

Remote -> Local
    start() opens one listener per collection; stop() cancels all of them.
    Each delivered batch is applied by apply_changes() inside a single local
    transaction, in delivery order. apply_changes() writes straight to the
    store and never calls push(), so cloud-origin changes are not echoed back.
    Non-finite numbers (NaN, inf) in cloud documents are stored as null.
"""
from __future__ import annotations

import copy
import functools
import logging
import math
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

from ...constants import SYNC_COLLECTIONS
from ...database.store import LocalStore, normalize_id
from .remote import ADDED, MODIFIED, REMOVED, CancelHandle, DocumentChange, RemoteStore

_log = logging.getLogger(__name__)

CONNECTION_TEST_COLLECTION = "_connection_test"


class _PushRunnable(QRunnable):
    """Thin QRunnable wrapper around one remote write."""

    def __init__(self, work: Callable[[], None]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._work = work

    @Slot()
    def run(self) -> None:  # type: ignore[override]
        self._work()


def finite_only(value: Any) -> Any:
    """Copy of a JSON-like value with NaN and infinities replaced by None."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: finite_only(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [finite_only(v) for v in value]
    return value


def to_document(record: dict) -> dict:
    """Full remote body for a local record: every field plus its id."""
    doc = copy.deepcopy(dict(record))
    doc["id"] = record["id"]
    return doc


class SyncEngine(QObject):
    pushed = Signal(str, str)             # collection, doc id
    push_failed = Signal(str, str, str)   # collection, doc id, error text
    batch_applied = Signal(str, int)      # collection, number of changes
    started = Signal()
    stopped = Signal()

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteStore,
        collections: Iterable[str] = SYNC_COLLECTIONS,
        *,
        pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._remote = remote
        self._collections = tuple(collections)
        if pool is None:
            pool = QThreadPool(self)
            pool.setMaxThreadCount(1)
        self._pool = pool
        self._cancels: dict[str, CancelHandle] = {}
        self._lock = threading.Lock()
        # (collection, doc id) -> queued or running pushes; guarded by _push_lock
        self._in_flight: Counter = Counter()
        self._failed: set[tuple[str, str]] = set()
        self._push_lock = threading.Lock()

    @property
    def collections(self) -> tuple[str, ...]:
        return self._collections

    def syncs(self, collection: str) -> bool:
        return collection in self._collections

    # ------------------------------------------------------------------ #
    # Local -> Remote
    # ------------------------------------------------------------------ #

    def push(self, collection: str, record: dict) -> None:
        """Queue a full-document overwrite of record['id'] in `collection`."""
        if not self.syncs(collection):
            return
        doc = to_document(record)
        doc_id = str(doc["id"])
        self._begin_push(collection, doc_id)
        self._pool.start(_PushRunnable(functools.partial(self._write, collection, doc_id, doc)))

    def push_delete(self, collection: str, record_id: Any) -> None:
        """Queue removal of the remote document for `record_id`."""
        if not self.syncs(collection):
            return
        doc_id = str(record_id)
        self._begin_push(collection, doc_id)
        self._pool.start(_PushRunnable(functools.partial(self._remove, collection, doc_id)))

    def push_all(self, collections: Iterable[str] | None = None) -> int:
        """
        Re-upload every local row of the given (default: all synced) collections.
        Manual recovery after a period offline; returns the number queued.
        """
        queued = 0
        for collection in collections or self._collections:
            for record in self._store.all(collection):
                self.push(collection, record)
                queued += 1
        _log.info("Queued %d documents for upload", queued)
        return queued

    def wait_for_pushes(self, msecs: int = -1) -> bool:
        """Block until queued pushes finish (or `msecs` elapse). True if all finished."""
        return self._pool.waitForDone(msecs)

    def test_connection(self) -> tuple[bool, str]:
        """Synchronously write a probe document; returns (ok, message)."""
        probe = {"timestamp": datetime.now(timezone.utc).isoformat(), "device": "salesbook"}
        try:
            self._remote.set_document(CONNECTION_TEST_COLLECTION, "test", probe)
        except Exception as exc:
            _log.warning("Cloud connection test failed: %s", exc)
            return False, f"Connection failed: {exc}"
        return True, "Connection successful. Cloud sync is working."

    def has_local_changes(self, collection: str, doc_id: Any) -> bool:
        """True while the local copy is newer than what the cloud last accepted."""
        key = (collection, str(doc_id))
        with self._push_lock:
            return self._in_flight[key] > 0 or key in self._failed

    def _begin_push(self, collection: str, doc_id: str) -> None:
        with self._push_lock:
            self._in_flight[(collection, doc_id)] += 1

    def _end_push(self, collection: str, doc_id: str, ok: bool) -> None:
        key = (collection, doc_id)
        with self._push_lock:
            self._in_flight[key] -= 1
            if self._in_flight[key] <= 0:
                del self._in_flight[key]
            if ok:
                self._failed.discard(key)
            else:
                self._failed.add(key)

    def _write(self, collection: str, doc_id: str, doc: dict) -> None:
        try:
            self._remote.set_document(collection, doc_id, doc)
        except Exception as exc:
            self._end_push(collection, doc_id, False)
            _log.warning("Failed to push %s/%s to cloud: %s", collection, doc_id, exc)
            self.push_failed.emit(collection, doc_id, str(exc))
            return
        self._end_push(collection, doc_id, True)
        _log.debug("Pushed %s/%s to cloud", collection, doc_id)
        self.pushed.emit(collection, doc_id)

    def _remove(self, collection: str, doc_id: str) -> None:
        try:
            self._remote.delete_document(collection, doc_id)
        except Exception as exc:
            self._end_push(collection, doc_id, False)
            _log.warning("Failed to delete %s/%s from cloud: %s", collection, doc_id, exc)
            self.push_failed.emit(collection, doc_id, str(exc))
            return
        self._end_push(collection, doc_id, True)
        _log.debug("Deleted %s/%s from cloud", collection, doc_id)
        self.pushed.emit(collection, doc_id)

    # ------------------------------------------------------------------ #
    # Remote -> Local
    # ------------------------------------------------------------------ #

    @property
    def running(self) -> bool:
        with self._lock:
            return bool(self._cancels)

    def start(self) -> None:
        """Open one listener per collection. Calling start() twice is a no-op."""
        with self._lock:
            if self._cancels:
                return
        # listen() may deliver the initial batch synchronously; keep the lock free meanwhile
        cancels: dict[str, CancelHandle] = {}
        for collection in self._collections:
            try:
                cancels[collection] = self._remote.listen(
                    collection, functools.partial(self.apply_changes, collection)
                )
            except Exception:
                _log.exception("Could not start cloud listener for %s", collection)
        with self._lock:
            self._cancels = cancels
        _log.info("Cloud sync listening on %d collections", len(cancels))
        self.started.emit()

    def stop(self) -> None:
        """Cancel every listener. Pending pushes still complete."""
        with self._lock:
            cancels, self._cancels = self._cancels, {}
        for collection, cancel in cancels.items():
            try:
                cancel()
            except Exception:
                _log.exception("Could not cancel cloud listener for %s", collection)
        if cancels:
            _log.info("Cloud sync stopped")
            self.stopped.emit()

    def apply_changes(self, collection: str, changes: list[DocumentChange]) -> int:
        """
        Mirror one batch of cloud changes into the local store.

        added/modified upsert the whole document; removed deletes by id.
        Documents with local changes the cloud has not accepted yet are
        skipped. The batch is all-or-nothing locally. Returns the number of
        changes applied (0 if the batch failed, which is logged, not raised).
        """
        if not changes:
            return 0
        applied = 0
        try:
            with self._store.transaction():
                for change in changes:
                    if self.has_local_changes(collection, change.doc_id):
                        _log.debug("Keeping local %s/%s over cloud copy", collection, change.doc_id)
                        continue
                    local_id = normalize_id(change.doc_id)
                    if change.type in (ADDED, MODIFIED):
                        record = finite_only(dict(change.data or {}))
                        record["id"] = local_id
                        self._store.put(collection, record)
                    elif change.type == REMOVED:
                        self._store.delete(collection, local_id)
                    else:
                        _log.warning("Skipping unknown change type %r for %s", change.type, collection)
                        continue
                    applied += 1
        except Exception:
            _log.exception("Failed to apply %d cloud changes to %s", len(changes), collection)
            return 0
        if applied:
            _log.info("Synced %d changes for %s from cloud", applied, collection)
            self.batch_applied.emit(collection, applied)
        return applied
