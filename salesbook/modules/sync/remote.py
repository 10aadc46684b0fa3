"""
sync/remote.py

Remote document store contract plus an in-process implementation.

A remote store holds one collection per synced table. Documents are keyed by
the stringified local id and always written whole (set = full overwrite).

    set_document(collection, doc_id, data)       full overwrite
    delete_document(collection, doc_id)
    listen(collection, on_changes) -> cancel     on_changes(list[DocumentChange])

Listeners receive an initial batch describing every existing document as
"added", then one batch per later change, like Firestore's on_snapshot.
"""
from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

_log = logging.getLogger(__name__)

ADDED = "added"
MODIFIED = "modified"
REMOVED = "removed"
CHANGE_TYPES = (ADDED, MODIFIED, REMOVED)

ChangeCallback = Callable[[list["DocumentChange"]], None]
CancelHandle = Callable[[], None]


@dataclass(frozen=True)
class DocumentChange:
    type: str
    doc_id: str
    data: Optional[dict] = None


class RemoteStore(Protocol):
    def set_document(self, collection: str, doc_id: str, data: dict) -> None: ...
    def delete_document(self, collection: str, doc_id: str) -> None: ...
    def listen(self, collection: str, on_changes: ChangeCallback) -> CancelHandle: ...


class RemoteError(Exception):
    """Raised by remote backends when a write cannot be performed."""


class MemoryRemote:
    """
    Thread-safe in-process document store.

    Used when no cloud backend is configured (single-device mode) and as the
    shared "cloud" between several LocalStores in tests. Callbacks run on the
    writer's thread, outside the internal lock, in write order per collection.
    Set `offline = True` to make every write fail with RemoteError.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._docs: dict[str, dict[str, dict]] = {}
        self._listeners: dict[str, list[ChangeCallback]] = {}
        self.offline = False

    # ---- reads (test/inspection helpers) ----
    def documents(self, collection: str) -> dict[str, dict]:
        with self._lock:
            return copy.deepcopy(self._docs.get(collection, {}))

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._docs.get(collection, {}).get(str(doc_id))
            return copy.deepcopy(doc) if doc is not None else None

    def listener_count(self, collection: str | None = None) -> int:
        with self._lock:
            if collection is not None:
                return len(self._listeners.get(collection, []))
            return sum(len(v) for v in self._listeners.values())

    # ---- writes ----
    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        self._check_online()
        doc_id = str(doc_id)
        with self._lock:
            docs = self._docs.setdefault(collection, {})
            kind = MODIFIED if doc_id in docs else ADDED
            docs[doc_id] = copy.deepcopy(data)
            change = DocumentChange(kind, doc_id, copy.deepcopy(data))
            listeners = list(self._listeners.get(collection, []))
        self._dispatch(listeners, [change])

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._check_online()
        doc_id = str(doc_id)
        with self._lock:
            old = self._docs.get(collection, {}).pop(doc_id, None)
            listeners = list(self._listeners.get(collection, []))
        if old is not None:
            self._dispatch(listeners, [DocumentChange(REMOVED, doc_id, old)])

    def apply_batch(self, collection: str, changes: list[DocumentChange]) -> None:
        """Write several changes and notify listeners with them as one batch."""
        self._check_online()
        delivered = []
        with self._lock:
            docs = self._docs.setdefault(collection, {})
            for ch in changes:
                if ch.type == REMOVED:
                    if docs.pop(ch.doc_id, None) is not None:
                        delivered.append(ch)
                else:
                    kind = MODIFIED if ch.doc_id in docs else ADDED
                    docs[ch.doc_id] = copy.deepcopy(ch.data or {})
                    delivered.append(DocumentChange(kind, ch.doc_id, copy.deepcopy(ch.data or {})))
            listeners = list(self._listeners.get(collection, []))
        if delivered:
            self._dispatch(listeners, delivered)

    # ---- subscriptions ----
    def listen(self, collection: str, on_changes: ChangeCallback) -> CancelHandle:
        with self._lock:
            self._listeners.setdefault(collection, []).append(on_changes)
            initial = [
                DocumentChange(ADDED, doc_id, copy.deepcopy(data))
                for doc_id, data in self._docs.get(collection, {}).items()
            ]
        if initial:
            self._dispatch([on_changes], initial)

        def cancel() -> None:
            with self._lock:
                callbacks = self._listeners.get(collection, [])
                if on_changes in callbacks:
                    callbacks.remove(on_changes)

        return cancel

    # ---- internals ----
    def _check_online(self) -> None:
        if self.offline:
            raise RemoteError("Remote store is offline.")

    @staticmethod
    def _dispatch(listeners: list[ChangeCallback], changes: list[DocumentChange]) -> None:
        for cb in listeners:
            try:
                cb(list(changes))
            except Exception:
                _log.exception("Remote listener failed")
