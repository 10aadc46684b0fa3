"""
sync/firestore_remote.py

Cloud Firestore backend for the sync engine (via firebase_admin).

Each local table maps to a top-level collection of the same name; document
ids are the stringified local ids. Snapshot callbacks arrive on Firestore's
own watch thread.
"""
from __future__ import annotations

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore

from .remote import ADDED, MODIFIED, REMOVED, CancelHandle, ChangeCallback, DocumentChange

_log = logging.getLogger(__name__)

_CHANGE_NAMES = {"ADDED": ADDED, "MODIFIED": MODIFIED, "REMOVED": REMOVED}


def _get_or_init_app(
    credentials_path: Optional[str], project_id: Optional[str], app_name: str
) -> "firebase_admin.App":
    try:
        return firebase_admin.get_app(app_name)
    except ValueError:
        pass
    cred = (
        credentials.Certificate(credentials_path)
        if credentials_path
        else credentials.ApplicationDefault()
    )
    options = {"projectId": project_id} if project_id else None
    _log.info("Initializing Firebase app %r (project=%s)", app_name, project_id or "<from credentials>")
    return firebase_admin.initialize_app(cred, options, name=app_name)


class FirestoreRemote:
    def __init__(
        self,
        credentials_path: Optional[str] = None,
        project_id: Optional[str] = None,
        *,
        app_name: str = "[DEFAULT]",
        client=None,
    ) -> None:
        if client is None:
            app = _get_or_init_app(credentials_path, project_id, app_name)
            client = firestore.client(app)
        self._client = client

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        # set() without merge replaces the whole document
        self._client.collection(collection).document(str(doc_id)).set(data)

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._client.collection(collection).document(str(doc_id)).delete()

    def listen(self, collection: str, on_changes: ChangeCallback) -> CancelHandle:
        def _on_snapshot(_docs, changes, _read_time) -> None:
            batch = []
            for change in changes:
                kind = _CHANGE_NAMES.get(change.type.name)
                if kind is None:
                    _log.warning("Ignoring unknown change type %r on %s", change.type, collection)
                    continue
                batch.append(DocumentChange(kind, change.document.id, change.document.to_dict()))
            if batch:
                on_changes(batch)

        watch = self._client.collection(collection).on_snapshot(_on_snapshot)
        return watch.unsubscribe
