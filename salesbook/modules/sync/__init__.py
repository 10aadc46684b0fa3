"""
Local/cloud synchronization.

    engine.SyncEngine          push local writes, mirror cloud changes locally
    remote.MemoryRemote        in-process document store (offline mode, tests)
    firestore_remote           Cloud Firestore backend (imported lazily)
"""
from __future__ import annotations

from .engine import SyncEngine
from .remote import (
    ADDED,
    MODIFIED,
    REMOVED,
    DocumentChange,
    MemoryRemote,
    RemoteError,
    RemoteStore,
)

__all__ = [
    "ADDED",
    "MODIFIED",
    "REMOVED",
    "DocumentChange",
    "MemoryRemote",
    "RemoteError",
    "RemoteStore",
    "SyncEngine",
    "create_remote",
]


def create_remote(config) -> RemoteStore | None:
    """
    Build the remote backend named by config.remote ('firestore' | 'memory' | 'none').

    The Firestore backend is imported here so firebase_admin is only loaded
    when it is actually used.
    """
    from ...config import REMOTE_FIRESTORE, REMOTE_MEMORY

    if config.remote == REMOTE_FIRESTORE:
        from .firestore_remote import FirestoreRemote
        return FirestoreRemote(config.firebase_credentials, config.firebase_project)
    if config.remote == REMOTE_MEMORY:
        return MemoryRemote()
    return None
