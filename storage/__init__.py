"""Speicher-Modul: lokaler Key-Value-Speicher, Remote-Spiegel, Synchronisation."""

from storage.local_store import LocalStore
from storage.remote_mirror import HttpRemoteMirror, InMemoryRemoteMirror, RemoteMirror
from storage.sync import SaveResult, SyncCoordinator, SyncStatus
from storage.sharing import ShareService

__all__ = [
    "LocalStore",
    "RemoteMirror",
    "HttpRemoteMirror",
    "InMemoryRemoteMirror",
    "SyncCoordinator",
    "SaveResult",
    "SyncStatus",
    "ShareService",
]
