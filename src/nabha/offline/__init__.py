"""Offline-first progress sync.

Provides:
- OfflineStore: SQLite cache for content, progress and the sync queue
- ConnectivityMonitor: edge-triggered online/offline state
- RemoteClient: HTTP client for the platform API
- SyncCoordinator: local-first saves and queue draining
"""

from nabha.offline.connectivity import ConnectivityMonitor, ConnectivityState
from nabha.offline.errors import (
    LocalPersistenceFailed,
    OfflineSyncError,
    RemoteDeliveryFailed,
    StorageUnavailable,
)
from nabha.offline.models import (
    AssignmentSubmission,
    ContentItem,
    ProgressRecord,
    SyncQueueEntry,
)
from nabha.offline.remote import RemoteClient
from nabha.offline.store import OfflineStore
from nabha.offline.sync import SaveOutcome, SyncCoordinator, SyncResult, SyncStatus

__all__ = [
    "AssignmentSubmission",
    "ConnectivityMonitor",
    "ConnectivityState",
    "ContentItem",
    "LocalPersistenceFailed",
    "OfflineStore",
    "OfflineSyncError",
    "ProgressRecord",
    "RemoteClient",
    "RemoteDeliveryFailed",
    "SaveOutcome",
    "StorageUnavailable",
    "SyncCoordinator",
    "SyncQueueEntry",
    "SyncResult",
    "SyncStatus",
]
