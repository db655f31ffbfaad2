"""Errors raised by the offline sync layer."""

from __future__ import annotations


class OfflineSyncError(Exception):
    """Base error for the offline sync layer."""

    pass


class StorageUnavailable(OfflineSyncError):
    """Local database could not be opened or initialized."""

    pass


class LocalPersistenceFailed(OfflineSyncError):
    """A write to the local database failed."""

    pass


class RemoteDeliveryFailed(OfflineSyncError):
    """Remote API call failed (network error or non-2xx response)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
