"""Sync coordinator: local-first saves with queued remote delivery.

Responsibilities:
- Persist progress locally, then deliver it if online, else queue it
- Deliver assignment submissions, queueing them on failure
- Drain the queue when connectivity returns (single-flight)

Delivery is at-least-once: a drain that fails midway keeps the whole
queue, so entries delivered before the failure are sent again next time.
The remote API upserts progress by student/content, so replays are safe.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import structlog

from nabha.offline.connectivity import ConnectivityMonitor, ConnectivityState
from nabha.offline.errors import OfflineSyncError, RemoteDeliveryFailed
from nabha.offline.models import (
    AssignmentSubmission,
    AssignmentSubmissionWrite,
    ContentItem,
    PendingWrite,
    ProgressRecord,
    ProgressWrite,
    SyncQueueEntry,
)
from nabha.offline.remote import RemoteClient
from nabha.offline.store import OfflineStore

logger = structlog.get_logger(__name__)


class SaveOutcome(str, Enum):
    """What happened to a write."""

    DELIVERED = "delivered"
    QUEUED = "queued"


class SyncStatus(str, Enum):
    """How a drain ended."""

    OFFLINE = "offline"  # nothing attempted
    IN_PROGRESS = "in_progress"  # another drain was running
    EMPTY = "empty"  # queue had nothing to send
    COMPLETED = "completed"  # all replayed, queue cleared
    ABORTED = "aborted"  # a replay failed, queue kept


@dataclass
class SyncResult:
    """Outcome of sync_pending_data()."""

    status: SyncStatus
    replayed: int = 0
    pending: int = 0
    error: str | None = None


class SyncCoordinator:
    """Bridges writes to immediate delivery or the durable queue.

    Subscribes to the connectivity monitor on construction; call close()
    to unsubscribe.
    """

    def __init__(
        self,
        store: OfflineStore,
        remote: RemoteClient,
        monitor: ConnectivityMonitor,
    ):
        self.store = store
        self.remote = remote
        self.monitor = monitor
        self._drain_lock = asyncio.Lock()
        self._unsubscribe = monitor.subscribe(self._on_connectivity_change)

    def close(self) -> None:
        """Stop reacting to connectivity changes."""
        self._unsubscribe()

    async def _on_connectivity_change(self, state: ConnectivityState) -> None:
        if state is ConnectivityState.ONLINE:
            await self.sync_pending_data()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_progress(self, record: ProgressRecord) -> SaveOutcome:
        """Save progress locally, then deliver or queue it.

        Raises:
            LocalPersistenceFailed: If the local save or the enqueue fails
        """
        await self.store.store_progress(record)
        return await self._deliver_or_queue(ProgressWrite(data=record))

    async def submit_assignment(self, submission: AssignmentSubmission) -> SaveOutcome:
        """Deliver an assignment submission, or queue it.

        Raises:
            LocalPersistenceFailed: If the enqueue fails
        """
        return await self._deliver_or_queue(AssignmentSubmissionWrite(data=submission))

    async def cache_content(self, items: Iterable[ContentItem]) -> None:
        """Store prefetched content for offline use."""
        await self.store.store_content(items)

    async def _deliver_or_queue(self, write: PendingWrite) -> SaveOutcome:
        if self.monitor.is_online:
            try:
                await self._send(write)
            except RemoteDeliveryFailed as e:
                logger.info("sync.direct_delivery_failed", type=write.type, error=str(e))
            else:
                logger.info("sync.delivered", type=write.type)
                return SaveOutcome.DELIVERED

        entry = await self.store.queue_sync(write)
        logger.info("sync.queued", type=write.type, entry_id=entry.id)
        return SaveOutcome.QUEUED

    async def _send(self, write: PendingWrite) -> None:
        if isinstance(write, ProgressWrite):
            await self.remote.post_progress(write.data)
        else:
            await self.remote.submit_assignment(write.data)

    # ------------------------------------------------------------------
    # Drain
    # ------------------------------------------------------------------

    async def sync_pending_data(self) -> SyncResult:
        """Replay queued writes in order; clear them if all succeed.

        Never raises: remote failures and local store errors both end the
        drain with an ABORTED result. Only one drain runs at a time; an
        overlapping call returns IN_PROGRESS without sending anything.
        """
        if not self.monitor.is_online:
            return SyncResult(status=SyncStatus.OFFLINE)

        if self._drain_lock.locked():
            logger.debug("sync.drain_already_running")
            return SyncResult(status=SyncStatus.IN_PROGRESS)

        async with self._drain_lock:
            try:
                return await self._drain()
            except OfflineSyncError as e:
                logger.error("sync.drain_store_error", error=str(e))
                return SyncResult(status=SyncStatus.ABORTED, error=str(e))

    async def _drain(self) -> SyncResult:
        queue = await self.store.get_sync_queue()
        if not queue:
            return SyncResult(status=SyncStatus.EMPTY)

        logger.info("sync.drain_started", pending=len(queue))

        replayed = 0
        for entry in queue:
            try:
                await self._send(entry.write)
            except RemoteDeliveryFailed as e:
                logger.error(
                    "sync.drain_aborted",
                    entry_id=entry.id,
                    type=entry.type,
                    replayed=replayed,
                    pending=len(queue),
                    error=str(e),
                )
                return SyncResult(
                    status=SyncStatus.ABORTED,
                    replayed=replayed,
                    pending=len(queue),
                    error=str(e),
                )
            replayed += 1

        # Entries queued while draining have higher ids and stay
        await self.store.clear_sync_queue(up_to_id=queue[-1].id)
        logger.info("sync.drain_completed", replayed=replayed)
        return SyncResult(status=SyncStatus.COMPLETED, replayed=replayed)

    async def pending_entries(self) -> list[SyncQueueEntry]:
        return await self.store.get_sync_queue()

    async def pending_count(self) -> int:
        return await self.store.count_sync_queue()
