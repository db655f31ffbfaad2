"""Durable local store for offline use.

One SQLite database with three independent collections:
- content: cached lessons, keyed by id, indexed by category
- progress: cached progress records, keyed by id, indexed by student
- sync_queue: pending writes, auto-increment id (insertion order)

Each operation opens its own connection and commits on exit, so every
operation is atomic on its own. Nothing spans operations. SQLite work runs
in a worker thread; the public API is async.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterable

import structlog
from pydantic import TypeAdapter, ValidationError

from nabha.offline.errors import LocalPersistenceFailed, StorageUnavailable
from nabha.offline.models import (
    ContentItem,
    PendingWrite,
    ProgressRecord,
    SyncQueueEntry,
)

logger = structlog.get_logger(__name__)

DB_NAME = "nabha-learning"
SCHEMA_VERSION = 1

_pending_write_adapter: TypeAdapter[PendingWrite] = TypeAdapter(PendingWrite)


class OfflineStore:
    """SQLite-backed store for cached content, progress and the sync queue.

    Initialization is lazy: the first operation creates the schema if
    needed. Calling init() explicitly is allowed and idempotent.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Connection / schema
    # ------------------------------------------------------------------

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a connection, commit on success, roll back on error."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailable(
                f"Cannot open {DB_NAME} database at {self.db_path}: {e}"
            ) from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def init(self) -> None:
        """Create tables and indexes if they don't exist.

        Raises:
            StorageUnavailable: If the database can't be opened or created
        """
        async with self._init_lock:
            if self._initialized:
                return
            await asyncio.to_thread(self._init_sync)
            self._initialized = True

        logger.info("offline_store.initialized", path=str(self.db_path))

    def _init_sync(self) -> None:
        try:
            with self._connect() as conn:
                version = conn.execute("PRAGMA user_version").fetchone()[0]
                if version > SCHEMA_VERSION:
                    raise StorageUnavailable(
                        f"{DB_NAME} schema v{version} is newer than supported "
                        f"v{SCHEMA_VERSION}"
                    )
                _create_schema(conn)
                conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        except sqlite3.Error as e:
            raise StorageUnavailable(
                f"Cannot initialize {DB_NAME} database at {self.db_path}: {e}"
            ) from e

    async def _ensure_init(self) -> None:
        if not self._initialized:
            await self.init()

    async def _write(self, action: str, func, *args) -> None:
        """Run a write in a worker thread, mapping SQLite errors."""
        await self._ensure_init()
        try:
            await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            logger.error("offline_store.write_failed", action=action, error=str(e))
            raise LocalPersistenceFailed(f"{action} failed: {e}") from e

    async def _read(self, func, *args):
        await self._ensure_init()
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Read from {DB_NAME} failed: {e}") from e

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def store_content(self, items: Iterable[ContentItem]) -> None:
        """Upsert content items one by one, in order.

        Not atomic across the batch: items written before a failure stay.
        """
        count = 0
        for item in items:
            await self._write("store_content", self._put_content, item)
            count += 1

        logger.debug("offline_store.content_stored", count=count)

    def _put_content(self, item: ContentItem) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO content (id, category_id, data) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    category_id = excluded.category_id,
                    data = excluded.data
                """,
                (item.id, item.category_id, json.dumps(item.to_wire())),
            )

    async def get_offline_content(self) -> list[ContentItem]:
        """Get all cached content, ordered by key."""
        rows = await self._read(
            self._fetch_all, "SELECT data FROM content ORDER BY id", ()
        )
        return [ContentItem.model_validate(json.loads(row["data"])) for row in rows]

    async def get_content_by_category(self, category_id: str) -> list[ContentItem]:
        """Get cached content for one category, ordered by key."""
        rows = await self._read(
            self._fetch_all,
            "SELECT data FROM content WHERE category_id = ? ORDER BY id",
            (category_id,),
        )
        return [ContentItem.model_validate(json.loads(row["data"])) for row in rows]

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def store_progress(self, record: ProgressRecord) -> None:
        """Upsert a progress record by key."""
        await self._write("store_progress", self._put_progress, record)
        logger.debug("offline_store.progress_stored", key=record.key)

    def _put_progress(self, record: ProgressRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO progress (id, student_id, data) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    student_id = excluded.student_id,
                    data = excluded.data
                """,
                (record.key, record.student_id, json.dumps(record.to_wire())),
            )

    async def get_stored_progress(self, student_id: str) -> list[ProgressRecord]:
        """Get all cached progress records for a student."""
        rows = await self._read(
            self._fetch_all,
            "SELECT data FROM progress WHERE student_id = ? ORDER BY id",
            (student_id,),
        )
        return [ProgressRecord.model_validate(json.loads(row["data"])) for row in rows]

    # ------------------------------------------------------------------
    # Sync queue
    # ------------------------------------------------------------------

    async def queue_sync(self, write: PendingWrite) -> SyncQueueEntry:
        """Append a pending write to the sync queue.

        Returns:
            The stored entry with its assigned id and timestamp
        """
        timestamp = int(time.time() * 1000)
        await self._ensure_init()
        try:
            entry_id = await asyncio.to_thread(self._append_queue, write, timestamp)
        except sqlite3.Error as e:
            logger.error("offline_store.write_failed", action="queue_sync", error=str(e))
            raise LocalPersistenceFailed(f"queue_sync failed: {e}") from e

        logger.debug("offline_store.queued", entry_id=entry_id, type=write.type)
        return SyncQueueEntry(id=entry_id, timestamp=timestamp, write=write)

    def _append_queue(self, write: PendingWrite, timestamp: int) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO sync_queue (type, data, timestamp) VALUES (?, ?, ?)",
                (write.type, json.dumps(write.data.to_wire()), timestamp),
            )
            return int(cursor.lastrowid)

    async def get_sync_queue(self) -> list[SyncQueueEntry]:
        """Get all queued entries in insertion order."""
        rows = await self._read(
            self._fetch_all,
            "SELECT id, type, data, timestamp FROM sync_queue ORDER BY id",
            (),
        )
        return [_row_to_entry(row) for row in rows]

    async def clear_sync_queue(self, up_to_id: int | None = None) -> int:
        """Remove queued entries in a single statement.

        Args:
            up_to_id: If given, only entries with id <= up_to_id are removed

        Returns:
            Number of entries removed
        """
        await self._ensure_init()
        try:
            removed = await asyncio.to_thread(self._delete_queue, up_to_id)
        except sqlite3.Error as e:
            logger.error("offline_store.write_failed", action="clear_sync_queue", error=str(e))
            raise LocalPersistenceFailed(f"clear_sync_queue failed: {e}") from e

        logger.debug("offline_store.queue_cleared", removed=removed, up_to_id=up_to_id)
        return removed

    def _delete_queue(self, up_to_id: int | None) -> int:
        with self._connect() as conn:
            if up_to_id is None:
                cursor = conn.execute("DELETE FROM sync_queue")
            else:
                cursor = conn.execute(
                    "DELETE FROM sync_queue WHERE id <= ?", (up_to_id,)
                )
            return cursor.rowcount

    async def count_sync_queue(self) -> int:
        """Number of pending entries."""
        rows = await self._read(
            self._fetch_all, "SELECT COUNT(*) AS n FROM sync_queue", ()
        )
        return int(rows[0]["n"])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch_all(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        with self._connect() as conn:
            return conn.execute(sql, params).fetchall()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create tables and indexes. Uses IF NOT EXISTS for idempotency."""
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS content (
            id TEXT PRIMARY KEY,
            category_id TEXT NOT NULL,
            data TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS progress (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            data TEXT NOT NULL
        );

        -- AUTOINCREMENT: ids are never reused after a clear
        CREATE TABLE IF NOT EXISTS sync_queue (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            type TEXT NOT NULL CHECK(type IN ('progress', 'assignment_submission')),
            data TEXT NOT NULL,
            timestamp INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_content_category ON content(category_id);
        CREATE INDEX IF NOT EXISTS idx_progress_student ON progress(student_id);
        """
    )


def _row_to_entry(row: sqlite3.Row) -> SyncQueueEntry:
    """Convert database row to SyncQueueEntry.

    Raises:
        StorageUnavailable: If the stored payload can't be decoded
    """
    try:
        write = _pending_write_adapter.validate_python(
            {"type": row["type"], "data": json.loads(row["data"])}
        )
    except (json.JSONDecodeError, ValidationError) as e:
        raise StorageUnavailable(
            f"Queued entry {row['id']} can't be decoded: {e}"
        ) from e
    return SyncQueueEntry(id=row["id"], timestamp=row["timestamp"], write=write)
