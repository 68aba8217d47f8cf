"""SQLite-backed record store.

Uses the standard-library sqlite3 module. Every operation opens a short-lived
connection on a worker thread (asyncio.to_thread) so database I/O never runs
on the event loop.

Schema (one table, one row per note):
    voice_memos(id INTEGER PRIMARY KEY AUTOINCREMENT, text TEXT NOT NULL,
                timestamp INTEGER NOT NULL, embedding BLOB,
                duration INTEGER NOT NULL DEFAULT 0)

``timestamp`` holds epoch milliseconds; ``embedding`` holds the raw
fingerprint bytes (see memoembed.lib.fingerprint).
"""

import asyncio
import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, TypeVar

from memoembed.lib.config import get_store_config
from memoembed.lib.exceptions import (
    DimensionMismatchError,
    EmptyInputError,
    PersistenceError,
    ValidationError,
)
from memoembed.lib.fingerprint import FingerprintCodec
from memoembed.lib.timestamps import from_epoch_millis, to_epoch_millis
from memoembed.models import Record
from memoembed.services.store.base import ChangeFeed

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS voice_memos (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    embedding BLOB,
    duration INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_voice_memos_timestamp ON voice_memos(timestamp);
"""

_SELECT = "SELECT id, text, timestamp, embedding, duration FROM voice_memos"
_ORDER = " ORDER BY timestamp DESC, id DESC"


class SqliteRecordStore:
    """Durable implementation of RecordStore over a SQLite file."""

    def __init__(self, database_path: Optional[Path] = None):
        """
        Initialize the store and create the schema if needed.

        Args:
            database_path: SQLite file (None = MEMOEMBED_DATABASE_PATH)
        """
        self.database_path = Path(database_path or get_store_config().database_file)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._feed = ChangeFeed()

        with closing(self._connect()) as conn:
            conn.executescript(SCHEMA)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.database_path)

    async def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``fn`` with a fresh connection on a worker thread."""

        def work() -> T:
            with closing(self._connect()) as conn:
                try:
                    result = fn(conn)
                    conn.commit()
                    return result
                except sqlite3.Error:
                    conn.rollback()
                    raise

        try:
            return await asyncio.to_thread(work)
        except sqlite3.Error as e:
            logger.error(f"SQLite {operation} failed: {e}")
            raise PersistenceError(f"Failed to {operation}: {e}", operation=operation) from e

    @staticmethod
    def _row_to_record(row: tuple) -> Record:
        record_id, text, timestamp, embedding, duration = row
        return Record(
            id=record_id,
            text=text,
            created_at=from_epoch_millis(timestamp),
            fingerprint=bytes(embedding) if embedding is not None else None,
            duration_ms=duration,
        )

    async def _select(self, operation: str, where: str = "", params: tuple = ()) -> list[Record]:
        def query(conn: sqlite3.Connection) -> list[tuple]:
            return conn.execute(f"{_SELECT}{where}{_ORDER}", params).fetchall()

        rows = await self._run(operation, query)
        return [self._row_to_record(row) for row in rows]

    async def _publish(self) -> None:
        if self._feed.subscriber_count:
            self._feed.publish(await self.list_all())

    async def insert(self, text: str, created_at: datetime, duration_ms: int) -> int:
        """Persist a new note without fingerprint."""
        if not text or not text.strip():
            raise EmptyInputError()
        if duration_ms < 0:
            raise ValidationError("Duration cannot be negative", field="duration_ms")

        def write(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                "INSERT INTO voice_memos (text, timestamp, embedding, duration) VALUES (?, ?, NULL, ?)",
                (text, to_epoch_millis(created_at), duration_ms),
            )
            return int(cursor.lastrowid)

        record_id = await self._run("insert", write)
        logger.debug(f"Inserted record {record_id} into {self.database_path}")
        await self._publish()
        return record_id

    async def update_fingerprint(self, record_id: int, data: bytes) -> bool:
        """Attach a fingerprint; False if the note has vanished."""
        if not data:
            raise ValidationError("Fingerprint cannot be empty", field="fingerprint")

        def write(conn: sqlite3.Connection) -> Optional[int]:
            row = conn.execute(
                "SELECT length(embedding) FROM voice_memos WHERE id = ?", (record_id,)
            ).fetchone()
            if row is None:
                return None
            existing_length = row[0]
            if existing_length is not None and existing_length != len(data):
                return existing_length
            conn.execute("UPDATE voice_memos SET embedding = ? WHERE id = ?", (data, record_id))
            return len(data)

        written = await self._run("update", write)
        if written is None:
            logger.debug(f"Record {record_id} vanished before fingerprint update")
            return False
        if written != len(data):
            raise DimensionMismatchError(
                written // FingerprintCodec.COMPONENT_SIZE,
                len(data) // FingerprintCodec.COMPONENT_SIZE,
            )

        logger.debug(f"Updated fingerprint for record {record_id}")
        await self._publish()
        return True

    async def get(self, record_id: int) -> Optional[Record]:
        """Load one note, or None if it does not exist."""
        records = await self._select("get", " WHERE id = ?", (record_id,))
        return records[0] if records else None

    async def list_all(self) -> list[Record]:
        """Snapshot of every note, newest first."""
        return await self._select("list")

    async def list_with_fingerprint(self) -> list[Record]:
        """Snapshot of notes that have a fingerprint, newest first."""
        return await self._select("list", " WHERE embedding IS NOT NULL")

    async def list_without_fingerprint(self) -> list[Record]:
        """Snapshot of notes without fingerprint, newest first."""
        return await self._select("list", " WHERE embedding IS NULL")

    async def search_text(self, query: str) -> list[Record]:
        """Notes whose text contains ``query``, newest first.

        Uses SQL LIKE, so case folding covers ASCII letters only.
        """
        needle = query.strip()
        if not needle:
            return []
        escaped = needle.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return await self._select("search", " WHERE text LIKE ? ESCAPE '\\'", (f"%{escaped}%",))

    async def list_between(self, start: datetime, end: datetime) -> list[Record]:
        """Notes captured within ``[start, end]``, newest first."""
        return await self._select(
            "list",
            " WHERE timestamp BETWEEN ? AND ?",
            (to_epoch_millis(start), to_epoch_millis(end)),
        )

    async def delete(self, record_id: int) -> bool:
        """Remove a note. Returns False if it did not exist."""

        def write(conn: sqlite3.Connection) -> int:
            return conn.execute("DELETE FROM voice_memos WHERE id = ?", (record_id,)).rowcount

        deleted = await self._run("delete", write)
        if not deleted:
            return False
        logger.debug(f"Deleted record {record_id}")
        await self._publish()
        return True

    async def count(self) -> int:
        """Number of notes in the store."""

        def query(conn: sqlite3.Connection) -> int:
            return conn.execute("SELECT COUNT(*) FROM voice_memos").fetchone()[0]

        return await self._run("count", query)

    async def watch(self) -> AsyncIterator[list[Record]]:
        """Stream full snapshots, starting with the current one."""
        queue = self._feed.register()
        try:
            yield await self.list_all()
            while True:
                yield await queue.get()
        finally:
            self._feed.unregister(queue)
