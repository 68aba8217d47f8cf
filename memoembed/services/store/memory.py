"""In-memory record store.

Suitable for tests and for hosts that bring their own durability.
All state changes happen under an asyncio lock.
"""

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Optional

from memoembed.lib.exceptions import DimensionMismatchError, EmptyInputError, ValidationError
from memoembed.lib.fingerprint import FingerprintCodec
from memoembed.models import Record
from memoembed.services.store.base import ChangeFeed, newest_first

logger = logging.getLogger(__name__)


class InMemoryRecordStore:
    """Dictionary-backed implementation of RecordStore."""

    def __init__(self) -> None:
        self._records: dict[int, Record] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()
        self._feed = ChangeFeed()

    async def insert(self, text: str, created_at: datetime, duration_ms: int) -> int:
        """Persist a new note without fingerprint."""
        if not text or not text.strip():
            raise EmptyInputError()
        if duration_ms < 0:
            raise ValidationError("Duration cannot be negative", field="duration_ms")

        async with self._lock:
            record = Record(
                id=self._next_id,
                text=text,
                created_at=created_at,
                fingerprint=None,
                duration_ms=duration_ms,
            )
            self._records[record.id] = record
            self._next_id += 1
            snapshot = self._snapshot()

        self._feed.publish(snapshot)
        logger.debug(f"Inserted record {record.id}")
        return record.id

    async def update_fingerprint(self, record_id: int, data: bytes) -> bool:
        """Attach a fingerprint; False if the note has vanished."""
        if not data:
            raise ValidationError("Fingerprint cannot be empty", field="fingerprint")

        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                logger.debug(f"Record {record_id} vanished before fingerprint update")
                return False

            if current.fingerprint is not None and len(current.fingerprint) != len(data):
                raise DimensionMismatchError(
                    len(current.fingerprint) // FingerprintCodec.COMPONENT_SIZE,
                    len(data) // FingerprintCodec.COMPONENT_SIZE,
                )

            self._records[record_id] = current.model_copy(update={"fingerprint": data})
            snapshot = self._snapshot()

        self._feed.publish(snapshot)
        logger.debug(f"Updated fingerprint for record {record_id}")
        return True

    async def get(self, record_id: int) -> Optional[Record]:
        """Load one note, or None if it does not exist."""
        async with self._lock:
            return self._records.get(record_id)

    async def list_all(self) -> list[Record]:
        """Snapshot of every note, newest first."""
        async with self._lock:
            return self._snapshot()

    async def list_with_fingerprint(self) -> list[Record]:
        """Snapshot of notes that have a fingerprint, newest first."""
        async with self._lock:
            return [r for r in self._snapshot() if r.fingerprint is not None]

    async def list_without_fingerprint(self) -> list[Record]:
        """Snapshot of notes without fingerprint, newest first."""
        async with self._lock:
            return [r for r in self._snapshot() if r.fingerprint is None]

    async def search_text(self, query: str) -> list[Record]:
        """Notes whose text contains ``query``, ignoring case, newest first."""
        needle = query.strip().lower()
        if not needle:
            return []
        async with self._lock:
            return [r for r in self._snapshot() if needle in r.text.lower()]

    async def list_between(self, start: datetime, end: datetime) -> list[Record]:
        """Notes captured within ``[start, end]``, newest first."""
        async with self._lock:
            return [r for r in self._snapshot() if start <= r.created_at <= end]

    async def delete(self, record_id: int) -> bool:
        """Remove a note. Returns False if it did not exist."""
        async with self._lock:
            removed = self._records.pop(record_id, None)
            snapshot = self._snapshot()

        if removed is None:
            return False
        self._feed.publish(snapshot)
        logger.debug(f"Deleted record {record_id}")
        return True

    async def count(self) -> int:
        """Number of notes in the store."""
        async with self._lock:
            return len(self._records)

    async def watch(self) -> AsyncIterator[list[Record]]:
        """Stream full snapshots, starting with the current one."""
        queue = self._feed.register()
        try:
            yield await self.list_all()
            while True:
                yield await queue.get()
        finally:
            self._feed.unregister(queue)

    def _snapshot(self) -> list[Record]:
        return newest_first(list(self._records.values()))
