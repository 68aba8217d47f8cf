"""Record store Protocol definitions.

The core consumes persistence through this narrow contract; it never
owns durable state itself.
"""

import asyncio
from datetime import datetime
from typing import AsyncIterator, Optional, Protocol

from memoembed.models import Record


class RecordStore(Protocol):
    """
    Contract for note persistence implementations.

    All listing operations return snapshots ordered newest first
    (descending ``created_at``). Snapshots are frozen Records; callers must
    not hold them beyond one pipeline invocation.
    """

    async def insert(self, text: str, created_at: datetime, duration_ms: int) -> int:
        """
        Persist a new note without fingerprint.

        Args:
            text: Non-empty note text
            created_at: Capture time
            duration_ms: Recording duration in milliseconds

        Returns:
            int: Store-assigned identifier

        Raises:
            PersistenceError: If the write fails

        Contract:
            - MUST persist before returning
            - MUST assign a fresh identifier, never reused
            - MUST store ``fingerprint`` as absent
        """
        ...

    async def update_fingerprint(self, record_id: int, data: bytes) -> bool:
        """
        Attach a fingerprint to an existing note.

        Args:
            record_id: Note to update
            data: Encoded fingerprint bytes

        Returns:
            bool: False if the note no longer exists

        Raises:
            DimensionMismatchError: If a fingerprint of different length is present
            PersistenceError: If the write fails

        Contract:
            - MUST treat a vanished id as a non-error
            - MUST NOT change ``text`` or ``created_at``
        """
        ...

    async def get(self, record_id: int) -> Optional[Record]:
        """Load one note, or None if it does not exist."""
        ...

    async def list_all(self) -> list[Record]:
        """Snapshot of every note."""
        ...

    async def list_with_fingerprint(self) -> list[Record]:
        """Snapshot of notes that have a fingerprint (search candidates)."""
        ...

    async def list_without_fingerprint(self) -> list[Record]:
        """Snapshot of notes still waiting for a fingerprint."""
        ...

    async def search_text(self, query: str) -> list[Record]:
        """
        Snapshot of notes whose text contains ``query``.

        Matching is a case-insensitive substring test; no fingerprint is
        involved. A blank query matches nothing.
        """
        ...

    async def list_between(self, start: datetime, end: datetime) -> list[Record]:
        """Snapshot of notes captured within ``[start, end]``, bounds inclusive."""
        ...

    async def delete(self, record_id: int) -> bool:
        """Remove a note. Returns False if it did not exist."""
        ...

    async def count(self) -> int:
        """Number of notes in the store."""
        ...

    def watch(self) -> AsyncIterator[list[Record]]:
        """
        Stream full snapshots of the store.

        Emits the current snapshot immediately and a fresh one after every
        insert, fingerprint update or delete. Slow consumers only ever see
        the latest snapshot.
        """
        ...


class ChangeFeed:
    """Fan-out of store snapshots to ``watch()`` subscribers.

    Each subscriber owns a queue that holds at most the latest snapshot.
    """

    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[list[Record]]] = set()

    def register(self) -> asyncio.Queue[list[Record]]:
        """Add a subscriber queue."""
        queue: asyncio.Queue[list[Record]] = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unregister(self, queue: asyncio.Queue[list[Record]]) -> None:
        """Remove a subscriber queue."""
        self._subscribers.discard(queue)

    def publish(self, snapshot: list[Record]) -> None:
        """Deliver ``snapshot`` to every subscriber, replacing stale ones."""
        for queue in self._subscribers:
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(snapshot)

    @property
    def subscriber_count(self) -> int:
        """Number of active watchers."""
        return len(self._subscribers)


def newest_first(records: list[Record]) -> list[Record]:
    """Order records by descending capture time, newest id first on ties."""
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)
