"""Record store contract and reference implementations."""

from memoembed.services.store.base import ChangeFeed, RecordStore
from memoembed.services.store.memory import InMemoryRecordStore
from memoembed.services.store.sqlite import SqliteRecordStore

__all__ = [
    "RecordStore",
    "ChangeFeed",
    "InMemoryRecordStore",
    "SqliteRecordStore",
]
