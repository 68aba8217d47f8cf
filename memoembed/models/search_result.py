"""Search result models for semantic note search."""

from dataclasses import dataclass, field

from memoembed.models.record import Record


@dataclass(frozen=True)
class SearchResult:
    """A note that matched a query.

    Ephemeral; never persisted.

    Attributes:
        record: Snapshot of the matching note.
        similarity: Cosine similarity that admitted the note.
    """

    record: Record
    similarity: float

    @property
    def record_id(self) -> int:
        """Identifier of the matching note."""
        return self.record.id

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "record_id": self.record.id,
            "text": self.record.text,
            "created_at": self.record.created_at.isoformat(),
            "duration_ms": self.record.duration_ms,
            "similarity": self.similarity,
        }


@dataclass(frozen=True)
class SearchUpdate:
    """One emission of a search stream.

    Attributes:
        query: Trimmed query the results belong to.
        results: Matching notes, most recent first (empty for blank queries
            and degraded searches).
    """

    query: str
    results: list[SearchResult] = field(default_factory=list)

    @property
    def record_ids(self) -> list[int]:
        """Identifiers of the matching notes, in emission order."""
        return [r.record_id for r in self.results]
