"""Ingest workflow models.

Per-record enrichment follows a small state machine:

    CREATED → ENRICHED           (fingerprint attached)
    CREATED → ENRICHMENT_FAILED  (model unavailable or generation failed)

The text is durable from CREATED onward; neither transition rolls back
the insert.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class EnrichmentState(str, Enum):
    """Fingerprint enrichment state of a newly written record."""

    CREATED = "CREATED"  # Text persisted, fingerprint pending
    ENRICHED = "ENRICHED"  # Fingerprint attached
    ENRICHMENT_FAILED = "ENRICHMENT_FAILED"  # Text persisted, no fingerprint

    @classmethod
    def allowed_transitions(cls) -> dict["EnrichmentState", list["EnrichmentState"]]:
        """Return allowed state transitions."""
        return {
            cls.CREATED: [cls.ENRICHED, cls.ENRICHMENT_FAILED],
            cls.ENRICHED: [],
            cls.ENRICHMENT_FAILED: [],
        }

    def can_transition_to(self, new_state: "EnrichmentState") -> bool:
        """Check if transition to new_state is allowed."""
        return new_state in self.allowed_transitions().get(self, [])


@dataclass
class IngestOutcome:
    """Result of ingesting one note.

    ``record_id`` is always set: a failed enrichment never revokes the
    successful insert.

    Attributes:
        record_id: Store-assigned identifier of the note
        state: Enrichment state reached
        error: Why enrichment did not complete (if applicable)
        dimension: Fingerprint dimension when enriched
    """

    record_id: int
    state: EnrichmentState = EnrichmentState.CREATED
    error: Optional[str] = None
    dimension: int = 0

    @property
    def enriched(self) -> bool:
        """Whether the fingerprint was attached."""
        return self.state == EnrichmentState.ENRICHED

    def transition(self, new_state: EnrichmentState, error: Optional[str] = None) -> None:
        """Move to ``new_state``.

        Raises:
            ValueError: If the transition is not allowed.
        """
        if not self.state.can_transition_to(new_state):
            raise ValueError(f"Cannot transition from {self.state.value} to {new_state.value}")
        self.state = new_state
        self.error = error

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "record_id": self.record_id,
            "state": self.state.value,
            "error": self.error,
            "dimension": self.dimension,
        }


@dataclass
class BackfillReport:
    """Result of one backfill sweep.

    Attributes:
        scanned: Records without fingerprint considered
        enriched: Fingerprints attached
        failed: Records whose enrichment failed
        stopped_early: Sweep aborted because the model could not load or
            produces vectors of the wrong dimension
        errors: Error messages per failed record
        duration_seconds: Time taken by the sweep
    """

    scanned: int = 0
    enriched: int = 0
    failed: int = 0
    stopped_early: bool = False
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0


@dataclass
class FingerprintCoverage:
    """How much of the store is searchable.

    Attributes:
        total_records: All notes in the store
        records_with_fingerprint: Notes that can appear in search results
        coverage_percent: Percentage of notes with a fingerprint
        checked_at: When the figures were computed
    """

    total_records: int
    records_with_fingerprint: int
    coverage_percent: float
    checked_at: datetime

    @property
    def records_without_fingerprint(self) -> int:
        """Notes waiting for a backfill."""
        return self.total_records - self.records_with_fingerprint

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "total_records": self.total_records,
            "records_with_fingerprint": self.records_with_fingerprint,
            "coverage_percent": self.coverage_percent,
            "checked_at": self.checked_at.isoformat(),
        }
