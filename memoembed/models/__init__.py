"""Domain models for captured notes and search."""

from memoembed.models.record import Record
from memoembed.models.search_result import SearchResult, SearchUpdate
from memoembed.models.ingest import (
    BackfillReport,
    EnrichmentState,
    FingerprintCoverage,
    IngestOutcome,
)

__all__ = [
    "Record",
    "SearchResult",
    "SearchUpdate",
    "EnrichmentState",
    "IngestOutcome",
    "BackfillReport",
    "FingerprintCoverage",
]
