"""Note ingest: two-phase pipeline, batch catalog ingest and backfill."""

from memoembed.services.ingest.backfill import BackfillService
from memoembed.services.ingest.batch import DEMO_ENTRIES, BatchIngestOrchestrator
from memoembed.services.ingest.pipeline import IngestPipeline

__all__ = [
    "IngestPipeline",
    "BatchIngestOrchestrator",
    "BackfillService",
    "DEMO_ENTRIES",
]
