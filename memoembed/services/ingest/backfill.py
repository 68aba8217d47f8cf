"""Fingerprint backfill for notes saved without one.

Ingest never retries a failed enrichment, so notes captured while the
model was unavailable stay invisible to search until a sweep attaches
their fingerprints.
"""

import logging
import time
from typing import Optional

from memoembed.lib.config import IngestConfig, get_ingest_config
from memoembed.lib.exceptions import DimensionMismatchError
from memoembed.lib.timestamps import generate_timestamp
from memoembed.models import BackfillReport, FingerprintCoverage
from memoembed.services.ingest.pipeline import IngestPipeline

logger = logging.getLogger(__name__)


class BackfillService:
    """Attaches fingerprints to stored notes that lack one."""

    def __init__(self, pipeline: IngestPipeline, config: Optional[IngestConfig] = None):
        """
        Initialize the backfill service.

        Args:
            pipeline: Ingest pipeline used for enrichment
            config: Ingest configuration (None = from environment)
        """
        self.pipeline = pipeline
        self.config = config or get_ingest_config()

    @property
    def store(self):
        return self.pipeline.store

    async def run_once(self) -> BackfillReport:
        """
        Sweep notes without fingerprint, oldest first.

        At most ``backfill_batch_limit`` notes are processed per sweep.
        The sweep stops early if the embedding model cannot be loaded or
        its output dimension disagrees with the deployment.

        Returns:
            BackfillReport with per-sweep counts
        """
        start = time.time()
        report = BackfillReport()

        pending = await self.store.list_without_fingerprint()
        pending = list(reversed(pending))[: self.config.backfill_batch_limit]

        if not pending:
            logger.debug("Backfill: every note already has a fingerprint")
            report.duration_seconds = time.time() - start
            return report

        logger.info(f"Backfill: {len(pending)} notes without fingerprint")

        if not await self.pipeline.generator.initialize():
            logger.warning("Backfill stopped: embedding model unavailable")
            report.stopped_early = True
            report.duration_seconds = time.time() - start
            return report

        for record in pending:
            report.scanned += 1
            try:
                outcome = await self.pipeline.attach_fingerprint(record.id, record.text)
            except DimensionMismatchError as e:
                # Every remaining note would fail the same way
                logger.error(f"Backfill stopped: {e}")
                report.failed += 1
                report.errors.append(f"Note {e.record_id}: {e}")
                report.stopped_early = True
                break

            if outcome.enriched:
                report.enriched += 1
                continue

            report.failed += 1
            report.errors.append(f"Note {record.id}: {outcome.error}")

            if not self.pipeline.generator.is_ready:
                logger.warning("Backfill stopped: embedding model was unloaded")
                report.stopped_early = True
                break

        report.duration_seconds = time.time() - start
        logger.info(
            f"Backfill complete: {report.enriched} enriched, {report.failed} failed "
            f"in {report.duration_seconds:.2f}s"
        )
        return report

    async def coverage(self) -> FingerprintCoverage:
        """
        Report how many notes are searchable.

        Returns:
            FingerprintCoverage for the current store contents
        """
        total = await self.store.count()
        with_fingerprint = len(await self.store.list_with_fingerprint())
        percent = (with_fingerprint / total * 100) if total > 0 else 100.0

        return FingerprintCoverage(
            total_records=total,
            records_with_fingerprint=with_fingerprint,
            coverage_percent=percent,
            checked_at=generate_timestamp(),
        )
