"""Two-phase note ingest: write text now, attach fingerprint later.

Text capture is never blocked on, or lost to, model loading or
inference. Phase one persists the note and yields its id; phase two
generates, encodes and attaches the fingerprint. A phase-two failure
leaves the note stored without fingerprint (see BackfillService).
"""

import asyncio
import logging
from typing import Optional

from memoembed.lib.exceptions import (
    DimensionMismatchError,
    EmptyInputError,
    GenerationFailedError,
    NotInitializedError,
    ValidationError,
)
from memoembed.lib.fingerprint import FingerprintCodec
from memoembed.lib.timestamps import generate_timestamp
from memoembed.models import EnrichmentState, IngestOutcome
from memoembed.services.embedding.generator import EmbeddingGenerator
from memoembed.services.store.base import RecordStore

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Orchestrates persisting a note and enriching it with a fingerprint."""

    def __init__(self, store: RecordStore, generator: EmbeddingGenerator):
        """
        Initialize the pipeline.

        Args:
            store: Record store that owns durable state
            generator: Embedding generator (initialized on demand)
        """
        self.store = store
        self.generator = generator
        self._background: set[asyncio.Task[IngestOutcome]] = set()

    async def persist_text(self, text: str, duration_ms: int = 0) -> int:
        """
        Phase one: persist the note without fingerprint.

        Args:
            text: Transcribed note text
            duration_ms: Recording duration in milliseconds

        Returns:
            Store-assigned record id

        Raises:
            EmptyInputError: If text is blank (nothing is written)
            ValidationError: If duration is negative (nothing is written)
            PersistenceError: If the store write fails
        """
        if not text or not text.strip():
            raise EmptyInputError()
        if duration_ms < 0:
            raise ValidationError("Duration cannot be negative", field="duration_ms")

        logger.debug(f"Saving note ({len(text)} chars, {duration_ms}ms) to store")
        record_id = await self.store.insert(text, generate_timestamp(), duration_ms)
        logger.info(f"Note saved with id {record_id}")
        return record_id

    async def attach_fingerprint(self, record_id: int, text: str) -> IngestOutcome:
        """
        Phase two: generate and attach the fingerprint.

        Never rolls back the insert and never retries. Generation and
        store failures are reported in the outcome.

        Args:
            record_id: Note created by :meth:`persist_text`
            text: The note's text

        Returns:
            IngestOutcome in ENRICHED or ENRICHMENT_FAILED state

        Raises:
            DimensionMismatchError: If the model and deployment dimension disagree
                (carries ``record_id``; the note is not rolled back)
        """
        outcome = IngestOutcome(record_id=record_id)

        if not await self.generator.initialize():
            logger.warning(f"Embedding model unavailable, note {record_id} saved without fingerprint")
            outcome.transition(EnrichmentState.ENRICHMENT_FAILED, "Embedding model failed to initialize")
            return outcome

        try:
            vector = await self.generator.generate(text)
            data = FingerprintCodec.encode(vector, dimension=self.generator.dimension)
            logger.debug(f"Fingerprint for note {record_id}: {len(vector)} dims, {len(data)} bytes")

            if not await self.store.update_fingerprint(record_id, data):
                logger.info(f"Note {record_id} was deleted before its fingerprint was attached")
                outcome.transition(EnrichmentState.ENRICHMENT_FAILED, "Note no longer exists")
                return outcome

        except DimensionMismatchError as e:
            # The note stays stored; hand its id to the caller with the error
            e.record_id = record_id
            logger.error(f"Fingerprint dimension mismatch for note {record_id}: {e}")
            raise

        except (NotInitializedError, GenerationFailedError) as e:
            logger.warning(f"Failed to generate fingerprint for note {record_id}: {e}")
            outcome.transition(EnrichmentState.ENRICHMENT_FAILED, str(e))
            return outcome

        except Exception as e:
            logger.error(f"Failed to store fingerprint for note {record_id}: {e}")
            outcome.transition(EnrichmentState.ENRICHMENT_FAILED, str(e))
            return outcome

        outcome.dimension = len(vector)
        outcome.transition(EnrichmentState.ENRICHED)
        logger.info(f"Fingerprint attached to note {record_id}")
        return outcome

    async def submit(self, text: str, duration_ms: int = 0) -> IngestOutcome:
        """
        Persist a note and enrich it, waiting for both phases.

        Args:
            text: Transcribed note text
            duration_ms: Recording duration in milliseconds

        Returns:
            IngestOutcome carrying the record id regardless of enrichment result

        Raises:
            EmptyInputError: If text is blank (nothing is written)
            DimensionMismatchError: With ``record_id`` set to the stored note
        """
        record_id = await self.persist_text(text, duration_ms)
        return await self.attach_fingerprint(record_id, text)

    async def submit_background(
        self, text: str, duration_ms: int = 0
    ) -> tuple[int, asyncio.Task[IngestOutcome]]:
        """
        Persist a note and enrich it on a background task.

        Returns as soon as the insert commits.

        Args:
            text: Transcribed note text
            duration_ms: Recording duration in milliseconds

        Returns:
            Tuple of (record id, task resolving to the IngestOutcome)
        """
        record_id = await self.persist_text(text, duration_ms)
        task = asyncio.create_task(self.attach_fingerprint(record_id, text))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return record_id, task

    async def drain(self, timeout: Optional[float] = None) -> list[IngestOutcome]:
        """
        Wait for background enrichments started by :meth:`submit_background`.

        Args:
            timeout: Seconds to wait (None = no limit)

        Returns:
            Outcomes of the enrichments that completed successfully
        """
        pending = list(self._background)
        if not pending:
            return []

        done, _ = await asyncio.wait(pending, timeout=timeout)
        outcomes = []
        for task in done:
            if task.cancelled():
                continue
            if task.exception() is not None:
                logger.error(f"Background enrichment failed: {task.exception()}")
                continue
            outcomes.append(task.result())
        return outcomes
