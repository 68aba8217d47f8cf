"""Contract tests for BatchIngestOrchestrator."""

import random

import pytest

from memoembed.lib.config import IngestConfig
from memoembed.services.ingest import DEMO_ENTRIES, BatchIngestOrchestrator, IngestPipeline


class TestBatchIngest:
    """Tests for run()."""

    def test_default_catalog(self, ingest, ingest_config):
        """Test that the default catalog holds twenty distinct notes."""
        orchestrator = BatchIngestOrchestrator(ingest, config=ingest_config)

        assert orchestrator.total == 20
        assert orchestrator.texts == DEMO_ENTRIES
        assert len(set(DEMO_ENTRIES)) == 20

    @pytest.mark.asyncio
    async def test_progress_and_persistence(self, ingest, store, ingest_config):
        """Test that every entry is stored, enriched and reported."""
        orchestrator = BatchIngestOrchestrator(ingest, config=ingest_config, rng=random.Random(7))

        progress = [value async for value in orchestrator.run()]

        assert progress == list(range(21))
        assert await store.count() == 20
        assert await store.list_without_fingerprint() == []

        for record in await store.list_all():
            assert 30000 <= record.duration_ms < 120000

    @pytest.mark.asyncio
    async def test_failed_item_is_skipped(self, ingest, store, ingest_config):
        """Test that a rejected entry is skipped without stopping the run."""
        texts = ["call mom", "   ", "book train tickets"]
        orchestrator = BatchIngestOrchestrator(ingest, texts=texts, config=ingest_config)

        progress = [value async for value in orchestrator.run()]

        assert progress == [0, 1, 3]
        assert sorted(r.text for r in await store.list_all()) == ["book train tickets", "call mom"]

    @pytest.mark.asyncio
    async def test_enrichment_failure_still_counts(self, store, make_generator, ingest_config):
        """Test that entries stored without fingerprint count as progress."""
        orchestrator = BatchIngestOrchestrator(
            IngestPipeline(store, make_generator(fail_load=True)), texts=["one", "two"], config=ingest_config
        )

        progress = [value async for value in orchestrator.run()]

        assert progress == [0, 1, 2]
        assert len(await store.list_without_fingerprint()) == 2

    @pytest.mark.asyncio
    async def test_dimension_mismatch_still_counts(self, store, make_generator, ingest_config):
        """Test that an entry stored before a dimension mismatch counts as progress."""
        generator = make_generator(vectors={"two": [1.0, 0.0]})
        orchestrator = BatchIngestOrchestrator(
            IngestPipeline(store, generator), texts=["one", "two", "three"], config=ingest_config
        )

        progress = [value async for value in orchestrator.run()]

        assert progress == [0, 1, 2, 3]
        assert await store.count() == 3
        assert [r.text for r in await store.list_without_fingerprint()] == ["two"]

    @pytest.mark.asyncio
    async def test_progress_is_monotone(self, ingest, ingest_config):
        """Test that progress never goes backwards."""
        texts = ["a note", "", "another note", " ", "last note"]
        orchestrator = BatchIngestOrchestrator(ingest, texts=texts, config=ingest_config)

        progress = [value async for value in orchestrator.run()]

        assert progress == sorted(set(progress))
        assert progress[0] == 0
        assert progress[-1] == 5

    @pytest.mark.asyncio
    async def test_durations_within_configured_range(self, ingest, store):
        """Test that synthetic durations respect the configured bounds."""
        config = IngestConfig(demo_item_delay_seconds=0.0, demo_min_duration_ms=1000, demo_max_duration_ms=1001)
        orchestrator = BatchIngestOrchestrator(ingest, texts=["one", "two"], config=config)

        async for _ in orchestrator.run():
            pass

        assert {r.duration_ms for r in await store.list_all()} == {1000}
