"""Semantic note search, one-shot and as-you-type.

One-shot search never raises: a missing model, an unreadable store or
any other internal failure is logged and yields an empty result list.
Only cancellation propagates.

The streaming surface (SearchSession) turns a sequence of raw query
strings into SearchUpdate emissions:

1. debounce: each push restarts a timer; only the last value survives
2. deduplicate: a query equal (after trimming) to the previous one is dropped
3. blank queries emit an empty update without touching the model
4. latest-wins: a new query cancels the in-flight search, and a
   generation counter keeps a superseded search from ever emitting
"""

import asyncio
import logging
import time
from typing import AsyncIterable, AsyncIterator, Optional

from memoembed.lib.config import SearchConfig, get_search_config
from memoembed.lib.exceptions import DimensionMismatchError, MalformedFingerprintError
from memoembed.lib.fingerprint import FingerprintCodec
from memoembed.lib.similarity import Candidate, rank_by_similarity
from memoembed.models import SearchResult, SearchUpdate
from memoembed.services.embedding.generator import EmbeddingGenerator
from memoembed.services.store.base import RecordStore

logger = logging.getLogger(__name__)


class SearchPipeline:
    """Finds stored notes semantically close to a query."""

    def __init__(
        self,
        store: RecordStore,
        generator: EmbeddingGenerator,
        config: Optional[SearchConfig] = None,
        threshold: Optional[float] = None,
    ):
        """
        Initialize the search pipeline.

        Args:
            store: Record store to search
            generator: Embedding generator (initialized on demand)
            config: Search configuration (None = from environment)
            threshold: Override for the similarity threshold
        """
        self.store = store
        self.generator = generator
        self.config = config or get_search_config()
        self.threshold = self.config.similarity_threshold if threshold is None else threshold

    async def search(self, query: str) -> list[SearchResult]:
        """
        Search notes by semantic similarity.

        Args:
            query: Natural language query (surrounding whitespace ignored)

        Returns:
            Matching notes, most recent first. Empty for a blank query
            or when search is degraded.

        Never raises except for cancellation.
        """
        if not query or not query.strip():
            return []
        query = query.strip()

        start = time.time()
        try:
            if not await self.generator.initialize():
                logger.warning("Search unavailable: embedding model failed to initialize")
                return []

            query_vector = await self.generator.generate(query)
            records = await self.store.list_with_fingerprint()

            by_id = {}
            candidates = []
            for record in records:
                try:
                    vector = FingerprintCodec.decode(record.fingerprint, dimension=self.generator.dimension)
                except (MalformedFingerprintError, DimensionMismatchError) as e:
                    logger.warning(f"Skipping note {record.id} with unreadable fingerprint: {e}")
                    continue
                by_id[record.id] = record
                candidates.append(Candidate(record.id, vector, record.created_at))

            scored = rank_by_similarity(query_vector, candidates, self.threshold)
            results = [SearchResult(record=by_id[s.record_id], similarity=s.similarity) for s in scored]

        except asyncio.CancelledError:
            raise

        except Exception:
            logger.exception(f"Search failed for query {query!r}")
            return []

        duration_ms = (time.time() - start) * 1000
        logger.debug(
            f"Search {query!r}: {len(results)}/{len(candidates)} notes matched "
            f"(threshold {self.threshold}) in {duration_ms:.1f}ms"
        )
        return results

    def open_session(self, debounce_seconds: Optional[float] = None) -> "SearchSession":
        """
        Start an as-you-type search session.

        Args:
            debounce_seconds: Override for the debounce interval

        Returns:
            A SearchSession bound to this pipeline
        """
        if debounce_seconds is None:
            debounce_seconds = self.config.debounce_seconds
        return SearchSession(self, debounce_seconds)

    async def search_stream(
        self,
        queries: AsyncIterable[str],
        debounce_seconds: Optional[float] = None,
    ) -> AsyncIterator[SearchUpdate]:
        """
        Run a search session driven by an async iterable of raw queries.

        The stream ends once ``queries`` is exhausted and the pending
        query has been searched.

        Args:
            queries: Raw query strings, e.g. keystroke snapshots
            debounce_seconds: Override for the debounce interval

        Yields:
            SearchUpdate for every query that survives debouncing
        """
        session = self.open_session(debounce_seconds)

        async def feed() -> None:
            try:
                async for query in queries:
                    session.push(query)
            except asyncio.CancelledError:
                raise
            except Exception:
                await session.aclose(drain=True)
                raise
            await session.aclose(drain=True)

        feeder = asyncio.create_task(feed())
        try:
            async for update in session.updates():
                yield update
            await feeder
        finally:
            if not feeder.done():
                feeder.cancel()
                await asyncio.wait({feeder})
            await session.aclose(drain=False)


_CLOSED = object()


class SearchSession:
    """
    Debounced, latest-wins search over a stream of pushed queries.

    Example:
        session = pipeline.open_session()
        session.push("app")
        session.push("apple")
        await session.aclose()
        async for update in session.updates():
            print(update.query, update.record_ids)
    """

    def __init__(self, pipeline: SearchPipeline, debounce_seconds: float):
        self.pipeline = pipeline
        self.debounce_seconds = debounce_seconds

        self._queue: asyncio.Queue = asyncio.Queue()
        self._debounce_task: Optional[asyncio.Task] = None
        self._search_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._last_query: Optional[str] = None
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the session stopped accepting queries."""
        return self._closed

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def push(self, raw: str) -> None:
        """
        Submit the current raw query, restarting the debounce timer.

        Raises:
            RuntimeError: If the session is closed
        """
        if self._closed:
            raise RuntimeError("Search session is closed")

        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = self._spawn(self._debounce_then_dispatch(raw))

    async def _debounce_then_dispatch(self, raw: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._dispatch(raw)

    def _dispatch(self, raw: str) -> None:
        query = raw.strip()
        if query == self._last_query:
            logger.debug(f"Search query unchanged ({query!r}), skipping")
            return

        self._last_query = query
        self._generation += 1

        if self._search_task is not None and not self._search_task.done():
            logger.debug("Cancelling superseded search")
            self._search_task.cancel()
        self._search_task = None

        if not query:
            self._queue.put_nowait(SearchUpdate(query=query))
            return

        self._search_task = self._spawn(self._run(query, self._generation))

    async def _run(self, query: str, generation: int) -> None:
        results = await self.pipeline.search(query)
        # A newer query may have been dispatched while we were suspended
        if generation == self._generation:
            self._queue.put_nowait(SearchUpdate(query=query, results=results))

    async def updates(self) -> AsyncIterator[SearchUpdate]:
        """
        Iterate over search emissions until the session is closed.

        Iterating again after the session closed ends immediately.

        Yields:
            SearchUpdate per dispatched query that was not superseded
        """
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                # Leave the marker for any later iteration
                self._queue.put_nowait(_CLOSED)
                return
            yield item

    async def aclose(self, drain: bool = True) -> None:
        """
        Stop accepting queries and end :meth:`updates`.

        Idempotent.

        Args:
            drain: Wait for the pending query and in-flight search to emit
                (True) or cancel them (False)
        """
        if self._closed:
            return
        self._closed = True

        if drain:
            if self._debounce_task is not None:
                await asyncio.wait({self._debounce_task})
            if self._search_task is not None:
                await asyncio.wait({self._search_task})
        else:
            self._generation += 1
            pending = [t for t in self._tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.wait(pending)

        self._queue.put_nowait(_CLOSED)

    async def __aenter__(self) -> "SearchSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose(drain=exc_type is None)
