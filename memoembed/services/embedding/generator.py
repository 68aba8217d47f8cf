"""Embedding generator with an explicit load/unload lifecycle.

Wraps an EmbeddingBackend (a stateful, expensive-to-load model) behind a
lock-guarded state machine:

- initialize() is idempotent and single-flight: concurrent callers share
  one in-flight load and all observe its outcome. A failed load returns
  to UNLOADED, so the next call retries cleanly.
- generate() runs inference on a worker thread, bounded by a timeout.
  The state lock is never held across inference; a separate inference
  lock serializes calls against the single model instance. A worker
  thread abandoned by a timeout or cancellation keeps the model busy:
  the next generate() or teardown() waits for it before touching the
  backend again.
- teardown() waits for any in-flight load or inference, then unloads.
"""

import asyncio
import logging
from typing import Optional

from memoembed.lib.config import EmbeddingConfig, get_embedding_config
from memoembed.lib.exceptions import (
    DimensionMismatchError,
    GenerationFailedError,
    NotInitializedError,
)
from memoembed.services.embedding.base import EmbeddingBackend, GeneratorState

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """
    Lifecycle owner for one embedding model instance.

    Example:
        generator = EmbeddingGenerator(SentenceTransformerBackend())
        if await generator.initialize():
            vector = await generator.generate("buy milk")
        await generator.teardown()
    """

    def __init__(
        self,
        backend: EmbeddingBackend,
        config: Optional[EmbeddingConfig] = None,
        dimension: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the generator (model loaded on initialize()).

        Args:
            backend: Model runtime to drive
            config: Embedding configuration (None = from environment)
            dimension: Override for the expected vector length
            timeout_seconds: Override for the per-call generation timeout
        """
        config = config or get_embedding_config()
        self.backend = backend
        self.dimension = dimension or config.dimension
        self.timeout_seconds = timeout_seconds or config.timeout_seconds

        self._state = GeneratorState.UNLOADED
        self._lock = asyncio.Lock()
        self._inference_lock = asyncio.Lock()
        self._loading: Optional[asyncio.Task[bool]] = None
        # Worker still running backend.embed after its caller gave up
        self._orphaned: Optional[asyncio.Future] = None

    @property
    def state(self) -> GeneratorState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        """Check if generate() may be called."""
        return self._state == GeneratorState.READY

    def _transition(self, new_state: GeneratorState) -> None:
        """Move to ``new_state``; callers hold ``self._lock``."""
        if not self._state.can_transition_to(new_state):
            raise RuntimeError(
                f"Invalid generator transition {self._state.value} -> {new_state.value}"
            )
        logger.debug(f"Embedding generator: {self._state.value} -> {new_state.value}")
        self._state = new_state

    async def initialize(self) -> bool:
        """
        Ensure the model is loaded.

        Returns:
            True if the generator is READY, False if loading failed
        """
        async with self._lock:
            if self._state == GeneratorState.READY:
                return True

            if self._loading is None:
                self._transition(GeneratorState.LOADING)
                self._loading = asyncio.create_task(self._load())
            else:
                logger.debug("Embedding model load already in flight, waiting for it")

            loading = self._loading

        # Shielded so a cancelled caller does not abort the shared load
        return await asyncio.shield(loading)

    async def _load(self) -> bool:
        """Run the backend load on a worker thread and record the outcome."""
        logger.info("Initializing embedding model...")
        try:
            await asyncio.to_thread(self.backend.load)
            success = True
        except Exception as e:
            logger.error(f"Failed to initialize embedding model: {e}")
            success = False

        async with self._lock:
            self._transition(GeneratorState.READY if success else GeneratorState.UNLOADED)
            self._loading = None

        if success:
            logger.info("Embedding model initialized successfully")
        return success

    async def generate(self, text: str) -> list[float]:
        """
        Compute the fingerprint vector for ``text``.

        The text is passed to the model unmodified.

        Args:
            text: Input text

        Returns:
            Vector of exactly ``self.dimension`` floats

        Raises:
            NotInitializedError: If the generator is not READY
            GenerationFailedError: On model error or timeout
            DimensionMismatchError: If the model returns a vector of the wrong length
        """
        if not self.is_ready:
            raise NotInitializedError()

        async with self._inference_lock:
            await self._wait_for_orphaned()

            # teardown() may have run while we waited for the lock
            if not self.is_ready:
                raise NotInitializedError()

            inference = asyncio.ensure_future(asyncio.to_thread(self.backend.embed, text))
            try:
                vector = await asyncio.wait_for(
                    asyncio.shield(inference),
                    timeout=self.timeout_seconds,
                )
            except asyncio.CancelledError:
                if not inference.done():
                    self._orphaned = inference
                raise
            except asyncio.TimeoutError as e:
                self._orphaned = inference
                logger.error(f"Embedding generation timed out after {self.timeout_seconds}s")
                raise GenerationFailedError(
                    f"Embedding generation timed out after {self.timeout_seconds}s", cause=e
                ) from e
            except Exception as e:
                logger.error(f"Failed to generate embedding: {e}")
                raise GenerationFailedError(f"Failed to generate embedding: {e}", cause=e) from e

        vector = [float(component) for component in vector]
        if len(vector) != self.dimension:
            raise DimensionMismatchError(
                self.dimension,
                len(vector),
                f"Model returned {len(vector)} components, expected {self.dimension}",
            )
        return vector

    async def _wait_for_orphaned(self) -> None:
        """Block until an abandoned inference releases the model; callers hold ``_inference_lock``."""
        orphaned = self._orphaned
        if orphaned is None:
            return

        if not orphaned.done():
            logger.debug("Waiting for abandoned embedding call to finish")
            await asyncio.wait({orphaned})
        self._orphaned = None

        if not orphaned.cancelled() and orphaned.exception() is not None:
            logger.debug(f"Abandoned embedding call failed: {orphaned.exception()}")

    async def teardown(self) -> None:
        """
        Release the model and return to UNLOADED.

        Idempotent and safe to call if never initialized. Waits for an
        in-flight load and for the running inference before unloading.
        """
        async with self._lock:
            loading = self._loading

        if loading is not None:
            await asyncio.shield(loading)

        async with self._lock:
            if self._state != GeneratorState.READY:
                return

            async with self._inference_lock:
                await self._wait_for_orphaned()
                logger.info("Tearing down embedding model")
                try:
                    await asyncio.to_thread(self.backend.unload)
                except Exception as e:
                    logger.error(f"Error during embedding model unload: {e}")
                finally:
                    self._transition(GeneratorState.UNLOADED)
