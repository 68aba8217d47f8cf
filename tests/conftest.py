"""Shared pytest fixtures and fakes for all test types."""

import threading
import time
from typing import Callable, Optional

import pytest

from memoembed.lib.config import EmbeddingConfig, IngestConfig, SearchConfig, reset_all_configs
from memoembed.services.embedding.base import EmbeddingBackend
from memoembed.services.embedding.generator import EmbeddingGenerator
from memoembed.services.ingest.pipeline import IngestPipeline
from memoembed.services.search.pipeline import SearchPipeline
from memoembed.services.store.memory import InMemoryRecordStore


class FakeBackend(EmbeddingBackend):
    """Deterministic embedding backend for tests.

    Vectors come from ``vectors`` (exact text lookup) or ``embed_fn``;
    unknown texts map to a unit vector on the first axis. ``delays`` adds a
    per-text sleep on top of ``embed_delay``. Concurrent embed calls are
    tracked in ``max_active``; an unload that lands while an embed runs
    sets ``unload_during_embed``.
    """

    def __init__(
        self,
        dimension: int = 3,
        vectors: Optional[dict[str, list[float]]] = None,
        embed_fn: Optional[Callable[[str], list[float]]] = None,
        fail_load: bool = False,
        fail_embed: bool = False,
        load_delay: float = 0.0,
        embed_delay: float = 0.0,
        delays: Optional[dict[str, float]] = None,
    ):
        self.dimension = dimension
        self.vectors = vectors or {}
        self.embed_fn = embed_fn
        self.fail_load = fail_load
        self.fail_embed = fail_embed
        self.load_delay = load_delay
        self.embed_delay = embed_delay
        self.delays = delays or {}

        self.load_calls = 0
        self.unload_calls = 0
        self.embedded: list[str] = []
        self.loaded = False
        self.active = 0
        self.max_active = 0
        self.unload_during_embed = False
        self._calls_lock = threading.Lock()

    def load(self) -> None:
        with self._calls_lock:
            self.load_calls += 1
        if self.load_delay:
            time.sleep(self.load_delay)
        if self.fail_load:
            raise RuntimeError("model file missing")
        self.loaded = True

    def embed(self, text: str) -> list[float]:
        with self._calls_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            delay = self.embed_delay + self.delays.get(text, 0.0)
            if delay:
                time.sleep(delay)
            if self.fail_embed:
                raise RuntimeError("inference crashed")
            with self._calls_lock:
                self.embedded.append(text)
        finally:
            with self._calls_lock:
                self.active -= 1
        if text in self.vectors:
            return list(self.vectors[text])
        if self.embed_fn is not None:
            return self.embed_fn(text)
        return [1.0] + [0.0] * (self.dimension - 1)

    def unload(self) -> None:
        with self._calls_lock:
            self.unload_calls += 1
            if self.active:
                self.unload_during_embed = True
        self.loaded = False


@pytest.fixture(autouse=True)
def clean_configs():
    """Reset cached configuration before and after each test."""
    reset_all_configs()
    yield
    reset_all_configs()


@pytest.fixture
def embedding_config() -> EmbeddingConfig:
    """Three-dimensional embedding config with a short timeout."""
    return EmbeddingConfig(dimension=3, timeout_seconds=1.0)


@pytest.fixture
def search_config() -> SearchConfig:
    """Default threshold with a short debounce for fast tests."""
    return SearchConfig(similarity_threshold=0.62, debounce_ms=50)


@pytest.fixture
def ingest_config() -> IngestConfig:
    """Batch ingest without inter-item delay."""
    return IngestConfig(demo_item_delay_seconds=0.0)


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    """Factory for FakeBackend instances (three dimensions unless overridden)."""

    def factory(**kwargs) -> FakeBackend:
        kwargs.setdefault("dimension", 3)
        return FakeBackend(**kwargs)

    return factory


@pytest.fixture
def make_generator(make_backend, embedding_config) -> Callable[..., EmbeddingGenerator]:
    """Factory for generators over a fresh FakeBackend (reachable as ``.backend``)."""

    def factory(timeout_seconds: Optional[float] = None, **backend_kwargs) -> EmbeddingGenerator:
        return EmbeddingGenerator(
            make_backend(**backend_kwargs),
            config=embedding_config,
            timeout_seconds=timeout_seconds,
        )

    return factory


@pytest.fixture
def backend(make_backend) -> FakeBackend:
    return make_backend()


@pytest.fixture
def generator(backend, embedding_config) -> EmbeddingGenerator:
    return EmbeddingGenerator(backend, config=embedding_config)


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def ingest(store, generator) -> IngestPipeline:
    return IngestPipeline(store, generator)


@pytest.fixture
def search(store, generator, search_config) -> SearchPipeline:
    return SearchPipeline(store, generator, config=search_config)
