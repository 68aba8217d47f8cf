"""Shared utilities, configuration and pure algorithms."""

from memoembed.lib.config import (
    EmbeddingConfig,
    IngestConfig,
    SearchConfig,
    Settings,
    StoreConfig,
)
from memoembed.lib.exceptions import (
    ConfigError,
    DimensionMismatchError,
    EmptyInputError,
    GenerationFailedError,
    MalformedFingerprintError,
    MemoEmbedError,
    ModelLoadError,
    NotInitializedError,
    PersistenceError,
    ValidationError,
)
from memoembed.lib.fingerprint import FingerprintCodec
from memoembed.lib.similarity import (
    Candidate,
    ScoredRecord,
    cosine_similarity,
    rank_by_similarity,
)

__all__ = [
    "Settings",
    "EmbeddingConfig",
    "SearchConfig",
    "IngestConfig",
    "StoreConfig",
    "MemoEmbedError",
    "ConfigError",
    "ValidationError",
    "EmptyInputError",
    "NotInitializedError",
    "GenerationFailedError",
    "ModelLoadError",
    "MalformedFingerprintError",
    "DimensionMismatchError",
    "PersistenceError",
    "FingerprintCodec",
    "Candidate",
    "ScoredRecord",
    "cosine_similarity",
    "rank_by_similarity",
]
