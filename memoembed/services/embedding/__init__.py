"""Embedding model lifecycle and backends."""

from memoembed.services.embedding.base import EmbeddingBackend, GeneratorState
from memoembed.services.embedding.generator import EmbeddingGenerator
from memoembed.services.embedding.transformer import SentenceTransformerBackend

__all__ = [
    "EmbeddingBackend",
    "GeneratorState",
    "EmbeddingGenerator",
    "SentenceTransformerBackend",
]
