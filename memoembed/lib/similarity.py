"""Vector comparison and ranking for semantic search.

Pure functions with no I/O. Ranking deliberately orders matches by
recency of the underlying note ("most recent relevant note first");
the similarity score only decides inclusion.
"""

from datetime import datetime
from typing import Hashable, Iterable, NamedTuple, Sequence

from memoembed.lib.exceptions import DimensionMismatchError


class Candidate(NamedTuple):
    """A stored fingerprint eligible for ranking."""

    record_id: Hashable
    vector: Sequence[float]
    created_at: datetime


class ScoredRecord(NamedTuple):
    """A candidate that passed the threshold, with its score."""

    record_id: Hashable
    similarity: float


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        vec1: First embedding vector
        vec2: Second embedding vector

    Returns:
        Cosine similarity, mathematically in [-1.0, 1.0]. Floating-point
        overshoot is not clamped. Returns 0.0 if either vector has zero
        magnitude.

    Raises:
        DimensionMismatchError: If vectors have different dimensions
    """
    if len(vec1) != len(vec2):
        raise DimensionMismatchError(len(vec1), len(vec2))

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = sum(a * a for a in vec1) ** 0.5
    magnitude2 = sum(b * b for b in vec2) ** 0.5

    # Avoid division by zero
    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return dot_product / (magnitude1 * magnitude2)


def rank_by_similarity(
    query: Sequence[float],
    candidates: Iterable[Candidate],
    threshold: float,
) -> list[ScoredRecord]:
    """
    Filter candidates by similarity to ``query``, newest first.

    Args:
        query: Query fingerprint
        candidates: Stored fingerprints with their capture times
        threshold: Minimum similarity (inclusive) for a candidate to be kept

    Returns:
        Candidates with ``similarity >= threshold`` ordered by descending
        ``created_at``. Candidates captured at the same instant keep their
        input order.

    Raises:
        DimensionMismatchError: If any candidate differs in length from query
    """
    matches: list[tuple[datetime, ScoredRecord]] = []

    for candidate in candidates:
        score = cosine_similarity(query, candidate.vector)
        if score >= threshold:
            matches.append((candidate.created_at, ScoredRecord(candidate.record_id, score)))

    matches.sort(key=lambda m: m[0], reverse=True)
    return [scored for _, scored in matches]
