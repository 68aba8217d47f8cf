"""Semantic search over stored notes."""

from memoembed.services.search.pipeline import SearchPipeline, SearchSession

__all__ = [
    "SearchPipeline",
    "SearchSession",
]
