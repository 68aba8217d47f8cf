"""Base interface for embedding model runtimes.

This module defines the EmbeddingBackend abstract base class, the
blocking boundary between the core and a concrete model runtime, and
the GeneratorState lifecycle enum.
"""

from abc import ABC, abstractmethod
from enum import Enum


class GeneratorState(str, Enum):
    """
    Embedding generator lifecycle states.

    State transitions:
        UNLOADED → LOADING → READY
        LOADING → UNLOADED (on load failure)
        READY → UNLOADED (on teardown)
    """

    UNLOADED = "UNLOADED"  # No model in memory
    LOADING = "LOADING"  # Single in-flight load
    READY = "READY"  # Model loaded, generate() allowed

    @classmethod
    def allowed_transitions(cls) -> dict["GeneratorState", list["GeneratorState"]]:
        """Return allowed state transitions."""
        return {
            cls.UNLOADED: [cls.LOADING],
            cls.LOADING: [cls.READY, cls.UNLOADED],
            cls.READY: [cls.UNLOADED],
        }

    def can_transition_to(self, new_state: "GeneratorState") -> bool:
        """Check if transition to new_state is allowed."""
        return new_state in self.allowed_transitions().get(self, [])


class EmbeddingBackend(ABC):
    """
    Abstract base class for embedding model runtimes.

    All methods are blocking and are called from worker threads by
    EmbeddingGenerator, never from the event loop. Implementations need
    not be thread-safe: the generator serializes calls.
    """

    @abstractmethod
    def load(self) -> None:
        """
        Load the model into memory.

        Loading can take several seconds and require significant memory.

        Raises:
            ModelLoadError: If model loading fails
        """
        pass

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """
        Compute the embedding vector for ``text``.

        Args:
            text: Input text, exactly as submitted by the caller

        Returns:
            Embedding vector as list of floats

        Raises:
            Exception: Any runtime error; the generator wraps it
        """
        pass

    @abstractmethod
    def unload(self) -> None:
        """
        Release the model from memory.

        Should be safe to call when nothing is loaded.
        """
        pass
