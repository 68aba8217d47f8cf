"""sentence-transformers embedding backend.

Implements the EmbeddingBackend interface with a local
sentence-transformers model. The package is imported lazily in load()
so the library imports cleanly without it; a missing package surfaces
as a ModelLoadError, which the generator reports as a failed
initialization.
"""

import gc
import logging
from typing import Optional

from memoembed.lib.config import EmbeddingConfig, get_embedding_config
from memoembed.lib.exceptions import ModelLoadError
from memoembed.services.embedding.base import EmbeddingBackend

logger = logging.getLogger(__name__)


class SentenceTransformerBackend(EmbeddingBackend):
    """
    Local embedding model backed by sentence-transformers.

    The default model (all-mpnet-base-v2) produces 768-dimensional
    embeddings and runs on CPU.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        """
        Initialize the backend (model loaded on load()).

        Args:
            config: Embedding configuration (None = from environment)
        """
        self.config = config or get_embedding_config()
        self._model = None

    def load(self) -> None:
        """
        Load the sentence-transformers model.

        Raises:
            ModelLoadError: If the package is missing or loading fails
        """
        try:
            from sentence_transformers import SentenceTransformer

            logger.info(f"Loading embedding model: {self.config.model_name}")
            logger.info(f"Device: {self.config.device}")

            self._model = SentenceTransformer(
                self.config.model_name,
                device=self.config.device,
                cache_folder=self.config.cache_dir,
            )
            logger.info("Embedding model loaded successfully")

        except ImportError as e:
            logger.error("sentence-transformers not installed")
            raise ModelLoadError(
                "sentence-transformers is required for local embeddings. "
                "Install with: pip install sentence-transformers",
                cause=e,
            ) from e

        except Exception as e:
            self._model = None
            logger.error(f"Failed to load embedding model: {e}")
            raise ModelLoadError(f"Failed to load embedding model: {e}", cause=e) from e

    def embed(self, text: str) -> list[float]:
        """Compute the embedding vector for ``text``."""
        if self._model is None:
            raise RuntimeError("Embedding model is not loaded")

        # encode() returns numpy array, convert to list of Python floats
        embedding = self._model.encode(
            text,
            convert_to_numpy=True,
            normalize_embeddings=self.config.normalize,
        )
        return embedding.tolist()

    def unload(self) -> None:
        """Release model from memory."""
        if self._model is None:
            return

        logger.info("Unloading embedding model")
        self._model = None
        gc.collect()

        if self.config.device == "cuda":
            try:
                import torch

                if torch.cuda.is_available():
                    torch.cuda.empty_cache()
            except ImportError:
                pass

    @property
    def is_loaded(self) -> bool:
        """Check if model is loaded."""
        return self._model is not None
