"""Exception hierarchy for the memo embedding core.

All custom exceptions inherit from MemoEmbedError to enable
selective catching at different levels.

Hierarchy:
    MemoEmbedError (base)
    ├── ConfigError - Configuration issues (invalid env values)
    ├── ValidationError - Input validation failures
    │   └── EmptyInputError - Blank note text, rejected before any write
    ├── NotInitializedError - Generator used before a successful initialize()
    ├── GenerationFailedError - Model runtime error or timeout
    │   └── ModelLoadError - Model could not be loaded
    ├── MalformedFingerprintError - Corrupt stored fingerprint bytes
    ├── DimensionMismatchError - Vectors from different models/dimensions
    └── PersistenceError - Record store read/write failures
"""


class MemoEmbedError(Exception):
    """
    Base exception for all memo embedding errors.

    Catching this will catch all custom exceptions from this module.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(MemoEmbedError):
    """
    Configuration error.

    Raised when configuration values are present but unusable.
    Examples: non-positive embedding dimension, min duration above max.
    """

    pass


class ValidationError(MemoEmbedError):
    """
    Input validation error.

    Raised when caller input fails validation rules before any side effect.
    Examples: negative duration, invalid field values.
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class EmptyInputError(ValidationError):
    """
    Blank or whitespace-only note text.

    Raised by the ingest pipeline before anything is written to the store.
    """

    def __init__(self, message: str = "Note text cannot be empty"):
        super().__init__(message, field="text")


class NotInitializedError(MemoEmbedError):
    """
    Embedding generator used before it reached the READY state.

    Call ``initialize()`` (and check its result) before ``generate()``.
    """

    def __init__(self, message: str = "Embedding model is not loaded. Call initialize() first."):
        super().__init__(message)


class GenerationFailedError(MemoEmbedError):
    """
    Embedding generation failed inside the model runtime.

    Also raised when generation exceeds the configured timeout.

    Attributes:
        cause: Original exception if wrapping
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class ModelLoadError(GenerationFailedError):
    """
    Model could not be loaded into memory.

    Raised by embedding backends from ``load()``; the generator contains it
    and reports initialization failure as ``False``.
    """

    pass


class MalformedFingerprintError(MemoEmbedError):
    """
    Stored fingerprint bytes cannot be decoded.

    Attributes:
        length: Byte length of the rejected payload
    """

    def __init__(self, message: str, length: int | None = None):
        self.length = length
        super().__init__(message)


class DimensionMismatchError(MemoEmbedError):
    """
    Two vectors (or a vector and the deployment dimension) disagree in length.

    This is a programmer/configuration error: fingerprints from different
    models must never be compared.

    Attributes:
        expected: Expected number of components
        actual: Number of components found
        record_id: Note whose fingerprint was rejected, if any (the note
            itself is already stored)
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        message: str | None = None,
        record_id: int | None = None,
    ):
        self.expected = expected
        self.actual = actual
        self.record_id = record_id
        super().__init__(
            message or f"Vector dimensions must match: expected {expected}, got {actual}"
        )


class PersistenceError(MemoEmbedError):
    """
    Record store read/write error.

    Attributes:
        operation: Operation that failed (insert, update, list, delete)
        record_id: Record involved, if any
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        record_id: int | None = None,
    ):
        self.operation = operation
        self.record_id = record_id
        super().__init__(message)
