"""Fingerprint codec for compact embedding storage.

Fingerprints are stored as raw little-endian IEEE-754 float32 values,
concatenated with no header, magic number or version: a D-dimensional
vector occupies exactly 4*D bytes. Compatibility across model changes
is the caller's responsibility, so decoding with an expected dimension
is the recommended way to read stored blobs.
"""

import struct
from typing import Optional, Sequence

from memoembed.lib.exceptions import DimensionMismatchError, MalformedFingerprintError


class FingerprintCodec:
    """Converts float vectors to and from their stored byte form."""

    BYTE_ORDER = "<"
    COMPONENT_FORMAT = "f"
    COMPONENT_SIZE = 4

    @classmethod
    def encode(cls, vector: Sequence[float], dimension: Optional[int] = None) -> bytes:
        """Encode a vector as little-endian float32 bytes.

        Args:
            vector: Components to encode.
            dimension: Expected component count, checked when given.

        Returns:
            Exactly ``4 * len(vector)`` bytes.

        Raises:
            DimensionMismatchError: If ``dimension`` is given and differs.
        """
        if dimension is not None and len(vector) != dimension:
            raise DimensionMismatchError(dimension, len(vector))
        return struct.pack(cls._format(len(vector)), *vector)

    @classmethod
    def decode(cls, data: bytes, dimension: Optional[int] = None) -> list[float]:
        """Decode stored bytes back into a vector.

        Args:
            data: Bytes produced by :meth:`encode`.
            dimension: Expected component count, checked when given.

        Returns:
            The decoded components as Python floats.

        Raises:
            MalformedFingerprintError: If the length is not a multiple of 4.
            DimensionMismatchError: If ``dimension`` is given and differs.
        """
        if len(data) % cls.COMPONENT_SIZE != 0:
            raise MalformedFingerprintError(
                f"Fingerprint length {len(data)} is not a multiple of {cls.COMPONENT_SIZE}",
                length=len(data),
            )

        count = len(data) // cls.COMPONENT_SIZE
        if dimension is not None and count != dimension:
            raise DimensionMismatchError(dimension, count)

        return list(struct.unpack(cls._format(count), data))

    @classmethod
    def byte_length(cls, dimension: int) -> int:
        """Number of bytes a fingerprint of ``dimension`` components occupies."""
        return cls.COMPONENT_SIZE * dimension

    @classmethod
    def _format(cls, count: int) -> str:
        return f"{cls.BYTE_ORDER}{count}{cls.COMPONENT_FORMAT}"
