"""Unit tests for the fingerprint codec."""

import struct

import pytest

from memoembed.lib.exceptions import DimensionMismatchError, MalformedFingerprintError
from memoembed.lib.fingerprint import FingerprintCodec


class TestFingerprintEncode:
    """Tests for FingerprintCodec.encode."""

    def test_layout_is_little_endian_float32(self):
        """1.0 encodes to the IEEE-754 bytes 00 00 80 3F."""
        assert FingerprintCodec.encode([1.0]) == b"\x00\x00\x80\x3f"

    def test_length_is_four_bytes_per_component(self):
        """Test that each component takes four bytes."""
        data = FingerprintCodec.encode([0.0] * 768)
        assert len(data) == 3072
        assert FingerprintCodec.byte_length(768) == 3072

    def test_no_header(self):
        """Encoded bytes are exactly the packed components."""
        vector = [0.5, -2.0, 3.25]
        assert FingerprintCodec.encode(vector) == struct.pack("<3f", *vector)

    def test_empty_vector(self):
        """Test that an empty vector encodes to no bytes."""
        assert FingerprintCodec.encode([]) == b""

    def test_dimension_check(self):
        """Test that encode rejects a vector of the wrong length."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            FingerprintCodec.encode([1.0, 2.0], dimension=3)

        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 2


class TestFingerprintDecode:
    """Tests for FingerprintCodec.decode."""

    def test_round_trip_exact_for_float32_values(self):
        """Values representable in float32 survive bit-exactly."""
        vector = [0.1, -0.25, 1e-3, 0.0, -7.5]
        decoded = FingerprintCodec.decode(FingerprintCodec.encode(vector))

        assert decoded == [struct.unpack("<f", struct.pack("<f", v))[0] for v in vector]
        assert decoded[1] == -0.25
        assert decoded[4] == -7.5

    def test_length_not_multiple_of_four(self):
        """Test that a truncated fingerprint is malformed."""
        with pytest.raises(MalformedFingerprintError) as exc_info:
            FingerprintCodec.decode(b"\x00\x00\x80")

        assert exc_info.value.length == 3

    def test_dimension_check(self):
        """Test that decode rejects a fingerprint of the wrong length."""
        data = FingerprintCodec.encode([1.0, 2.0, 3.0])

        with pytest.raises(DimensionMismatchError) as exc_info:
            FingerprintCodec.decode(data, dimension=768)

        assert exc_info.value.expected == 768
        assert exc_info.value.actual == 3

    def test_decode_with_matching_dimension(self):
        """Test that decode returns the components when the length matches."""
        data = FingerprintCodec.encode([1.0, 0.0, 0.0])
        assert FingerprintCodec.decode(data, dimension=3) == [1.0, 0.0, 0.0]
