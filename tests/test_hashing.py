"""
Tests for round-seeded hash derivation.
"""
import hashlib

import mmh3
import pytest
from simplebloom.hashing import HashFamily, hash_data


class TestHashData:
    """Test cases for hash_data."""

    def test_deterministic(self):
        """Test that identical inputs always give identical outputs."""
        assert hash_data(b"hello", 0) == hash_data(b"hello", 0)
        assert hash_data(b"hello", 3) == hash_data(b"hello", 3)

    def test_two_stage_derivation(self):
        """Test that the value is MurmurHash3 over the SHA-256 digest."""
        digest = hashlib.sha256(b"hello").digest()
        expected = mmh3.hash64(digest, 7, signed=False)[0]

        assert hash_data(b"hello", 7) == expected

    @pytest.mark.parametrize("data, seed, expected", [
        (b"hello", 0, 3182187045311309425),
        (b"hello", 1, 7642146199145354463),
        (b"hello", 4, 716320494916499738),
        (b"", 0, 7837062461548167726),
        (b"r0", 2, 2590210670394374772),
    ])
    def test_known_values(self, data, seed, expected):
        """Test against fixed values so persisted bits stay readable."""
        assert hash_data(data, seed) == expected

    def test_wide_seed_is_masked(self):
        """Test that seeds beyond 32 bits wrap to their low 32 bits."""
        assert hash_data(b"hello", 2 ** 32 + 3) == 8968170707846753290
        assert hash_data(b"hello", 2 ** 32 + 3) == hash_data(b"hello", 3)

    def test_unsigned_64_bit(self):
        """Test that values fit in an unsigned 64-bit integer."""
        for i in range(100):
            value = hash_data(f"item_{i}".encode(), i % 5)
            assert 0 <= value < 2 ** 64

    def test_rounds_are_distinct(self):
        """Test that different seeds give different values."""
        values = {hash_data(b"same input", seed) for seed in range(16)}

        assert len(values) == 16

    def test_similar_inputs_differ(self):
        """Test that near-identical inputs are spread apart."""
        assert hash_data(b"r1", 0) != hash_data(b"r2", 0)
        assert hash_data(b"", 0) != hash_data(b"\x00", 0)


class TestHashFamily:
    """Test cases for HashFamily class."""

    def test_invalid_rounds(self):
        """Test that rounds below one are rejected."""
        with pytest.raises(ValueError):
            HashFamily(0)

    def test_derive_matches_hash_data(self):
        """Test that derive is hash_data seeded by the round."""
        family = HashFamily(3)

        assert family.derive(b"abc", 2) == hash_data(b"abc", 2)

    def test_indexes(self):
        """Test that indexes reduce each round modulo capacity."""
        family = HashFamily(5)
        capacity = 1000

        indexes = list(family.indexes(b"abc", capacity))

        assert len(indexes) == 5
        assert indexes == [hash_data(b"abc", r) % capacity for r in range(5)]
        assert all(0 <= i < capacity for i in indexes)

    def test_capacity_of_one(self):
        """Test that every index is zero for a single-bit filter."""
        assert list(HashFamily(4).indexes(b"x", 1)) == [0, 0, 0, 0]

    def test_known_indexes(self):
        """Test fixed bit positions for a reference item."""
        assert list(HashFamily(2).indexes(b"hello", 1000)) == [425, 463]
