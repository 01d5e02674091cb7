"""
Tests for the packed bit array.
"""
import pytest
from simplebloom.bitarray import BitArray, WORD_BITS, words_for
from simplebloom.errors import OutOfBoundsError


class TestBitArray:
    """Test cases for BitArray class."""

    def test_initialization(self):
        """Test that a new array is zero-filled."""
        bits = BitArray(100)

        assert bits.capacity == 100
        assert len(bits) == 100
        assert bits.count() == 0
        assert not any(bits.is_set(i) for i in range(100))

    def test_invalid_capacity(self):
        """Test that non-positive capacities are rejected."""
        with pytest.raises(ValueError):
            BitArray(0)

        with pytest.raises(ValueError):
            BitArray(-5)

    def test_packed_storage(self):
        """Test that bits are packed into 64-bit words."""
        assert words_for(1) == 1
        assert words_for(64) == 1
        assert words_for(65) == 2
        assert len(BitArray(64 << 10).words()) == (64 << 10) // WORD_BITS

    def test_nbytes(self):
        """Test that the buffer holds eight bytes per word and nothing more."""
        assert BitArray(64 << 10).nbytes == (64 << 10) // 8
        assert BitArray(65).nbytes == 16

        bits = BitArray(1000)
        for i in range(1000):
            bits.set(i)
        assert bits.nbytes == words_for(1000) * 8

    def test_set_and_unset(self):
        """Test setting and clearing individual bits."""
        bits = BitArray(130)

        bits.set(0)
        bits.set(64)
        bits.set(129)
        assert bits.is_set(0)
        assert bits.is_set(64)
        assert bits.is_set(129)
        assert not bits.is_set(1)
        assert bits.count() == 3

        bits.unset(64)
        assert not bits.is_set(64)
        assert bits.count() == 2

    def test_set_is_idempotent(self):
        """Test that setting a bit twice leaves one bit set."""
        bits = BitArray(10)
        bits.set(3)
        bits.set(3)

        assert bits.count() == 1

    def test_word_boundaries_are_isolated(self):
        """Test that bits at word edges do not affect neighbours."""
        bits = BitArray(192)
        bits.set(63)

        assert bits.words() == [1 << 63, 0, 0]
        assert not bits.is_set(62)
        assert not bits.is_set(64)

        bits.unset(63)
        assert bits.words() == [0, 0, 0]

    @pytest.mark.parametrize("index", [-1, 100, 1000])
    def test_out_of_bounds(self, index):
        """Test that indexes outside the capacity raise."""
        bits = BitArray(100)

        with pytest.raises(OutOfBoundsError):
            bits.set(index)
        with pytest.raises(OutOfBoundsError):
            bits.unset(index)
        with pytest.raises(IndexError):
            bits.is_set(index)

        assert bits.count() == 0

    def test_from_words(self):
        """Test rebuilding an array from its words."""
        bits = BitArray(100)
        for i in (0, 17, 63, 64, 99):
            bits.set(i)

        restored = BitArray.from_words(100, bits.words())

        assert restored == bits
        assert restored.is_set(99)

    def test_from_words_invalid(self):
        """Test that inconsistent words are rejected."""
        with pytest.raises(ValueError):
            BitArray.from_words(100, [0])

        with pytest.raises(ValueError):
            BitArray.from_words(64, [-1])

        # Bit 100 lies in the padding of a 100-bit array.
        with pytest.raises(ValueError):
            BitArray.from_words(100, [0, 1 << 40])

    def test_words_returns_copy(self):
        """Test that mutating the returned words leaves the array intact."""
        bits = BitArray(10)
        words = bits.words()
        words[0] = 0xFF

        assert bits.count() == 0

    def test_repr(self):
        """Test string representation."""
        assert "BitArray" in repr(BitArray(8))
