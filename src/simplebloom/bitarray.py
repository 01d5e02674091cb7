"""
Fixed-length packed bit array.

Bits are stored in unsigned 64-bit words held in a contiguous ``array``
buffer, so a capacity of ``n`` bits occupies ``ceil(n / 64) * 8`` bytes
rather than ``n`` storage units or boxed integers.
"""
import array
from typing import Iterable, List

from simplebloom.errors import OutOfBoundsError

WORD_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1
WORD_TYPECODE = "Q"


def words_for(capacity: int) -> int:
    """Number of words needed to hold ``capacity`` bits."""
    return (capacity + WORD_BITS - 1) // WORD_BITS


class BitArray:
    """
    Word-packed sequence of bits addressed ``0..capacity-1``.

    The capacity is fixed at construction. Instances are not safe for
    unsynchronized mutation from several threads; callers must serialize
    access themselves.
    """

    __slots__ = ("_capacity", "_words")

    def __init__(self, capacity: int):
        """
        Allocate a zero-filled bit array.

        Args:
            capacity: Number of addressable bits

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._words = array.array(WORD_TYPECODE, bytes(8 * words_for(capacity)))

    @classmethod
    def from_words(cls, capacity: int, words: Iterable[int]) -> "BitArray":
        """
        Rebuild a bit array from its raw words.

        Args:
            capacity: Number of addressable bits
            words: Packed words as produced by :meth:`words`

        Returns:
            BitArray holding exactly the given bits

        Raises:
            ValueError: If the words do not describe ``capacity`` bits
        """
        bits = cls(capacity)
        words = list(words)
        if len(words) != len(bits._words):
            raise ValueError(
                f"expected {len(bits._words)} words for capacity {capacity}, got {len(words)}"
            )
        for word in words:
            if not isinstance(word, int) or word < 0 or word > WORD_MASK:
                raise ValueError(f"invalid word value: {word!r}")

        # Padding bits past the capacity must stay clear.
        spare = len(words) * WORD_BITS - capacity
        if spare and words[-1] >> (WORD_BITS - spare):
            raise ValueError("bits set beyond capacity")

        bits._words = array.array(WORD_TYPECODE, words)
        return bits

    @property
    def capacity(self) -> int:
        return self._capacity

    def _locate(self, index: int):
        if not 0 <= index < self._capacity:
            raise OutOfBoundsError(index, self._capacity)
        return index // WORD_BITS, 1 << (index % WORD_BITS)

    def set(self, index: int) -> None:
        """Set the bit at ``index``."""
        word, mask = self._locate(index)
        self._words[word] |= mask

    def unset(self, index: int) -> None:
        """Clear the bit at ``index``."""
        word, mask = self._locate(index)
        self._words[word] &= ~mask & WORD_MASK

    def is_set(self, index: int) -> bool:
        """Return True if the bit at ``index`` is set."""
        word, mask = self._locate(index)
        return bool(self._words[word] & mask)

    def count(self) -> int:
        """Number of set bits."""
        return sum(bin(word).count("1") for word in self._words)

    def words(self) -> List[int]:
        """Copy of the packed words, least significant bit first."""
        return self._words.tolist()

    @property
    def nbytes(self) -> int:
        """Size of the word buffer in bytes."""
        return self._words.itemsize * len(self._words)

    def __len__(self) -> int:
        return self._capacity

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitArray):
            return NotImplemented
        return self._capacity == other._capacity and self._words == other._words

    def __repr__(self) -> str:
        return f"BitArray(capacity={self._capacity}, set={self.count()})"
