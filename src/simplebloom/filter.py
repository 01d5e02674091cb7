"""
Bloom filter over a pluggable bit sink.

A Bloom filter is a space-efficient probabilistic data structure used to test
whether an element is a member of a set. False positive matches are possible,
but false negatives are not.

The same hashing protocol drives every backend: ``put`` sets ``rounds``
derived bits and ``has`` requires all of them to be set.
"""
from typing import Optional, Union

import redis
import structlog

from simplebloom.backends import BitSink, FileBitSink, MemoryBitSink, RemoteBitSink
from simplebloom.errors import FilterClosedError, StorageUnavailableError
from simplebloom.hashing import HashFamily

Data = Union[bytes, bytearray, memoryview, str]


def validate_parameters(capacity: int, rounds: int) -> None:
    """
    Check filter parameters before any storage is touched.

    Raises:
        ValueError: If capacity or rounds is not positive
    """
    if capacity < 1:
        raise ValueError("capacity must be positive")
    if rounds < 1:
        raise ValueError("rounds must be at least 1")


def _to_bytes(data: Data) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class BloomFilter:
    """
    Probabilistic set membership over ``capacity`` bits and ``rounds`` hashes.

    The filter stores no inserted items, only bits. It performs no locking;
    memory and file backends must not be mutated from several threads at once.
    """

    def __init__(self, sink: BitSink, rounds: int):
        """
        Bind a filter to a bit sink.

        Args:
            sink: Storage backend holding the bits
            rounds: Number of hash rounds per operation (k)

        Raises:
            ValueError: If rounds or the sink capacity is not positive
        """
        validate_parameters(sink.capacity, rounds)

        self._sink: Optional[BitSink] = sink
        self._capacity = sink.capacity
        self._hashes = HashFamily(rounds)
        self.backend = sink.name
        self.logger = structlog.get_logger()

    @property
    def size(self) -> int:
        """Total number of bit slots."""
        return self._capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def rounds(self) -> int:
        return self._hashes.rounds

    @property
    def closed(self) -> bool:
        return self._sink is None

    @property
    def sink(self) -> BitSink:
        if self._sink is None:
            raise FilterClosedError(f"{self.backend} bloom filter is closed")
        return self._sink

    def put(self, data: Data) -> None:
        """
        Add an item to the filter.

        Args:
            data: Bytes, or a string which is UTF-8 encoded first
        """
        sink = self.sink
        for index in self._hashes.indexes(_to_bytes(data), self._capacity):
            sink.set(index)

    def has(self, data: Data) -> bool:
        """
        Check if an item might be in the set.

        Args:
            data: Bytes, or a string which is UTF-8 encoded first

        Returns:
            True if the item might be in the set (possible false positive),
            False if the item is definitely not in the set
        """
        sink = self.sink
        for index in self._hashes.indexes(_to_bytes(data), self._capacity):
            if not sink.is_set(index):
                return False
        return True

    def put_string(self, data: str) -> None:
        self.put(data)

    def has_string(self, data: str) -> bool:
        return self.has(data)

    def __contains__(self, data: Data) -> bool:
        """Support 'in' operator."""
        return self.has(data)

    def close(self) -> None:
        """
        Release the bit sink.

        File-backed filters write their snapshot first. Closing an already
        closed filter does nothing.
        """
        if self._sink is None:
            return
        sink = self._sink
        sink.close()
        self._sink = None
        self.logger.debug("filter_closed", backend=self.backend, capacity=self._capacity)

    def __enter__(self) -> "BloomFilter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_stats(self) -> dict:
        """
        Get statistics about the filter.

        Bit counts are only reported for backends that hold their bits
        locally; counting a remote list would take one round-trip per bit.
        """
        stats = {
            "backend": self.backend,
            "capacity": self._capacity,
            "rounds": self.rounds,
            "closed": self.closed,
        }
        count = getattr(self._sink, "count", None)
        if count is not None:
            bits_set = count()
            fill_ratio = bits_set / self._capacity
            stats.update({
                "bits_set": bits_set,
                "fill_ratio": fill_ratio,
                "estimated_false_positive_rate": fill_ratio ** self.rounds,
            })
        return stats

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return (f"BloomFilter(backend={self.backend}, "
                f"capacity={self._capacity}, "
                f"rounds={self.rounds}, {state})")


def memory_filter(capacity: int, rounds: int) -> BloomFilter:
    """Create a filter whose bits live only in memory."""
    validate_parameters(capacity, rounds)
    return BloomFilter(MemoryBitSink(capacity), rounds)


def file_filter(path: str, capacity: int, rounds: int) -> BloomFilter:
    """
    Create a filter persisted to a snapshot file.

    An existing snapshot at ``path`` is restored; otherwise the filter starts
    empty. The snapshot is written when the filter is closed.
    """
    validate_parameters(capacity, rounds)
    return BloomFilter(FileBitSink(path, capacity, rounds), rounds)


def redis_filter(
    client: Union["redis.Redis", str],
    capacity: int,
    rounds: int,
) -> BloomFilter:
    """
    Create a filter whose bits live in a Redis list.

    Args:
        client: Connected Redis client, or a ``redis://`` URL to connect to
        capacity: Number of addressable bits
        rounds: Number of hash rounds

    The caller owns the client; closing the filter does not close it.
    """
    validate_parameters(capacity, rounds)
    if isinstance(client, str):
        try:
            client = redis.Redis.from_url(client)
        except ValueError as e:
            raise StorageUnavailableError(f"invalid redis url: {e}") from e
    return BloomFilter(RemoteBitSink(client, capacity, rounds), rounds)
