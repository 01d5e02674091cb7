"""
Exception hierarchy for the Bloom filter and its storage backends.

Storage failures are raised to the caller rather than terminating the
process; the embedding application decides whether to halt, retry or log.
"""


class BloomFilterError(Exception):
    """Base exception for all Bloom filter errors."""
    pass


class OutOfBoundsError(BloomFilterError, IndexError):
    """Raised when a bit index falls outside the array capacity."""

    def __init__(self, index: int, capacity: int):
        super().__init__(f"bit index {index} out of range for capacity {capacity}")
        self.index = index
        self.capacity = capacity


class StorageUnavailableError(BloomFilterError):
    """Raised when a snapshot file or remote store cannot be reached."""
    pass


class CorruptSnapshotError(BloomFilterError):
    """Raised when a snapshot cannot be decompressed or decoded."""
    pass


class TransportFailureError(BloomFilterError):
    """Raised when a single remote read or write fails."""
    pass


class FilterClosedError(BloomFilterError):
    """Raised when a closed filter is used."""
    pass
