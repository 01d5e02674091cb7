"""
Simple Bloom filter - probabilistic set membership with pluggable storage.

This package provides one Bloom filter algorithm over three storage backends:
- In-memory packed bit array
- File-persisted bit array with compressed snapshots
- Redis list shared between processes

False positives are possible, false negatives are not.
"""

__version__ = "0.1.0"

from simplebloom.bitarray import BitArray
from simplebloom.config import FilterConfig, open_filter
from simplebloom.errors import (
    BloomFilterError,
    CorruptSnapshotError,
    FilterClosedError,
    OutOfBoundsError,
    StorageUnavailableError,
    TransportFailureError,
)
from simplebloom.filter import BloomFilter, file_filter, memory_filter, redis_filter
from simplebloom.hashing import HashFamily, hash_data

__all__ = [
    "BitArray",
    "BloomFilter",
    "BloomFilterError",
    "CorruptSnapshotError",
    "FilterClosedError",
    "FilterConfig",
    "HashFamily",
    "OutOfBoundsError",
    "StorageUnavailableError",
    "TransportFailureError",
    "file_filter",
    "hash_data",
    "memory_filter",
    "open_filter",
    "redis_filter",
]
