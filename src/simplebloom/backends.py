"""
Storage backends for the Bloom filter.

Every backend exposes the same bit-sink capability (``set``, ``unset``,
``is_set``, ``close``) so the filter's hashing logic never depends on where
the bits physically live.
"""
from typing import Iterable, Optional, Protocol, runtime_checkable

import redis
import structlog

from simplebloom.bitarray import BitArray
from simplebloom.errors import (
    CorruptSnapshotError,
    FilterClosedError,
    StorageUnavailableError,
    TransportFailureError,
)
from simplebloom.snapshot import read_snapshot, write_snapshot

SET_MARKER = "1"
UNSET_MARKER = "0"

# Number of markers sent per RPUSH when creating a remote list.
PUSH_CHUNK_SIZE = 10000


@runtime_checkable
class BitSink(Protocol):
    """Minimal capability a storage backend provides to the filter."""

    name: str
    capacity: int

    def set(self, index: int) -> None:
        ...

    def unset(self, index: int) -> None:
        ...

    def is_set(self, index: int) -> bool:
        ...

    def close(self) -> None:
        ...


class MemoryBitSink:
    """Bit sink backed by an owned in-memory :class:`BitArray`."""

    name = "memory"

    def __init__(self, capacity: int, bits: Optional[BitArray] = None):
        """
        Initialize the sink.

        Args:
            capacity: Number of addressable bits
            bits: Existing array to adopt (must have the same capacity)
        """
        if bits is not None and bits.capacity != capacity:
            raise ValueError(f"bit array capacity {bits.capacity} != {capacity}")
        self.capacity = capacity
        self.bits: Optional[BitArray] = bits if bits is not None else BitArray(capacity)

    def _array(self) -> BitArray:
        if self.bits is None:
            raise FilterClosedError("memory bit sink is closed")
        return self.bits

    def set(self, index: int) -> None:
        self._array().set(index)

    def unset(self, index: int) -> None:
        self._array().unset(index)

    def is_set(self, index: int) -> bool:
        return self._array().is_set(index)

    def count(self) -> int:
        """Number of set bits."""
        return self._array().count()

    @property
    def closed(self) -> bool:
        return self.bits is None

    def close(self) -> None:
        self.bits = None


class FileBitSink:
    """
    Bit sink persisted to a compressed snapshot file.

    Bits live in a wrapped :class:`MemoryBitSink` while the sink is open; the
    snapshot is read once at construction and written on :meth:`close`. There
    is no incremental persistence, so inserts made after the last save are
    lost if the process dies before closing.
    """

    name = "file"

    def __init__(self, path: str, capacity: int, rounds: int):
        """
        Open a snapshot-backed sink.

        Args:
            path: Snapshot location; a missing file starts an empty array
            capacity: Number of addressable bits
            rounds: Hash rounds the bits are written with

        Raises:
            StorageUnavailableError: If the snapshot exists but cannot be read
            CorruptSnapshotError: If the snapshot is malformed or was written
                for a different capacity or number of rounds
        """
        self.path = path
        self.capacity = capacity
        self.rounds = rounds
        self.logger = structlog.get_logger()

        snapshot = read_snapshot(path)
        bits = None
        if snapshot is not None:
            bits = snapshot.bits
            if bits.capacity != capacity:
                raise CorruptSnapshotError(
                    f"snapshot {path} holds {bits.capacity} bits, expected {capacity}"
                )
            if snapshot.rounds != rounds:
                raise CorruptSnapshotError(
                    f"snapshot {path} was written with {snapshot.rounds} rounds, expected {rounds}"
                )
        self.logger.info(
            "file_sink_opened", path=path, capacity=capacity, restored=bits is not None
        )

        self.memory = MemoryBitSink(capacity, bits)

    def set(self, index: int) -> None:
        self.memory.set(index)

    def unset(self, index: int) -> None:
        self.memory.unset(index)

    def is_set(self, index: int) -> bool:
        return self.memory.is_set(index)

    def count(self) -> int:
        return self.memory.count()

    def save(self) -> None:
        """Write the current bits to the snapshot without closing."""
        if self.memory.bits is None:
            raise FilterClosedError("file bit sink is closed")
        write_snapshot(self.path, self.memory.bits, self.rounds)
        self.logger.info("file_sink_saved", path=self.path, capacity=self.capacity)

    @property
    def closed(self) -> bool:
        return self.memory.closed

    def close(self) -> None:
        """Flush the snapshot, then release the in-memory bits."""
        if self.memory.closed:
            return
        self.save()
        self.memory.close()


def redis_key(capacity: int, rounds: int) -> str:
    """Remote list name for a given parameterization."""
    return f"_bloomfilter:n{capacity}:k{rounds}"


def _chunks(total: int, size: int) -> Iterable[int]:
    while total > 0:
        step = min(total, size)
        yield step
        total -= step


class RemoteBitSink:
    """
    Bit sink backed by a Redis list shared between processes.

    Each bit is one list element holding ``"1"`` when set. The list key is
    derived from ``(capacity, rounds)``; if a list already exists under that
    key with a different length it is discarded and recreated empty, dropping
    whatever it held.

    Every ``set`` and ``is_set`` is one round-trip. The sink does not own the
    client: :meth:`close` only drops the reference and the remote list stays.
    """

    name = "redis"

    def __init__(self, client: "redis.Redis", capacity: int, rounds: int):
        """
        Attach to (or create) the remote list.

        Args:
            client: Connected Redis client
            capacity: Number of addressable bits
            rounds: Hash rounds, used only to derive the key

        Raises:
            StorageUnavailableError: If the store cannot be reached
        """
        self.client: Optional["redis.Redis"] = client
        self.capacity = capacity
        self.rounds = rounds
        self.key = redis_key(capacity, rounds)
        self.logger = structlog.get_logger()

        try:
            length = client.llen(self.key)
            if length != capacity:
                self._reset(length)
        except redis.RedisError as e:
            raise StorageUnavailableError(f"cannot prepare remote list {self.key}: {e}") from e

    def _reset(self, old_length: int) -> None:
        pipe = self.client.pipeline()
        pipe.delete(self.key)
        for size in _chunks(self.capacity, PUSH_CHUNK_SIZE):
            pipe.rpush(self.key, *([UNSET_MARKER] * size))
        pipe.execute()
        self.logger.warning(
            "remote_list_reset",
            key=self.key,
            old_length=old_length,
            capacity=self.capacity,
        )

    def _conn(self) -> "redis.Redis":
        if self.client is None:
            raise FilterClosedError("remote bit sink is closed")
        return self.client

    def _write(self, index: int, marker: str) -> None:
        client = self._conn()
        try:
            client.lset(self.key, index, marker)
        except redis.RedisError as e:
            raise TransportFailureError(f"LSET {self.key} {index} failed: {e}") from e

    def set(self, index: int) -> None:
        self._write(index, SET_MARKER)

    def unset(self, index: int) -> None:
        self._write(index, UNSET_MARKER)

    def is_set(self, index: int) -> bool:
        client = self._conn()
        try:
            value = client.lindex(self.key, index)
        except redis.RedisError as e:
            raise TransportFailureError(f"LINDEX {self.key} {index} failed: {e}") from e
        if isinstance(value, bytes):
            value = value.decode("utf-8", "replace")
        return value == SET_MARKER

    @property
    def closed(self) -> bool:
        return self.client is None

    def close(self) -> None:
        self.client = None
