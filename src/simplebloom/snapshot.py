"""
On-disk snapshot format for file-backed filters.

A snapshot is a gzip stream wrapping a single msgpack map::

    {"version": 1, "capacity": <bits>, "rounds": <k>, "words": [<uint64>, ...]}

The map is self-describing so a bit array round-trips exactly, and a reader
can tell which hash rounds the bits were written with.
"""
import gzip
import os
import stat
import tempfile
import zlib
from dataclasses import dataclass
from typing import Optional

import msgpack
import structlog

from simplebloom.bitarray import BitArray
from simplebloom.errors import CorruptSnapshotError, StorageUnavailableError

SNAPSHOT_VERSION = 1

logger = structlog.get_logger()


@dataclass
class Snapshot:
    """Bits restored from disk together with the rounds that produced them."""
    bits: BitArray
    rounds: int


def dump_words(bits: BitArray, rounds: int) -> bytes:
    """Serialize a bit array to compressed snapshot bytes."""
    payload = {
        "version": SNAPSHOT_VERSION,
        "capacity": bits.capacity,
        "rounds": rounds,
        "words": bits.words(),
    }
    return gzip.compress(msgpack.packb(payload, use_bin_type=True))


def load_words(data: bytes) -> Snapshot:
    """
    Deserialize snapshot bytes.

    Raises:
        CorruptSnapshotError: If the data cannot be decompressed or decoded
    """
    try:
        raw = gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise CorruptSnapshotError(f"cannot decompress snapshot: {e}") from e

    try:
        payload = msgpack.unpackb(raw, raw=False)
    except (msgpack.UnpackException, ValueError, TypeError) as e:
        raise CorruptSnapshotError(f"cannot decode snapshot: {e}") from e

    if not isinstance(payload, dict):
        raise CorruptSnapshotError("snapshot payload is not a map")
    if payload.get("version") != SNAPSHOT_VERSION:
        raise CorruptSnapshotError(f"unsupported snapshot version: {payload.get('version')!r}")

    capacity = payload.get("capacity")
    rounds = payload.get("rounds")
    words = payload.get("words")
    if not isinstance(capacity, int) or not isinstance(words, list):
        raise CorruptSnapshotError("snapshot is missing capacity or words")
    if not isinstance(rounds, int) or rounds < 1:
        raise CorruptSnapshotError(f"invalid snapshot rounds: {rounds!r}")

    try:
        bits = BitArray.from_words(capacity, words)
    except ValueError as e:
        raise CorruptSnapshotError(f"invalid snapshot contents: {e}") from e
    return Snapshot(bits, rounds)


def read_snapshot(path: str) -> Optional[Snapshot]:
    """
    Load a snapshot from ``path``.

    Returns:
        The stored snapshot, or None when no snapshot exists

    Raises:
        StorageUnavailableError: If the file exists but cannot be read
        CorruptSnapshotError: If the file contents are malformed
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError:
        logger.debug("snapshot_missing", path=path)
        return None
    except OSError as e:
        raise StorageUnavailableError(f"cannot open snapshot {path}: {e}") from e

    snapshot = load_words(data)
    logger.debug(
        "snapshot_loaded", path=path, capacity=snapshot.bits.capacity, rounds=snapshot.rounds
    )
    return snapshot


def _target_mode(path: str) -> int:
    # Keep the mode of the snapshot being replaced; new files follow the umask.
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_snapshot(path: str, bits: BitArray, rounds: int) -> None:
    """
    Write ``bits`` to ``path``, replacing any previous snapshot.

    The data goes to a temporary file in the same directory which is then
    renamed over the target, so readers never see a half-written snapshot.

    Raises:
        StorageUnavailableError: If the file cannot be created or written
    """
    data = dump_words(bits, rounds)
    directory = os.path.dirname(os.path.abspath(path))

    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".bloom-", suffix=".tmp", dir=directory)
    except OSError as e:
        raise StorageUnavailableError(f"cannot create snapshot in {directory}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except OSError as e:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise StorageUnavailableError(f"cannot write snapshot {path}: {e}") from e

    logger.debug("snapshot_saved", path=path, capacity=bits.capacity, rounds=rounds, size=len(data))
