"""
Hash derivation for Bloom filter rounds.

Each value is derived in two stages: the input is first normalized with
SHA-256, then the digest is fed to a seeded 64-bit MurmurHash3. The seed is
the round number, so the ``k`` values for one input are decorrelated even for
similar or adversarial inputs.

Bit positions are reduced with ``value % capacity``. When ``capacity`` does
not divide 2**64 this introduces a small modulo bias toward low indexes; it is
kept so that filters stay compatible with existing snapshots and remote lists.
"""
import hashlib
from typing import Iterator

import mmh3

SEED_MASK = 0xFFFFFFFF


def _murmur64(digest: bytes, seed: int) -> int:
    # First half of the x64 128-bit MurmurHash3, as an unsigned integer.
    return mmh3.hash64(digest, seed & SEED_MASK, signed=False)[0]


def hash_data(data: bytes, seed: int) -> int:
    """
    Derive a 64-bit hash value for ``data``.

    Args:
        data: Input bytes
        seed: Round number used as the MurmurHash3 seed

    Returns:
        Unsigned 64-bit integer
    """
    return _murmur64(hashlib.sha256(data).digest(), seed)


class HashFamily:
    """Family of ``rounds`` seeded hash functions."""

    def __init__(self, rounds: int):
        if rounds < 1:
            raise ValueError("rounds must be at least 1")
        self.rounds = rounds

    def derive(self, data: bytes, round: int) -> int:
        """Hash value of ``data`` for one round."""
        return hash_data(data, round)

    def indexes(self, data: bytes, capacity: int) -> Iterator[int]:
        """
        Yield the bit position for each round.

        The SHA-256 digest is computed once and shared by every round; the
        values are identical to ``derive(data, r) % capacity``.
        """
        digest = hashlib.sha256(data).digest()
        for round in range(self.rounds):
            yield _murmur64(digest, round) % capacity

    def __repr__(self) -> str:
        return f"HashFamily(rounds={self.rounds})"
