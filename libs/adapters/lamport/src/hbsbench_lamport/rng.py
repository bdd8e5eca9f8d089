from __future__ import annotations

"""Seedable byte sources for key generation.

`XorShift64` is a plain xorshift generator. It is not a CSPRNG: it exists so
that benchmarks and tests can replay identical keys from a seed. Code that
wants unpredictable keys draws the seed from an `EntropySource` instead.
"""

import os
from typing import Protocol

from .digest import hash_bytes

MASK64 = 0xFFFF_FFFF_FFFF_FFFF
# xorshift never leaves the all-zero state.
ZERO_SEED_REPLACEMENT = 0x9E37_79B9_7F4A_7C15


class XorShift64:
    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        seed = int(seed)
        if not 0 <= seed <= MASK64:
            raise ValueError(f"seed must fit in 64 unsigned bits, got {seed}")
        self._state = seed or ZERO_SEED_REPLACEMENT

    @property
    def state(self) -> int:
        return self._state

    def next_u64(self) -> int:
        x = self._state
        x ^= (x << 13) & MASK64
        x ^= x >> 7
        x ^= (x << 17) & MASK64
        self._state = x
        return x

    def fill_bytes(self, size: int) -> bytes:
        """Return `size` bytes built from successive little-endian outputs."""
        if size < 0:
            raise ValueError("size must be non-negative")
        chunks = bytearray()
        while len(chunks) < size:
            chunks += self.next_u64().to_bytes(8, "little")
        return bytes(chunks[:size])

    def __repr__(self) -> str:
        return f"XorShift64(state=0x{self._state:016x})"


def new_generator(seed: int) -> XorShift64:
    return XorShift64(seed)


def seed_from_label(label: str) -> int:
    """Stable 64-bit seed for a human-readable label."""
    return int.from_bytes(hash_bytes(label.encode("utf-8"))[:8], "little")


class EntropySource(Protocol):
    def next_seed(self) -> int: ...


class SystemEntropy:
    """Seeds from the operating system's CSPRNG."""

    def next_seed(self) -> int:
        return int.from_bytes(os.urandom(8), "little")
