from __future__ import annotations

"""Key and signature containers for the Lamport one-time scheme.

Public keys and signatures are immutable tuples of 32-byte digests. The
secret key is the only mutable object: it moves from FRESH to CONSUMED on the
single signature it is allowed to produce, and its elements are zeroed in
place at that point.

Serialized form of every container is the flat concatenation of its elements
in index order (element i at byte offset i * 32).
"""

import enum
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Sequence, Tuple

from .errors import InvalidSecretKeyLengthError, KeyAlreadyUsedError
from .params import HASH_SIZE, SECRET_ELEMENTS

log = logging.getLogger(__name__)


def _split_elements(data: bytes, what: str) -> List[bytes]:
    data = bytes(data)
    if len(data) % HASH_SIZE:
        raise ValueError(f"{what} byte length {len(data)} is not a multiple of {HASH_SIZE}")
    return [data[i:i + HASH_SIZE] for i in range(0, len(data), HASH_SIZE)]


def _check_elements(elements: Sequence[bytes]) -> None:
    for idx, element in enumerate(elements):
        if len(element) != HASH_SIZE:
            raise ValueError(f"element {idx} is {len(element)} bytes, expected {HASH_SIZE}")


@dataclass(frozen=True)
class LamportPublicKey:
    elements: Tuple[bytes, ...]

    def __post_init__(self) -> None:
        elements = tuple(bytes(e) for e in self.elements)
        _check_elements(elements)
        object.__setattr__(self, "elements", elements)

    def __len__(self) -> int:
        return len(self.elements)

    @property
    def byte_len(self) -> int:
        return len(self.elements) * HASH_SIZE

    def to_bytes(self) -> bytes:
        return b"".join(self.elements)

    @classmethod
    def from_bytes(cls, data: bytes) -> "LamportPublicKey":
        return cls(tuple(_split_elements(data, "public key")))


@dataclass(frozen=True)
class LamportSignature:
    elements: Tuple[bytes, ...]

    def __post_init__(self) -> None:
        elements = tuple(bytes(e) for e in self.elements)
        _check_elements(elements)
        object.__setattr__(self, "elements", elements)

    def __len__(self) -> int:
        return len(self.elements)

    @property
    def byte_len(self) -> int:
        return len(self.elements) * HASH_SIZE

    def to_bytes(self) -> bytes:
        return b"".join(self.elements)

    @classmethod
    def from_bytes(cls, data: bytes) -> "LamportSignature":
        return cls(tuple(_split_elements(data, "signature")))


class KeyState(enum.Enum):
    FRESH = "fresh"
    CONSUMED = "consumed"


class LamportSecretKey:
    """One-time secret key.

    `signing()` is the only way to reach the secret elements. It holds the
    key's lock for the whole signing step, so a key shared between threads
    still yields exactly one signature.
    """

    __slots__ = ("_elements", "_state", "_lock")

    def __init__(self, elements: Sequence[bytes]) -> None:
        _check_elements(elements)
        self._elements: List[bytearray] = [bytearray(e) for e in elements]
        self._state = KeyState.FRESH
        self._lock = threading.Lock()

    @property
    def state(self) -> KeyState:
        return self._state

    @property
    def used(self) -> bool:
        return self._state is KeyState.CONSUMED

    def __len__(self) -> int:
        return len(self._elements)

    @property
    def byte_len(self) -> int:
        return len(self._elements) * HASH_SIZE

    def to_bytes(self) -> bytes:
        """Serialize the elements (all zero once the key is consumed)."""
        return b"".join(bytes(e) for e in self._elements)

    @classmethod
    def from_bytes(cls, data: bytes) -> "LamportSecretKey":
        return cls(_split_elements(data, "secret key"))

    @contextmanager
    def signing(self) -> Iterator[Sequence[bytearray]]:
        """Yield the secret elements for a single signature.

        Raises KeyAlreadyUsedError for a consumed key and
        InvalidSecretKeyLengthError for a malformed one; neither changes the
        key's state. On a clean exit from the block the key is consumed.
        """
        with self._lock:
            if self._state is KeyState.CONSUMED:
                raise KeyAlreadyUsedError()
            if len(self._elements) != SECRET_ELEMENTS:
                raise InvalidSecretKeyLengthError(SECRET_ELEMENTS, len(self._elements))
            yield self._elements
            self._consume()

    def _consume(self) -> None:
        self._state = KeyState.CONSUMED
        for element in self._elements:
            element[:] = bytes(len(element))
        log.debug("lamport secret key consumed and zeroized")

    def __repr__(self) -> str:
        return f"LamportSecretKey(elements={len(self._elements)}, state={self._state.value})"


class LamportKeypair(NamedTuple):
    public_key: LamportPublicKey
    secret_key: LamportSecretKey
