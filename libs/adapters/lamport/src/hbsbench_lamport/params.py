from __future__ import annotations

from dataclasses import dataclass

HASH_SIZE = 32
BITS = HASH_SIZE * 8
SECRET_ELEMENTS = BITS * 2
SIGNATURE_ELEMENTS = BITS


@dataclass(frozen=True)
class LamportSizes:
    public_key_bytes: int
    secret_key_bytes: int
    signature_bytes: int


LAMPORT_SIZES = LamportSizes(
    public_key_bytes=SECRET_ELEMENTS * HASH_SIZE,
    secret_key_bytes=SECRET_ELEMENTS * HASH_SIZE,
    signature_bytes=SIGNATURE_ELEMENTS * HASH_SIZE,
)
