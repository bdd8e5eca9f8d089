from __future__ import annotations

from cryptography.hazmat.primitives import hashes

hash_algorithm = hashes.SHA256
hash_algorithm_name = "sha256"


def hash_bytes(data: bytes) -> bytes:
    """SHA-256 of a bytes-like `data` (always 32 bytes)."""
    h = hashes.Hash(hash_algorithm())
    h.update(data)
    return h.finalize()
