from __future__ import annotations

import logging
import os
import threading
from typing import Optional, Set, Tuple

from hbsbench import registry

from .digest import hash_bytes
from .errors import KeyAlreadyUsedError
from .keys import LamportPublicKey, LamportSecretKey, LamportSignature
from .rng import MASK64, SystemEntropy, XorShift64, seed_from_label
from .scheme import LAMPORT_OTS_SCHEME

log = logging.getLogger(__name__)

SEED_ENV = "HBSBENCH_LAMPORT_SEED"


def _seed_from_env() -> Optional[int]:
    """Integer seed (decimal, or hex with a 0x prefix), else a hashed label."""
    raw = os.getenv(SEED_ENV)
    if raw is None or raw == "":
        return None
    try:
        if raw.lower().startswith("0x"):
            seed = int(raw, 16)
        else:
            seed = int(raw)
    except ValueError:
        return seed_from_label(raw)
    if not 0 <= seed <= MASK64:
        raise ValueError(f"{SEED_ENV} must be an integer in [0, 2**64)")
    return seed


@registry.register("lamport-ots")
class LamportOts:
    """Byte-level adapter around the Lamport one-time scheme.

    Keys cross this boundary as raw bytes, which cannot carry the consumed
    state, so the adapter remembers a fingerprint of every secret key it has
    signed with and refuses to sign with it again. That set grows by one
    32-byte entry per signature for the life of the instance; `forget()`
    drops it between benchmark phases.
    """
    name = "lamport-ots"
    max_signatures_per_key = 1

    def __init__(self) -> None:
        self.scheme = LAMPORT_OTS_SCHEME
        self.algorithm = self.scheme.param_set_name()
        self.mech = self.algorithm
        self.backend = self.scheme.backend_name()
        self.hash_algorithm_name = self.scheme.hash_algorithm_name
        self.hash_digest_size = self.scheme.hash_digest_size
        seed = _seed_from_env()
        self.deterministic = seed is not None
        self._rng = XorShift64(seed if seed is not None else SystemEntropy().next_seed())
        self._consumed: Set[bytes] = set()
        self._lock = threading.Lock()

    def keygen(self) -> Tuple[bytes, bytes]:
        with self._lock:
            pk, sk = self.scheme.keypair_with_rng(self._rng)
        return pk.to_bytes(), sk.to_bytes()

    def sign(self, secret_key: bytes, message: bytes) -> bytes:
        fingerprint = hash_bytes(secret_key)
        with self._lock:
            if fingerprint in self._consumed:
                log.debug("rejecting reuse of lamport secret key %s", fingerprint[:8].hex())
                raise KeyAlreadyUsedError()
            sig = self.scheme.sign(message, LamportSecretKey.from_bytes(secret_key))
            self._consumed.add(fingerprint)
        return sig.to_bytes()

    def verify(self, public_key: bytes, message: bytes, signature: bytes) -> bool:
        return self.scheme.verify(
            message,
            LamportSignature.from_bytes(signature),
            LamportPublicKey.from_bytes(public_key),
        )

    def forget(self) -> int:
        """Clear the reuse fingerprints; return how many were dropped."""
        with self._lock:
            dropped = len(self._consumed)
            self._consumed.clear()
        log.debug("dropped %d lamport secret key fingerprints", dropped)
        return dropped
