from __future__ import annotations

"""Lamport one-time signatures over SHA-256.

Each of the 256 digest bits owns a pair of secret elements (2i, 2i + 1); the
signature reveals the member of each pair chosen by that bit, and the public
key holds the hash of every secret element. A key may sign exactly once.
"""

from typing import List, Optional, Sequence

from .digest import hash_bytes, hash_algorithm_name
from .errors import InvalidPublicKeyLengthError, InvalidSignatureLengthError
from .keys import LamportKeypair, LamportPublicKey, LamportSecretKey, LamportSignature
from .params import HASH_SIZE, LAMPORT_SIZES, SECRET_ELEMENTS, SIGNATURE_ELEMENTS, LamportSizes
from .rng import EntropySource, SystemEntropy, XorShift64


def selected_secret_index(digest: bytes, bit_index: int) -> int:
    """Secret element index revealed for digest bit `bit_index` (MSB first)."""
    bit = (digest[bit_index // 8] >> (7 - (bit_index % 8))) & 1
    return bit_index * 2 + bit


def sign_digest(digest: bytes, secret_elements: Sequence[bytes]) -> List[bytes]:
    return [
        bytes(secret_elements[selected_secret_index(digest, i)])
        for i in range(SIGNATURE_ELEMENTS)
    ]


class LamportOtsScheme:
    hash_algorithm_name = hash_algorithm_name
    hash_digest_size = HASH_SIZE

    def algorithm_name(self) -> str:
        return "Lamport OTS"

    def backend_name(self) -> str:
        return "python-cryptography-sha256"

    def param_set_name(self) -> str:
        return "Lamport-OTS-256"

    def max_signatures_per_key(self) -> int:
        return 1

    def sizes(self) -> LamportSizes:
        return LAMPORT_SIZES

    def public_key_bytes(self) -> int:
        return LAMPORT_SIZES.public_key_bytes

    def secret_key_bytes(self) -> int:
        return LAMPORT_SIZES.secret_key_bytes

    def signature_bytes(self) -> int:
        return LAMPORT_SIZES.signature_bytes

    def keypair(self, entropy: Optional[EntropySource] = None) -> LamportKeypair:
        """Generate a keypair seeded from `entropy` (the OS CSPRNG by default)."""
        source = entropy if entropy is not None else SystemEntropy()
        return self.keypair_with_rng(XorShift64(source.next_seed()))

    def keypair_with_seed(self, seed: int) -> LamportKeypair:
        return self.keypair_with_rng(XorShift64(seed))

    def keypair_with_rng(self, rng: XorShift64) -> LamportKeypair:
        secret_elements = []
        public_elements = []
        for _ in range(SECRET_ELEMENTS):
            secret = rng.fill_bytes(HASH_SIZE)
            public_elements.append(hash_bytes(secret))
            secret_elements.append(secret)
        return LamportKeypair(
            LamportPublicKey(tuple(public_elements)),
            LamportSecretKey(secret_elements),
        )

    def sign(self, message: bytes, secret_key: LamportSecretKey) -> LamportSignature:
        """Sign `message`, consuming `secret_key`.

        Raises KeyAlreadyUsedError if the key has signed before and
        InvalidSecretKeyLengthError if it does not hold SECRET_ELEMENTS entries.
        """
        with secret_key.signing() as elements:
            digest = hash_bytes(message)
            signature = LamportSignature(tuple(sign_digest(digest, elements)))
        return signature

    def verify(
        self,
        message: bytes,
        signature: LamportSignature,
        public_key: LamportPublicKey,
    ) -> bool:
        """Return whether `signature` is valid for `message` under `public_key`.

        False means the signature was checked and rejected. Malformed inputs
        raise InvalidSignatureLengthError / InvalidPublicKeyLengthError instead,
        since no verification could take place.
        """
        if len(signature) != SIGNATURE_ELEMENTS:
            raise InvalidSignatureLengthError(SIGNATURE_ELEMENTS, len(signature))
        if len(public_key) != SECRET_ELEMENTS:
            raise InvalidPublicKeyLengthError(SECRET_ELEMENTS, len(public_key))

        digest = hash_bytes(message)
        for i in range(SIGNATURE_ELEMENTS):
            idx = selected_secret_index(digest, i)
            if hash_bytes(signature.elements[i]) != public_key.elements[idx]:
                return False
        return True


LAMPORT_OTS_SCHEME = LamportOtsScheme()


def generate_keypair(rng: XorShift64) -> LamportKeypair:
    return LAMPORT_OTS_SCHEME.keypair_with_rng(rng)


def sign(message: bytes, secret_key: LamportSecretKey) -> LamportSignature:
    return LAMPORT_OTS_SCHEME.sign(message, secret_key)


def verify(message: bytes, signature: LamportSignature, public_key: LamportPublicKey) -> bool:
    return LAMPORT_OTS_SCHEME.verify(message, signature, public_key)
