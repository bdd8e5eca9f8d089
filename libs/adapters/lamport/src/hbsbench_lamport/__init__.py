"""Lamport one-time signature engine and its registry adapter.

Importing the package registers the `lamport-ots` adapter.
"""

from .errors import (
    InvalidLengthError,
    InvalidPublicKeyLengthError,
    InvalidSecretKeyLengthError,
    InvalidSignatureLengthError,
    KeyAlreadyUsedError,
    LamportError,
)
from .keys import KeyState, LamportKeypair, LamportPublicKey, LamportSecretKey, LamportSignature
from .params import BITS, HASH_SIZE, SECRET_ELEMENTS, SIGNATURE_ELEMENTS, LamportSizes
from .rng import EntropySource, SystemEntropy, XorShift64, new_generator, seed_from_label
from .scheme import LAMPORT_OTS_SCHEME, LamportOtsScheme, generate_keypair, sign, verify

# Trigger registration side-effects
from . import adapter as _adapter  # noqa: F401

__all__ = [
    "BITS",
    "HASH_SIZE",
    "SECRET_ELEMENTS",
    "SIGNATURE_ELEMENTS",
    "LamportSizes",
    "LamportError",
    "KeyAlreadyUsedError",
    "InvalidLengthError",
    "InvalidSecretKeyLengthError",
    "InvalidPublicKeyLengthError",
    "InvalidSignatureLengthError",
    "KeyState",
    "LamportKeypair",
    "LamportPublicKey",
    "LamportSecretKey",
    "LamportSignature",
    "EntropySource",
    "SystemEntropy",
    "XorShift64",
    "new_generator",
    "seed_from_label",
    "LAMPORT_OTS_SCHEME",
    "LamportOtsScheme",
    "generate_keypair",
    "sign",
    "verify",
]
