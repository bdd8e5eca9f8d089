from __future__ import annotations


class LamportError(Exception):
    """Base class for Lamport OTS failures."""


class KeyAlreadyUsedError(LamportError):
    """Signing was attempted with a secret key that already produced a signature.

    Not retryable: generate a fresh keypair.
    """

    def __init__(self) -> None:
        super().__init__("Lamport secret key already used")


class InvalidLengthError(LamportError):
    what = "element"

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"invalid {self.what} length: expected {expected}, got {actual}")


class InvalidSecretKeyLengthError(InvalidLengthError):
    what = "secret key"


class InvalidPublicKeyLengthError(InvalidLengthError):
    what = "public key"


class InvalidSignatureLengthError(InvalidLengthError):
    what = "signature"
