from __future__ import annotations

import pytest

from hbsbench_lamport import (
    LAMPORT_OTS_SCHEME,
    LamportPublicKey,
    LamportSecretKey,
    LamportSignature,
)


def test_public_key_serialization_is_flat_concatenation() -> None:
    public_key, _ = LAMPORT_OTS_SCHEME.keypair_with_seed(21)
    raw = public_key.to_bytes()

    assert len(raw) == 16384
    for i in (0, 1, 255, 511):
        assert raw[i * 32:(i + 1) * 32] == public_key.elements[i]
    assert LamportPublicKey.from_bytes(raw) == public_key


def test_restored_secret_key_signs_like_the_original() -> None:
    message = b"restored"
    public_key, secret_key = LAMPORT_OTS_SCHEME.keypair_with_seed(22)
    _, twin = LAMPORT_OTS_SCHEME.keypair_with_seed(22)
    restored = LamportSecretKey.from_bytes(twin.to_bytes())

    sig_original = LAMPORT_OTS_SCHEME.sign(message, secret_key)
    sig_restored = LAMPORT_OTS_SCHEME.sign(message, restored)

    assert sig_original == sig_restored
    assert LAMPORT_OTS_SCHEME.verify(message, LamportSignature.from_bytes(sig_restored.to_bytes()), public_key)


@pytest.mark.parametrize("cls", [LamportPublicKey, LamportSecretKey, LamportSignature])
def test_from_bytes_rejects_partial_elements(cls) -> None:
    with pytest.raises(ValueError, match="not a multiple of 32"):
        cls.from_bytes(b"\x00" * 33)


def test_elements_must_be_32_bytes() -> None:
    with pytest.raises(ValueError, match="element 1"):
        LamportPublicKey((bytes(32), bytes(31)))
    with pytest.raises(ValueError):
        LamportSecretKey([bytes(33)])


def test_public_key_and_signature_are_immutable() -> None:
    public_key, secret_key = LAMPORT_OTS_SCHEME.keypair_with_seed(23)
    signature = LAMPORT_OTS_SCHEME.sign(b"x", secret_key)

    with pytest.raises(AttributeError):
        public_key.elements = ()  # type: ignore[misc]
    with pytest.raises(AttributeError):
        signature.elements = ()  # type: ignore[misc]
    assert isinstance(public_key.elements, tuple)
    assert isinstance(signature.elements, tuple)


def test_secret_key_repr_does_not_leak_material() -> None:
    _, secret_key = LAMPORT_OTS_SCHEME.keypair_with_seed(24)
    text = repr(secret_key)
    assert text == "LamportSecretKey(elements=512, state=fresh)"


def test_keypair_unpacks_and_exposes_fields() -> None:
    keypair = LAMPORT_OTS_SCHEME.keypair_with_seed(25)
    public_key, secret_key = keypair
    assert keypair.public_key is public_key
    assert keypair.secret_key is secret_key
