from __future__ import annotations

import pytest

from hbsbench import registry
from hbsbench_lamport import (
    LAMPORT_OTS_SCHEME,
    InvalidPublicKeyLengthError,
    InvalidSignatureLengthError,
    KeyAlreadyUsedError,
    seed_from_label,
)
from hbsbench_lamport.adapter import SEED_ENV, LamportOts


@pytest.fixture
def adapter(monkeypatch: pytest.MonkeyPatch) -> LamportOts:
    monkeypatch.delenv(SEED_ENV, raising=False)
    return LamportOts()


def test_adapter_is_registered() -> None:
    assert registry.get("lamport-ots") is LamportOts


def test_adapter_describes_scheme(adapter: LamportOts) -> None:
    assert adapter.name == "lamport-ots"
    assert adapter.algorithm == "Lamport-OTS-256"
    assert adapter.mech == adapter.algorithm
    assert adapter.backend == "python-cryptography-sha256"
    assert adapter.hash_algorithm_name == "sha256"
    assert adapter.hash_digest_size == 32
    assert adapter.max_signatures_per_key == 1
    assert adapter.deterministic is False


def test_adapter_roundtrip_on_bytes(adapter: LamportOts) -> None:
    pk, sk = adapter.keygen()
    assert (len(pk), len(sk)) == (16384, 16384)

    sig = adapter.sign(sk, b"hello")

    assert len(sig) == 8192
    assert adapter.verify(pk, b"hello", sig) is True
    assert adapter.verify(pk, b"hellO", sig) is False


def test_adapter_refuses_to_reuse_secret_key_bytes(adapter: LamportOts) -> None:
    _, sk = adapter.keygen()
    adapter.sign(sk, b"first")

    with pytest.raises(KeyAlreadyUsedError):
        adapter.sign(sk, b"second")


def test_adapter_successive_keys_differ(adapter: LamportOts) -> None:
    pk_a, _ = adapter.keygen()
    pk_b, _ = adapter.keygen()
    assert pk_a != pk_b


def test_integer_seed_env_makes_keygen_deterministic(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(SEED_ENV, "42")
    adapter = LamportOts()
    pk, sk = adapter.keygen()

    expected_pk, expected_sk = LAMPORT_OTS_SCHEME.keypair_with_seed(42)
    assert adapter.deterministic is True
    assert pk == expected_pk.to_bytes()
    assert sk == expected_sk.to_bytes()


def test_label_seed_env_is_hashed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(SEED_ENV, "bench-run")
    pk, _ = LamportOts().keygen()
    assert pk == LAMPORT_OTS_SCHEME.keypair_with_seed(seed_from_label("bench-run")).public_key.to_bytes()


def test_adapter_reports_malformed_inputs(adapter: LamportOts) -> None:
    pk, sk = adapter.keygen()
    sig = adapter.sign(sk, b"m")

    with pytest.raises(InvalidSignatureLengthError):
        adapter.verify(pk, b"m", sig[:-32])
    with pytest.raises(InvalidPublicKeyLengthError):
        adapter.verify(pk[:-32], b"m", sig)
    with pytest.raises(ValueError):
        adapter.verify(pk, b"m", sig[:-1])


@pytest.mark.parametrize("raw, seed", [("8", 8), ("08", 8), ("010", 10), ("0x10", 16), ("0X10", 16)])
def test_numeric_seed_spellings(monkeypatch: pytest.MonkeyPatch, raw: str, seed: int) -> None:
    monkeypatch.setenv(SEED_ENV, raw)
    pk, _ = LamportOts().keygen()
    assert pk == LAMPORT_OTS_SCHEME.keypair_with_seed(seed).public_key.to_bytes()


@pytest.mark.parametrize("raw", ["-1", str(2**64)])
def test_out_of_range_seed_env_is_rejected(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv(SEED_ENV, raw)
    with pytest.raises(ValueError, match=r"HBSBENCH_LAMPORT_SEED must be an integer in \[0, 2\*\*64\)"):
        LamportOts()


def test_forget_clears_reuse_fingerprints(adapter: LamportOts) -> None:
    _, sk = adapter.keygen()
    adapter.sign(sk, b"first")

    assert adapter.forget() == 1
    assert adapter.forget() == 0
    # Bytes carry no state, so once forgotten the adapter signs again.
    assert len(adapter.sign(sk, b"again")) == 8192
