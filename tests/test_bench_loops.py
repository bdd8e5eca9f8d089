from __future__ import annotations

import pytest

from hbsbench_cli.config import BenchConfig, OpConfig
from hbsbench_cli.runners import lamport as lamport_runner
from hbsbench_lamport import LAMPORT_OTS_SCHEME, LamportOtsScheme, XorShift64, seed_from_label


class FixedEntropy:
    def __init__(self, seed: int) -> None:
        self.seed = seed

    def next_seed(self) -> int:
        return self.seed


class RejectingScheme(LamportOtsScheme):
    def verify(self, message, signature, public_key) -> bool:
        return False


def test_message_bytes_pattern() -> None:
    msg = lamport_runner.message_bytes(600)
    assert len(msg) == 600
    assert msg[250] == 250
    assert msg[251] == 0
    assert msg[599] == 599 % 251
    assert lamport_runner.message_bytes(0) == b""


def test_deterministic_rng_uses_prefixed_label() -> None:
    rng = lamport_runner.bench_rng("keygen", True)
    expected = XorShift64(seed_from_label("lamport-main-keygen"))
    assert rng.next_u64() == expected.next_u64()

    op_rng = lamport_runner.bench_rng("sign-keygen", True, prefix="lamport-bench")
    assert op_rng.state == seed_from_label("lamport-bench-sign-keygen")


def test_random_rng_mixes_entropy_with_label() -> None:
    rng = lamport_runner.bench_rng("verify-keygen", False, entropy=FixedEntropy(0x1234))
    assert rng.state == 0x1234 ^ seed_from_label("verify-keygen")


def test_loop_benchmark_reports_every_operation() -> None:
    result = lamport_runner.run_loop_benchmark(BenchConfig(message_size=32, iterations=2))
    assert [rec.op for rec in result.records] == ["keygen", "sign", "verify"]
    for rec in result.records:
        assert rec.algo == "Lamport OTS"
        assert rec.runs == 2
        assert rec.total_ns >= 0
    assert result.get("sign").runs == 2


def test_zero_iterations_still_runs_setup() -> None:
    result = lamport_runner.run_loop_benchmark(BenchConfig(message_size=0, iterations=0))
    for rec in result.records:
        assert rec.runs == 0
        assert rec.avg_ns == 0


def test_random_mode_with_injected_entropy() -> None:
    config = BenchConfig(message_size=16, iterations=1, deterministic=False)
    result = lamport_runner.run_loop_benchmark(config, entropy=FixedEntropy(7))
    assert len(result.records) == 3


def test_verify_failure_aborts_the_loop() -> None:
    with pytest.raises(RuntimeError, match="verify failed"):
        lamport_runner.bench_verify(RejectingScheme(), b"m", 1, True)


def test_report_header_lines() -> None:
    header = lamport_runner.report_header(LAMPORT_OTS_SCHEME, BenchConfig(deterministic=False))
    assert header == [
        "algorithm: Lamport OTS",
        "backend: python-cryptography-sha256",
        "param_set: Lamport-OTS-256",
        "public_key_bytes: 16384",
        "secret_key_bytes: 16384",
        "signature_bytes: 8192",
        "message_size: 1024",
        "iterations: 100",
        "deterministic_rng: false",
    ]


@pytest.mark.parametrize("operation", ["keygen", "sign", "verify"])
def test_single_operation_returns_total_ns(operation: str) -> None:
    total = lamport_runner.run_single_operation(OpConfig(operation=operation, iterations=2))
    assert isinstance(total, int)
    assert total >= 0


def test_single_operation_rejects_unknown_name() -> None:
    with pytest.raises(ValueError, match="unsupported OPERATION=hash"):
        lamport_runner.run_single_operation(OpConfig(operation="hash"))


def test_peak_memory_is_reported_per_message_size() -> None:
    peaks = lamport_runner.measure_peak_memory(LAMPORT_OTS_SCHEME, (32, 1024))
    assert set(peaks) == {32, 1024}
    for values in peaks.values():
        assert set(values) == {"sign", "verify"}
        # The signature alone is 256 fresh 32-byte objects.
        assert values["sign"] >= 256 * 32
        assert values["verify"] >= 0
