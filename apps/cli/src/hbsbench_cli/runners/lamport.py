from __future__ import annotations
"""Lamport OTS benchmarks: timing loops, single-op timing, peak memory."""

import json
import time
from typing import Dict, List, Optional, Sequence

import typer

from hbsbench import AllocationTracker, BenchmarkResult, MetricRecord, SchemeDescriptor
from hbsbench_lamport import (
    LAMPORT_OTS_SCHEME,
    EntropySource,
    LamportOtsScheme,
    LamportError,
    SystemEntropy,
    XorShift64,
    seed_from_label,
)

from hbsbench_cli.config import OPERATIONS, BenchConfig, OpConfig
from .common import _build_export_payload, export_json, export_trace_sig, run_sig

ADAPTER_NAME = "lamport-ots"
MEMORY_MESSAGE_SIZES = (32, 1024)

app = typer.Typer(add_completion=False, help="Lamport one-time signature benchmarks")


def message_bytes(size: int) -> bytes:
    return bytes(i % 251 for i in range(size))


def bench_rng(
    label: str,
    deterministic: bool,
    *,
    prefix: str = "lamport-main",
    entropy: Optional[EntropySource] = None,
) -> XorShift64:
    if deterministic:
        return XorShift64(seed_from_label(f"{prefix}-{label}"))
    source = entropy if entropy is not None else SystemEntropy()
    return XorShift64(source.next_seed() ^ seed_from_label(label))


def bench_keygen(
    scheme: LamportOtsScheme,
    iterations: int,
    deterministic: bool,
    *,
    prefix: str = "lamport-main",
    entropy: Optional[EntropySource] = None,
) -> int:
    rng = bench_rng("keygen", deterministic, prefix=prefix, entropy=entropy)
    start = time.perf_counter_ns()
    for _ in range(iterations):
        scheme.keypair_with_rng(rng)
    return time.perf_counter_ns() - start


def bench_sign(
    scheme: LamportOtsScheme,
    message: bytes,
    iterations: int,
    deterministic: bool,
    *,
    prefix: str = "lamport-main",
    entropy: Optional[EntropySource] = None,
) -> int:
    rng = bench_rng("sign-keygen", deterministic, prefix=prefix, entropy=entropy)
    # Every timed sign needs its own fresh key.
    secret_keys = [scheme.keypair_with_rng(rng).secret_key for _ in range(max(iterations, 1))]
    start = time.perf_counter_ns()
    for secret_key in secret_keys[:iterations]:
        scheme.sign(message, secret_key)
    return time.perf_counter_ns() - start


def bench_verify(
    scheme: LamportOtsScheme,
    message: bytes,
    iterations: int,
    deterministic: bool,
    *,
    prefix: str = "lamport-main",
    entropy: Optional[EntropySource] = None,
) -> int:
    rng = bench_rng("verify-keygen", deterministic, prefix=prefix, entropy=entropy)
    public_key, secret_key = scheme.keypair_with_rng(rng)
    signature = scheme.sign(message, secret_key)
    start = time.perf_counter_ns()
    for _ in range(iterations):
        if not scheme.verify(message, signature, public_key):
            raise RuntimeError("lamport verify failed during benchmark loop")
    return time.perf_counter_ns() - start


def run_loop_benchmark(
    config: BenchConfig,
    scheme: LamportOtsScheme = LAMPORT_OTS_SCHEME,
    *,
    entropy: Optional[EntropySource] = None,
) -> BenchmarkResult:
    message = message_bytes(config.message_size)
    algo = scheme.algorithm_name()
    records = [
        MetricRecord(algo, "keygen", config.iterations,
                     bench_keygen(scheme, config.iterations, config.deterministic, entropy=entropy)),
        MetricRecord(algo, "sign", config.iterations,
                     bench_sign(scheme, message, config.iterations, config.deterministic, entropy=entropy)),
        MetricRecord(algo, "verify", config.iterations,
                     bench_verify(scheme, message, config.iterations, config.deterministic, entropy=entropy)),
    ]
    return BenchmarkResult(records=records)


def report_header(scheme: SchemeDescriptor, config: BenchConfig) -> List[str]:
    return [
        f"algorithm: {scheme.algorithm_name()}",
        f"backend: {scheme.backend_name()}",
        f"param_set: {scheme.param_set_name()}",
        f"public_key_bytes: {scheme.public_key_bytes()}",
        f"secret_key_bytes: {scheme.secret_key_bytes()}",
        f"signature_bytes: {scheme.signature_bytes()}",
        f"message_size: {config.message_size}",
        f"iterations: {config.iterations}",
        f"deterministic_rng: {str(config.deterministic).lower()}",
    ]


def run_single_operation(
    config: OpConfig,
    scheme: LamportOtsScheme = LAMPORT_OTS_SCHEME,
    *,
    entropy: Optional[EntropySource] = None,
) -> int:
    """Time one operation `config.iterations` times; return total nanoseconds."""
    message = message_bytes(config.message_size)
    prefix = "lamport-bench"
    if config.operation == "keygen":
        return bench_keygen(scheme, config.iterations, config.deterministic, prefix=prefix, entropy=entropy)
    if config.operation == "sign":
        return bench_sign(scheme, message, config.iterations, config.deterministic, prefix=prefix, entropy=entropy)
    if config.operation == "verify":
        return bench_verify(scheme, message, config.iterations, config.deterministic, prefix=prefix, entropy=entropy)
    raise ValueError(
        f"unsupported OPERATION={config.operation}; expected one of: {', '.join(OPERATIONS)}"
    )


def measure_peak_memory(
    scheme: LamportOtsScheme = LAMPORT_OTS_SCHEME,
    message_sizes: Sequence[int] = MEMORY_MESSAGE_SIZES,
) -> Dict[int, Dict[str, int]]:
    """Peak traced allocation (bytes) of one sign and one verify per message size."""
    out: Dict[int, Dict[str, int]] = {}
    for size in message_sizes:
        message = message_bytes(size)
        public_key, secret_key = scheme.keypair_with_seed(seed_from_label(f"lamport-memory-{size}"))
        with AllocationTracker() as sign_tracker:
            signature = scheme.sign(message, secret_key)
        with AllocationTracker() as verify_tracker:
            ok = scheme.verify(message, signature, public_key)
        if not ok:
            raise RuntimeError("lamport verify failed during memory measurement")
        out[size] = {"sign": sign_tracker.peak_bytes, "verify": verify_tracker.peak_bytes}
    return out


@app.command()
def info() -> None:
    """Print the scheme's name, backend, parameter set and sizes."""
    scheme = LAMPORT_OTS_SCHEME
    sizes = scheme.sizes()
    typer.echo(f"algorithm: {scheme.algorithm_name()}")
    typer.echo(f"backend: {scheme.backend_name()}")
    typer.echo(f"param_set: {scheme.param_set_name()}")
    typer.echo(f"max_signatures_per_key: {scheme.max_signatures_per_key()}")
    typer.echo(f"public_key_bytes: {sizes.public_key_bytes}")
    typer.echo(f"secret_key_bytes: {sizes.secret_key_bytes}")
    typer.echo(f"signature_bytes: {sizes.signature_bytes}")


@app.command()
def bench(
    message_size: Optional[int] = typer.Option(None, min=0, help="Message size in bytes [env LAMPORT_MESSAGE_SIZE, 1024]"),
    iterations: Optional[int] = typer.Option(None, min=0, help="Iterations per operation [env LAMPORT_ITERATIONS, 100]"),
    deterministic: Optional[bool] = typer.Option(
        None,
        "--deterministic/--random",
        help="Seed keys from fixed labels [env LAMPORT_DETERMINISTIC, true]",
    ),
) -> None:
    """Time keygen/sign/verify loops and print a key: value report."""
    try:
        config = BenchConfig.from_env()
        if message_size is not None:
            config.message_size = message_size
        if iterations is not None:
            config.iterations = iterations
        if deterministic is not None:
            config.deterministic = deterministic
        result = run_loop_benchmark(config)
    except (LamportError, ValueError, RuntimeError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    for line in report_header(LAMPORT_OTS_SCHEME, config):
        typer.echo(line)
    for record in result.records:
        for line in record.report_lines():
            typer.echo(line)


@app.command()
def op(
    operation: Optional[str] = typer.Option(None, help="keygen, sign or verify [env OPERATION, keygen]"),
    iterations: Optional[int] = typer.Option(None, min=0, help="[env ITERATIONS, 100]"),
    message_size: Optional[int] = typer.Option(None, min=0, help="[env MSG_SIZE, 32]"),
    deterministic: Optional[bool] = typer.Option(None, "--deterministic/--random", help="[env DETERMINISTIC_RNG, true]"),
) -> None:
    """Time a single operation and print the total elapsed nanoseconds."""
    try:
        config = OpConfig.from_env()
        if operation is not None:
            config.operation = operation
        if iterations is not None:
            config.iterations = iterations
        if message_size is not None:
            config.message_size = message_size
        if deterministic is not None:
            config.deterministic = deterministic
        total_ns = run_single_operation(config)
    except (LamportError, ValueError, RuntimeError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(str(total_ns))


@app.command()
def memory() -> None:
    """Report peak traced allocation during sign and verify."""
    scheme = LAMPORT_OTS_SCHEME
    try:
        peaks = measure_peak_memory(scheme)
    except (LamportError, ValueError, RuntimeError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{scheme.algorithm_name()} peak heap usage:")
    for size, values in peaks.items():
        typer.echo(f"  message_size={size}: sign={values['sign']} bytes, verify={values['verify']} bytes")


@app.command()
def summary(
    runs: int = typer.Option(10, min=1),
    message_size: int = typer.Option(1024, min=0),
    cold: bool = typer.Option(True, help="Cold starts: isolate each run in a fresh process (use --no-cold for warm, cache-friendly runs)"),
    capture_memory: bool = typer.Option(True, help="Record per-run peak memory growth"),
    export: str = "results/lamport_ots_summary.json",
    export_raw: str = "",
    print_json: bool = True,
) -> None:
    """Run the lamport-ots adapter micro-bench (keygen/sign/verify) and export JSON."""
    try:
        result = run_sig(ADAPTER_NAME, runs, message_size, cold=cold, capture_memory=capture_memory)
    except (LamportError, ValueError, RuntimeError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    export_json(result, export)
    if export_raw:
        export_trace_sig(ADAPTER_NAME, message_size, export_raw)
    if print_json:
        typer.echo(json.dumps(_build_export_payload(result), indent=2))


def app_main():
    app()

if __name__ == "__main__":
    app_main()
