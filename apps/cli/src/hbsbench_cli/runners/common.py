from __future__ import annotations
"""Shared benchmarking utilities for CLI runners.

Includes adapter bootstrap, timing/memory measurement, JSON export helpers,
and the signature micro-benchmark orchestrator.
"""

import base64
import copy
import json
import logging
import math
import multiprocessing
import pathlib
import platform
import statistics
import sys
import time

from dataclasses import dataclass, asdict
from functools import partial
from typing import Callable, Dict, Any, List, Tuple, Optional, Sequence

from hbsbench import Signature, registry
from hbsbench.key_analysis import (
    DEFAULT_PAIR_SAMPLE_LIMIT,
    DEFAULT_SECRET_KEY_SAMPLES,
    derive_model,
    summarize_secret_keys,
)
from hbsbench.memory import AllocationTracker, DEFAULT_SAMPLE_INTERVAL

log = logging.getLogger(__name__)

_MP_CONTEXT = multiprocessing.get_context('spawn')
_HERE = pathlib.Path(__file__).resolve()

try:
    _PROJECT_ROOT = next(p for p in _HERE.parents if (p / "libs").exists())
except StopIteration:
    _PROJECT_ROOT = _HERE.parents[0]

for rel in (
    pathlib.Path("libs/core/src"),
    pathlib.Path("libs/adapters/lamport/src"),
):
    candidate = _PROJECT_ROOT / rel
    if candidate.exists():
        candidate_str = str(candidate)
        if candidate_str not in sys.path:
            sys.path.append(candidate_str)

_ADAPTER_PATHS = {
    "hbsbench_lamport": _PROJECT_ROOT / "libs" / "adapters" / "lamport" / "src",
}

_ENVIRONMENT_CACHE: Dict[str, Any] | None = None
_ADAPTER_INSTANCE_CACHE: Dict[str, Any] = {}

try:
    _CI_Z = statistics.NormalDist().inv_cdf(0.975)
except Exception:
    _CI_Z = 1.959964


def _detect_cpu_model() -> str | None:
    cpuinfo = pathlib.Path("/proc/cpuinfo")
    if platform.system() == "Linux" and cpuinfo.exists():
        for line in cpuinfo.read_text(encoding="utf-8", errors="ignore").splitlines():
            if line.lower().startswith("model name"):
                return line.split(":", 1)[1].strip()
    uname = platform.uname()
    for val in (uname.processor, uname.machine, platform.processor()):
        if val:
            return val
    return None


def _collect_environment_meta() -> Dict[str, Any]:
    global _ENVIRONMENT_CACHE
    if _ENVIRONMENT_CACHE is None:
        info: Dict[str, Any] = {}
        cpu_model = _detect_cpu_model()
        if cpu_model:
            info["cpu_model"] = cpu_model
        info["os"] = platform.platform(aliased=True)
        info["python"] = platform.python_version()
        _ENVIRONMENT_CACHE = info
    return copy.deepcopy(_ENVIRONMENT_CACHE)


def _get_adapter_instance(name: str) -> Signature:
    adapter = _ADAPTER_INSTANCE_CACHE.get(name)
    if adapter is not None:
        return adapter
    cls = registry.get(name)
    adapter = cls()
    _ADAPTER_INSTANCE_CACHE[name] = adapter
    return adapter


def reset_adapter_cache(name: Optional[str] = None) -> None:
    """Drop cached adapter instances so env-driven overrides take effect."""
    if name is None:
        _ADAPTER_INSTANCE_CACHE.clear()
        return
    _ADAPTER_INSTANCE_CACHE.pop(name, None)


def _compute_ci95(mean: float, samples: Sequence[float]) -> Tuple[float, float]:
    if len(samples) < 2:
        return mean, mean
    std = statistics.stdev(samples)
    if std == 0:
        return mean, mean
    margin = _CI_Z * (std / math.sqrt(len(samples)))
    return mean - margin, mean + margin


def _load_adapters() -> None:
    import importlib, importlib.util
    for mod in _ADAPTER_PATHS:
        spec = importlib.util.find_spec(mod)
        if spec is None:
            candidate = _ADAPTER_PATHS.get(mod)
            if candidate and candidate.exists():
                if str(candidate) not in sys.path:
                    sys.path.append(str(candidate))
                spec = importlib.util.find_spec(mod)
        if spec is None:
            log.warning("adapter package %s not found; skipping", mod)
            continue
        try:
            importlib.import_module(mod)
        except Exception:
            log.exception("[adapter import error] %s", mod)

_load_adapters()


@dataclass
class OpStats:
    runs: int
    mean_ms: float
    min_ms: float
    max_ms: float
    median_ms: float
    stddev_ms: float
    ci95_low_ms: float
    ci95_high_ms: float
    range_ms: float
    series: List[float]
    # Memory footprint metrics (per-run peak growth)
    mem_mean_kb: float | None = None
    mem_min_kb: float | None = None
    mem_max_kb: float | None = None
    mem_median_kb: float | None = None
    mem_stddev_kb: float | None = None
    mem_ci95_low_kb: float | None = None
    mem_ci95_high_kb: float | None = None
    mem_range_kb: float | None = None
    mem_series_kb: List[float] | None = None

@dataclass
class AlgoSummary:
    algo: str
    kind: str   # always 'SIG' here
    ops: Dict[str, OpStats]
    meta: Dict[str, Any]


def _summarize(times: List[float], mem_peaks_kb: List[float]) -> OpStats:
    mean = sum(times) / len(times)
    ci_low, ci_high = _compute_ci95(mean, times)
    stats = OpStats(
        runs=len(times),
        mean_ms=mean,
        min_ms=min(times),
        max_ms=max(times),
        median_ms=statistics.median(times),
        stddev_ms=statistics.pstdev(times) if len(times) > 1 else 0.0,
        ci95_low_ms=ci_low,
        ci95_high_ms=ci_high,
        range_ms=max(times) - min(times),
        series=times,
    )
    if mem_peaks_kb:
        mem_mean = sum(mem_peaks_kb) / len(mem_peaks_kb)
        stats.mem_mean_kb = mem_mean
        stats.mem_min_kb = min(mem_peaks_kb)
        stats.mem_max_kb = max(mem_peaks_kb)
        stats.mem_median_kb = statistics.median(mem_peaks_kb)
        stats.mem_stddev_kb = statistics.pstdev(mem_peaks_kb) if len(mem_peaks_kb) > 1 else 0.0
        stats.mem_range_kb = stats.mem_max_kb - stats.mem_min_kb
        stats.mem_ci95_low_kb, stats.mem_ci95_high_kb = _compute_ci95(mem_mean, mem_peaks_kb)
        stats.mem_series_kb = mem_peaks_kb
    return stats


def measure_factory(
    factory: Callable[[], Callable[[], None]],
    runs: int,
    *,
    cold: bool = True,
    progress_cb: Optional[Callable[[int, int], None]] = None,
    capture_memory: bool = True,
    memory_interval: float | None = None,
) -> OpStats:
    """Measure only the core operation produced by `factory`.

    The `factory` runs before timing starts to prepare fresh inputs (keygen,
    message, signature). The returned zero-arg callable is then executed under
    timing/memory monitoring so that only the stage operation itself is
    measured. With `cold=True` every run happens in a fresh spawned process.
    """
    if runs < 1:
        raise ValueError("runs must be at least 1")
    times: List[float] = []
    mem_peaks_kb: List[float] = []
    interval = DEFAULT_SAMPLE_INTERVAL if memory_interval is None else float(memory_interval)

    for i in range(runs):
        if cold:
            dt_ms, mem_kb = _run_isolated_factory(factory, capture_memory=capture_memory, memory_interval=interval)
        else:
            op = factory()
            dt_ms, mem_kb = _single_run_metrics(op, capture_memory=capture_memory, memory_interval=interval)
        times.append(dt_ms)
        if mem_kb is not None:
            mem_peaks_kb.append(mem_kb)
        if progress_cb is not None:
            progress_cb(i + 1, runs)

    return _summarize(times, mem_peaks_kb)


def _run_isolated_factory(
    factory: Callable[[], Callable[[], None]],
    *,
    capture_memory: bool = True,
    memory_interval: float = DEFAULT_SAMPLE_INTERVAL,
) -> Tuple[float, float | None]:
    """Execute factory->op in a fresh process and return (time_ms, memory_kb)."""
    parent_conn, child_conn = _MP_CONTEXT.Pipe(duplex=False)
    proc = _MP_CONTEXT.Process(
        target=_isolated_worker_factory,
        args=(factory, child_conn, bool(capture_memory), float(memory_interval)),
    )
    proc.start()
    child_conn.close()
    try:
        result = parent_conn.recv()
    except EOFError:
        proc.join()
        raise RuntimeError("Benchmark worker exited without reporting results.")
    finally:
        parent_conn.close()
    proc.join()
    if result.get("status") == "ok":
        return result["time_ms"], result["mem_kb"]
    message = f"Benchmark worker failed: {result.get('error') or 'unknown error'}"
    tb = result.get("traceback")
    if tb:
        message = f"{message}\n{tb}"
    raise RuntimeError(message)


def _isolated_worker_factory(
    factory: Callable[[], Callable[[], None]],
    conn,
    capture_memory: bool,
    memory_interval: float,
) -> None:
    """Child-process entry point for factory-based isolated measurements."""
    try:
        # Prepare inputs before timing begins
        op = factory()
        dt, mem_kb = _single_run_metrics(
            op,
            capture_memory=capture_memory,
            memory_interval=memory_interval,
        )
        conn.send({"status": "ok", "time_ms": dt, "mem_kb": mem_kb})
    except Exception as exc:
        import traceback
        conn.send({
            "status": "error",
            "error": repr(exc),
            "traceback": traceback.format_exc(),
        })
    finally:
        conn.close()


def _single_run_metrics(
    fn: Callable[[], None],
    *,
    capture_memory: bool = True,
    memory_interval: float = DEFAULT_SAMPLE_INTERVAL,
) -> Tuple[float, float | None]:
    """Run `fn` exactly once, capturing time (and optionally memory usage)."""
    if not capture_memory:
        t0 = time.perf_counter()
        fn()
        return (time.perf_counter() - t0) * 1000.0, None

    with AllocationTracker(sample_rss=True, interval=memory_interval) as tracker:
        t0 = time.perf_counter()
        fn()
        dt_ms = (time.perf_counter() - t0) * 1000.0
    return dt_ms, tracker.peak_kb


def _sig_keygen_factory(name: str) -> Callable[[], None]:
    """Return an operation that runs signature keygen after adapter setup."""
    adapter = _get_adapter_instance(name)

    def _op() -> None:
        adapter.keygen()

    return _op


def _sig_sign_factory(name: str, message_size: int) -> Callable[[], None]:
    """Prepare fresh key and message, return op that only runs sign."""
    adapter = _get_adapter_instance(name)
    msg = b"x" * int(message_size)
    _, sk = adapter.keygen()

    def _op() -> None:
        adapter.sign(sk, msg)

    return _op


def _sig_verify_factory(name: str, message_size: int) -> Callable[[], None]:
    """Prepare fresh keys/message/signature, return op that only runs verify."""
    adapter = _get_adapter_instance(name)
    msg = b"x" * int(message_size)
    pk, sk = adapter.keygen()
    sig = adapter.sign(sk, msg)

    def _op() -> None:
        if not adapter.verify(pk, msg, sig):
            raise RuntimeError(f"{name} verify failed during benchmark run")

    return _op


def _sample_secret_key_analysis(name: str, adapter) -> Dict[str, Any] | None:
    samples = max(2, int(DEFAULT_SECRET_KEY_SAMPLES))
    keys: List[bytes] = []
    for _ in range(samples):
        _, sk = adapter.keygen()
        if not isinstance(sk, (bytes, bytearray)) or not sk:
            return None
        keys.append(bytes(sk))
    family = getattr(adapter, "name", None) or name
    summary = summarize_secret_keys(
        keys,
        model=derive_model(family),
        pair_sample_limit=int(DEFAULT_PAIR_SAMPLE_LIMIT),
    )
    summary["context"] = {"algorithm": name, "kind": "SIG"}
    return summary


def run_sig(
    name: str,
    runs: int,
    message_size: int,
    *,
    cold: bool = True,
    capture_memory: bool = True,
    memory_interval: float | None = None,
    analyse_keys: bool = True,
    progress: Optional[Callable[[str, str, int, int], None]] = None,
) -> AlgoSummary:
    """Run a signature micro-benchmark for the registered algorithm `name`.

    Measures wall-clock latency (and optional memory growth) for:
    - keygen
    - sign (with fresh keys per run)
    - verify (with fresh keys/signature per run)
    """
    ops: Dict[str, OpStats] = {}
    def _p(stage: str):
        if progress is None:
            return None
        return lambda i, total: progress(stage, name, i, total)

    ops["keygen"] = measure_factory(
        partial(_sig_keygen_factory, name),
        runs,
        cold=cold,
        progress_cb=_p("keygen"),
        capture_memory=capture_memory,
        memory_interval=memory_interval,
    )
    ops["sign"] = measure_factory(
        partial(_sig_sign_factory, name, message_size),
        runs,
        cold=cold,
        progress_cb=_p("sign"),
        capture_memory=capture_memory,
        memory_interval=memory_interval,
    )
    ops["verify"] = measure_factory(
        partial(_sig_verify_factory, name, message_size),
        runs,
        cold=cold,
        progress_cb=_p("verify"),
        capture_memory=capture_memory,
        memory_interval=memory_interval,
    )
    adapter = _get_adapter_instance(name)
    mod = getattr(adapter.__class__, "__module__", "") or ""
    _backend = getattr(adapter, "backend", None)
    if _backend is None:
        _backend = "lamport" if "hbsbench_lamport" in mod else "unknown"
    pk, sk = adapter.keygen()
    msg = b"x" * message_size
    sig = adapter.sign(sk, msg)
    _sig_len = len(sig) if isinstance(sig, (bytes, bytearray)) else None
    _sig_expansion = None
    if _sig_len is not None and message_size > 0:
        _sig_expansion = float(_sig_len) / float(message_size)
    meta: Dict[str, Any] = {
        "public_key_len": len(pk) if isinstance(pk, (bytes, bytearray)) else None,
        "secret_key_len": len(sk) if isinstance(sk, (bytes, bytearray)) else None,
        "signature_len": _sig_len,
        "message_size": message_size,
        "signature_expansion_ratio": _sig_expansion,
        "mechanism": getattr(adapter, "mech", None) or getattr(adapter, "algorithm", None),
        "run_mode": ("cold" if cold else "warm"),
        "backend": _backend,
    }
    max_sigs = getattr(adapter, "max_signatures_per_key", None)
    if isinstance(max_sigs, int):
        meta["max_signatures_per_key"] = max_sigs
    hash_name = getattr(adapter, "hash_algorithm_name", None)
    if hash_name:
        meta.setdefault("signature_hash", hash_name)
    hash_digest_size = getattr(adapter, "hash_digest_size", None)
    if isinstance(hash_digest_size, int):
        meta.setdefault("signature_hash_bytes", hash_digest_size)

    if analyse_keys:
        analysis = _sample_secret_key_analysis(name, adapter)
        if analysis:
            meta["secret_key_analysis"] = analysis
    env_meta = _collect_environment_meta()
    if env_meta:
        meta["environment"] = env_meta
    return AlgoSummary(algo=name, kind="SIG", ops=ops, meta=meta)


def _build_export_payload(summary: AlgoSummary) -> Dict[str, Any]:
    return {
        "algo": summary.algo,
        "kind": summary.kind,
        "ops": {k: asdict(v) for k, v in summary.ops.items()},
        "meta": summary.meta,
    }


def export_json(summary: AlgoSummary, export_path: str | None) -> None:
    if not export_path:
        return
    _export_json_blob(_build_export_payload(summary), export_path)


def _export_json_blob(data: dict, export_path: str | None) -> None:
    if not export_path:
        return
    # Normalize Windows-style separators on POSIX if users pass e.g. "results\file.json"
    if "\\" in export_path and ":" not in export_path:
        export_path = export_path.replace("\\", "/")
    path = pathlib.Path(export_path)
    # Resolve relative paths to the repository root so results/ always lands at repo root
    if not path.is_absolute():
        path = _repo_root() / path
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

def _b64(x: bytes | bytearray | None) -> str | None:
    if x is None:
        return None
    return base64.b64encode(bytes(x)).decode("ascii")

def _repo_root() -> pathlib.Path:
    """Best-effort detection of the repository root (directory containing .git).
    Falls back to the current working directory if not found.
    """
    here = pathlib.Path(__file__).resolve()
    for p in (here, *here.parents):
        if (p / ".git").exists():
            return p
    return pathlib.Path.cwd()


def export_trace_sig(name: str, message_size: int, export_path: str | None) -> None:
    """Write one keygen/sign/verify transcript (base64) for inspection."""
    if not export_path:
        return
    adapter = _get_adapter_instance(name)
    pk, sk = adapter.keygen()
    msg = b"x" * int(message_size)
    sig = adapter.sign(sk, msg)
    ok = adapter.verify(pk, msg, sig)
    trace = {
        "algo": name,
        "kind": "SIG",
        "trace": {
            "keygen": {"public_key": _b64(pk), "secret_key": _b64(sk)},
            "message": _b64(msg),
            "sign": {"signature": _b64(sig)},
            "verify": {"ok": bool(ok)},
        }
    }
    _export_json_blob(trace, export_path)
