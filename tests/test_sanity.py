from hbsbench import BenchmarkResult, MetricRecord, registry
from hbsbench_cli.runners.common import measure_factory
import pytest


def _noop_factory():
    def _op() -> None:
        return None
    return _op


def test_registry_has_lamport():
    items = registry.list()
    assert "lamport-ots" in items


def test_measure_reports_extended_stats():
    stats = measure_factory(_noop_factory, runs=3, cold=False)
    assert stats.runs == 3
    assert stats.median_ms >= 0.0
    assert stats.range_ms >= 0.0
    assert stats.stddev_ms >= 0.0
    assert stats.ci95_low_ms <= stats.mean_ms <= stats.ci95_high_ms
    assert stats.mem_series_kb is not None
    assert len(stats.mem_series_kb) == 3
    assert stats.mem_mean_kb is not None
    assert stats.mem_range_kb is not None
    assert stats.mem_range_kb >= 0.0
    assert stats.mem_ci95_low_kb <= stats.mem_mean_kb <= stats.mem_ci95_high_kb


def test_measure_without_memory():
    stats = measure_factory(_noop_factory, runs=1, cold=False, capture_memory=False)
    assert stats.mem_series_kb is None
    assert stats.mem_mean_kb is None
    assert stats.ci95_low_ms == stats.ci95_high_ms == stats.mean_ms


def test_measure_requires_a_run():
    with pytest.raises(ValueError):
        measure_factory(_noop_factory, runs=0, cold=False)


def test_metric_record_derived_figures():
    rec = MetricRecord("Lamport OTS", "sign", runs=4, total_ns=2_000_000_000)
    assert rec.avg_ns == 500_000_000
    assert rec.throughput_ops_per_s == pytest.approx(2.0)
    assert rec.report_lines() == [
        "sign_total_ns: 2000000000",
        "sign_avg_ns: 500000000",
        "sign_throughput_ops_per_s: 2.000",
    ]
    idle = MetricRecord("Lamport OTS", "verify", runs=0, total_ns=0)
    assert idle.avg_ns == 0
    assert idle.throughput_ops_per_s == 0.0


def test_benchmark_result_lookup():
    result = BenchmarkResult(records=[MetricRecord("a", "keygen", 1, 10)])
    assert result.get("keygen").total_ns == 10
    with pytest.raises(KeyError):
        result.get("sign")


def test_lamport_satisfies_the_interfaces():
    from hbsbench import SchemeDescriptor, Signature
    from hbsbench_lamport import LAMPORT_OTS_SCHEME

    adapter = registry.get("lamport-ots")()
    assert isinstance(adapter, Signature)
    assert isinstance(LAMPORT_OTS_SCHEME, SchemeDescriptor)


def test_cold_worker_failure_is_reported():
    from functools import partial

    from hbsbench_cli.runners.common import _sig_keygen_factory

    # The adapter lookup fails inside the spawned worker.
    with pytest.raises(RuntimeError, match="Benchmark worker failed: KeyError"):
        measure_factory(partial(_sig_keygen_factory, "no-such-algo"), runs=1, cold=True, capture_memory=False)


def test_cold_measurement_collects_each_run():
    from functools import partial

    from hbsbench_cli.runners.common import _sig_keygen_factory

    stats = measure_factory(partial(_sig_keygen_factory, "lamport-ots"), runs=2, cold=True, capture_memory=True)
    assert stats.runs == 2
    assert stats.mem_series_kb is not None
    assert len(stats.mem_series_kb) == 2
