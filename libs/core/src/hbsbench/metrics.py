from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List

"""Lightweight benchmark result containers.

The loop benchmarks report raw nanosecond totals; these dataclasses carry the
derived per-operation figures so they can be printed or exported uniformly.
"""

@dataclass
class MetricRecord:
    algo: str
    op: str  # 'keygen', 'sign' or 'verify'
    runs: int
    total_ns: int
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def avg_ns(self) -> int:
        if self.runs == 0:
            return 0
        return self.total_ns // self.runs

    @property
    def throughput_ops_per_s(self) -> float:
        if self.total_ns == 0:
            return 0.0
        return (self.runs * 1_000_000_000.0) / self.total_ns

    def report_lines(self) -> List[str]:
        return [
            f"{self.op}_total_ns: {self.total_ns}",
            f"{self.op}_avg_ns: {self.avg_ns}",
            f"{self.op}_throughput_ops_per_s: {self.throughput_ops_per_s:.3f}",
        ]

@dataclass
class BenchmarkResult:
    records: List[MetricRecord]
    notes: str = ""

    def get(self, op: str) -> MetricRecord:
        for rec in self.records:
            if rec.op == op:
                return rec
        raise KeyError(op)
