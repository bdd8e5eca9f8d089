from __future__ import annotations

"""Scoped allocation tracking for benchmark stages.

`AllocationTracker` is a context manager that reports the peak Python heap
growth (via tracemalloc) observed while its block ran, and optionally the peak
process memory growth sampled with psutil. Trackers are independent objects
rather than process-wide counters: each one keeps its own baseline, nested
trackers fold their peaks into the enclosing ones, and only the tracker that
started tracemalloc stops it.
"""

import gc
import os
import threading
import tracemalloc
from typing import List, Optional

import psutil

DEFAULT_SAMPLE_INTERVAL = 0.0015  # seconds between RSS samples

_ACTIVE: List["AllocationTracker"] = []
_ACTIVE_LOCK = threading.RLock()


def _fold_peak_into_active() -> None:
    _, peak = tracemalloc.get_traced_memory()
    for tracker in _ACTIVE:
        if peak > tracker._global_peak:
            tracker._global_peak = peak


def _sample_process_bytes(proc: psutil.Process) -> int:
    try:
        uss = getattr(proc.memory_full_info(), "uss", None)
        if uss is not None:
            return int(uss)
    except (psutil.AccessDenied, psutil.ZombieProcess):
        pass
    return int(proc.memory_info().rss)


class AllocationTracker:
    """Measure peak allocation growth for the enclosed block.

    Set `sample_rss=True` to also run a background sampler over the process's
    unique set size (falling back to RSS) every `interval` seconds.
    """

    def __init__(self, *, sample_rss: bool = False, interval: float = DEFAULT_SAMPLE_INTERVAL) -> None:
        self.sample_rss = sample_rss
        self.interval = interval if interval > 0 else DEFAULT_SAMPLE_INTERVAL
        self._owns_tracing = False
        self._baseline = 0
        self._global_peak = 0
        self._final: Optional[int] = None
        self._rss_baseline: Optional[int] = None
        self._rss_peak: Optional[int] = None
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "AllocationTracker":
        gc.collect()
        if self.sample_rss:
            self._start_rss_monitor()
        with _ACTIVE_LOCK:
            if tracemalloc.is_tracing():
                _fold_peak_into_active()
            else:
                tracemalloc.start()
                self._owns_tracing = True
            tracemalloc.reset_peak()
            current, _ = tracemalloc.get_traced_memory()
            self._baseline = current
            self._global_peak = current
            self._final = None
            _ACTIVE.append(self)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        with _ACTIVE_LOCK:
            _fold_peak_into_active()
            current, _ = tracemalloc.get_traced_memory()
            self._final = current
            _ACTIVE.remove(self)
            if self._owns_tracing:
                tracemalloc.stop()
                self._owns_tracing = False
        self._stop_rss_monitor()

    @property
    def peak_bytes(self) -> int:
        """Peak traced Python heap growth above the block's starting point."""
        return max(0, self._global_peak - self._baseline)

    @property
    def net_bytes(self) -> Optional[int]:
        """Traced bytes still allocated at block exit, relative to entry."""
        if self._final is None:
            return None
        return self._final - self._baseline

    @property
    def rss_peak_bytes(self) -> Optional[int]:
        if self._rss_baseline is None or self._rss_peak is None:
            return None
        return max(0, self._rss_peak - self._rss_baseline)

    @property
    def peak_kb(self) -> float:
        """Larger of the traced peak and the sampled process peak, in KB."""
        peak = float(self.peak_bytes)
        rss = self.rss_peak_bytes
        if rss is not None:
            peak = max(peak, float(rss))
        return peak / 1024.0

    def _start_rss_monitor(self) -> None:
        proc = psutil.Process(os.getpid())
        self._rss_baseline = _sample_process_bytes(proc)
        self._rss_peak = self._rss_baseline
        stop = threading.Event()

        def _monitor() -> None:
            local_peak = self._rss_baseline or 0
            while not stop.is_set():
                sample = _sample_process_bytes(proc)
                if sample > local_peak:
                    local_peak = sample
                if stop.wait(self.interval):
                    break
            sample = _sample_process_bytes(proc)
            self._rss_peak = max(local_peak, sample)

        self._stop = stop
        self._thread = threading.Thread(target=_monitor, name="hbsbench-memmon", daemon=True)
        self._thread.start()

    def _stop_rss_monitor(self) -> None:
        if self._stop is not None:
            self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=0.5)
        self._stop = None
        self._thread = None
