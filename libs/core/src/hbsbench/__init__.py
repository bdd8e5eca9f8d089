from .interfaces import Signature, SchemeDescriptor
from .registry import registry
from .metrics import MetricRecord, BenchmarkResult
from .memory import AllocationTracker
from .key_analysis import (
    DEFAULT_SECRET_KEY_SAMPLES,
    DEFAULT_PAIR_SAMPLE_LIMIT,
    KeyAnalysisModel,
    derive_model,
    summarize_secret_keys,
)

__all__ = [
    "Signature",
    "SchemeDescriptor",
    "registry",
    "MetricRecord",
    "BenchmarkResult",
    "AllocationTracker",
    "DEFAULT_SECRET_KEY_SAMPLES",
    "DEFAULT_PAIR_SAMPLE_LIMIT",
    "KeyAnalysisModel",
    "derive_model",
    "summarize_secret_keys",
]
