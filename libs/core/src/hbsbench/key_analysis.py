from __future__ import annotations

"""Secret key bitstring analysis helpers (Hamming weight/distance).

These routines provide lightweight sanity checks over raw secret-key bytes.
The goal is to surface obvious RNG/encoding issues without ever persisting keys.
"""

from dataclasses import dataclass, field
from itertools import combinations, islice
import math
import statistics
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

_BYTE_POPCOUNT = tuple(bin(i).count("1") for i in range(256))

# Keep sampling modest so CLI runs stay responsive.
DEFAULT_SECRET_KEY_SAMPLES: int = 32
DEFAULT_PAIR_SAMPLE_LIMIT: int = 128


def _popcount_bytes(data: bytes) -> int:
    return sum(_BYTE_POPCOUNT[b] for b in data)


def _hamming_distance(a: bytes, b: bytes) -> int:
    return sum(_BYTE_POPCOUNT[x ^ y] for x, y in zip(a, b))


@dataclass
class KeyAnalysisModel:
    """Model assumptions for interpreting bit-level statistics."""

    name: str
    expected_hw_fraction: Optional[float] = None
    expected_hd_fraction: Optional[float] = None
    notes: List[str] = field(default_factory=list)


def derive_model(family: Optional[str]) -> KeyAnalysisModel:
    """Pick the analysis model for a scheme family.

    Hash-based one-time keys are raw generator output, so every family we
    ship is analysed against the uniform-bitstring model.
    """
    fam = (family or "").upper()
    notes = ["Secret elements are expected to be indistinguishable from uniform bytes."]
    if fam in {"LAMPORT", "LAMPORT-OTS"}:
        notes.append("Elements come from a seeded xorshift64 stream; bias here points at the generator.")
    return KeyAnalysisModel(
        name="uniform_bitstring",
        expected_hw_fraction=0.5,
        expected_hd_fraction=0.5,
        notes=notes,
    )


def summarize_secret_keys(
    keys: Sequence[bytes],
    *,
    model: KeyAnalysisModel,
    pair_sample_limit: int = DEFAULT_PAIR_SAMPLE_LIMIT,
) -> Dict[str, object]:
    """Compute aggregate Hamming statistics for a collection of secret keys."""
    if not keys:
        raise ValueError("no keys provided for analysis")

    sample_count = len(keys)
    first = keys[0]
    if not isinstance(first, (bytes, bytearray)):
        raise TypeError("keys must be byte-like sequences")
    bit_len = len(first) * 8
    if bit_len == 0:
        raise ValueError("secret key length is zero bits")

    for k in keys:
        if len(k) != len(first):
            raise ValueError("inconsistent secret key lengths across samples")

    hw_fracs = [_popcount_bytes(k) / float(bit_len) for k in keys]
    hw_mean = statistics.mean(hw_fracs)
    hw_std = statistics.pstdev(hw_fracs) if sample_count > 1 else 0.0

    expected_hw = model.expected_hw_fraction
    reference = expected_hw if expected_hw is not None else 0.5

    byte_width = len(first)
    max_abs_byte_dev = 0.0
    mean_abs_byte_dev = 0.0
    total_samples_bits = float(sample_count * 8)
    for idx in range(byte_width):
        ones = sum(_BYTE_POPCOUNT[key[idx]] for key in keys)
        dev = abs(ones / total_samples_bits - reference)
        max_abs_byte_dev = max(max_abs_byte_dev, dev)
        mean_abs_byte_dev += dev
    mean_abs_byte_dev /= float(byte_width)

    hd_fracs: List[float] = []
    if sample_count > 1 and pair_sample_limit > 0:
        combos: Iterable[Tuple[int, int]] = combinations(range(sample_count), 2)
        for i, j in islice(combos, pair_sample_limit):
            hd_fracs.append(_hamming_distance(keys[i], keys[j]) / float(bit_len))

    if hd_fracs:
        hd_mean = statistics.mean(hd_fracs)
        hd_std = statistics.pstdev(hd_fracs) if len(hd_fracs) > 1 else 0.0
        hd_min = min(hd_fracs)
        hd_max = max(hd_fracs)
    else:
        hd_mean = hd_std = hd_min = hd_max = None

    warnings: List[str] = []
    result: Dict[str, object] = {
        "method": "bitstring_hw_hd_v1",
        "model": {
            "name": model.name,
            "expected_hw_fraction": expected_hw,
            "expected_hd_fraction": model.expected_hd_fraction,
            "notes": list(model.notes),
        },
        "samples": sample_count,
        "bits_per_sample": bit_len,
        "hw": {
            "mean_fraction": hw_mean,
            "std_fraction": hw_std,
            "min_fraction": min(hw_fracs),
            "max_fraction": max(hw_fracs),
            "mean_bits": hw_mean * bit_len,
            "expected_fraction": expected_hw,
        },
        "hd": {
            "samples": len(hd_fracs),
            "mean_fraction": hd_mean,
            "std_fraction": hd_std,
            "min_fraction": hd_min,
            "max_fraction": hd_max,
            "expected_fraction": model.expected_hd_fraction,
        },
        "byte_bias": {
            "reference_fraction": reference,
            "max_abs_deviation": max_abs_byte_dev,
            "mean_abs_deviation": mean_abs_byte_dev,
        },
        "pair_sample_limit": pair_sample_limit,
        "warnings": warnings,
    }

    if model.name == "uniform_bitstring" and expected_hw is not None:
        # Binomial(n, 1/2) standard error of the mean fraction over all samples.
        sigma = 1.0 / (2.0 * math.sqrt(bit_len * sample_count))
        z_score = (hw_mean - expected_hw) / sigma
        result["hw"]["three_sigma_band"] = (  # type: ignore[index]
            max(0.0, expected_hw - 3.0 * sigma),
            min(1.0, expected_hw + 3.0 * sigma),
        )
        result["hw"]["z_score_vs_uniform"] = z_score  # type: ignore[index]
        if abs(z_score) > 3.0:
            warnings.append(
                f"mean HW fraction {hw_mean:.4f} outside ±3σ band around {expected_hw:.3f}"
            )

    return result
