from __future__ import annotations

"""Environment-driven settings for the benchmark commands.

CLI options take precedence; anything left unset falls back to these
variables, then to the defaults below.
"""

import os
from dataclasses import dataclass

OPERATIONS = ("keygen", "sign", "verify")
_TRUE_VALUES = {"1", "true", "TRUE", "yes", "YES"}


def parse_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def parse_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw in _TRUE_VALUES


@dataclass
class BenchConfig:
    """Settings for the full keygen/sign/verify timing report."""
    message_size: int = 1024
    iterations: int = 100
    deterministic: bool = True

    @classmethod
    def from_env(cls) -> "BenchConfig":
        return cls(
            message_size=parse_int_env("LAMPORT_MESSAGE_SIZE", cls.message_size),
            iterations=parse_int_env("LAMPORT_ITERATIONS", cls.iterations),
            deterministic=parse_bool_env("LAMPORT_DETERMINISTIC", cls.deterministic),
        )


@dataclass
class OpConfig:
    """Settings for a single-operation timing run."""
    operation: str = "keygen"
    iterations: int = 100
    message_size: int = 32
    deterministic: bool = True

    @classmethod
    def from_env(cls) -> "OpConfig":
        return cls(
            operation=os.getenv("OPERATION", cls.operation),
            iterations=parse_int_env("ITERATIONS", cls.iterations),
            message_size=parse_int_env("MSG_SIZE", cls.message_size),
            deterministic=parse_bool_env("DETERMINISTIC_RNG", cls.deterministic),
        )
