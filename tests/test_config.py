from __future__ import annotations

import pytest

from hbsbench_cli.config import OPERATIONS, BenchConfig, OpConfig, parse_bool_env, parse_int_env


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "LAMPORT_MESSAGE_SIZE",
        "LAMPORT_ITERATIONS",
        "LAMPORT_DETERMINISTIC",
        "OPERATION",
        "ITERATIONS",
        "MSG_SIZE",
        "DETERMINISTIC_RNG",
    ):
        monkeypatch.delenv(var, raising=False)


def test_defaults_without_environment() -> None:
    assert BenchConfig.from_env() == BenchConfig(message_size=1024, iterations=100, deterministic=True)
    assert OpConfig.from_env() == OpConfig(operation="keygen", iterations=100, message_size=32, deterministic=True)
    assert OPERATIONS == ("keygen", "sign", "verify")


def test_bench_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAMPORT_MESSAGE_SIZE", "64")
    monkeypatch.setenv("LAMPORT_ITERATIONS", "5")
    monkeypatch.setenv("LAMPORT_DETERMINISTIC", "0")
    assert BenchConfig.from_env() == BenchConfig(message_size=64, iterations=5, deterministic=False)


def test_op_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPERATION", "sign")
    monkeypatch.setenv("ITERATIONS", "7")
    monkeypatch.setenv("MSG_SIZE", "128")
    monkeypatch.setenv("DETERMINISTIC_RNG", "YES")
    assert OpConfig.from_env() == OpConfig(operation="sign", iterations=7, message_size=128, deterministic=True)


@pytest.mark.parametrize("raw", ["1", "true", "TRUE", "yes", "YES"])
def test_true_spellings(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("DETERMINISTIC_RNG", raw)
    assert parse_bool_env("DETERMINISTIC_RNG", False) is True


@pytest.mark.parametrize("raw", ["0", "false", "True", "on", ""])
def test_everything_else_is_false(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("DETERMINISTIC_RNG", raw)
    assert parse_bool_env("DETERMINISTIC_RNG", True) is False


def test_int_parsing_errors_name_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MSG_SIZE", "12kb")
    with pytest.raises(ValueError, match="MSG_SIZE must be an integer"):
        parse_int_env("MSG_SIZE", 32)

    monkeypatch.setenv("MSG_SIZE", "-1")
    with pytest.raises(ValueError, match="MSG_SIZE must be non-negative"):
        parse_int_env("MSG_SIZE", 32)


def test_unset_int_falls_back_to_default() -> None:
    assert parse_int_env("ITERATIONS", 9) == 9
