from __future__ import annotations
from pathlib import Path
import logging
import subprocess
import sys
from typing import List, Optional

import typer

from hbsbench import registry
from .runners.common import _load_adapters
from .runners.lamport import app as lamport_app

app = typer.Typer(add_completion=False, help="Hash-based signature benchmarking CLI")
app.add_typer(lamport_app, name="lamport")

@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

@app.command()
def list_algos():
    """List registered algorithms available via adapters."""
    _load_adapters()
    for name in registry.list().keys():
        typer.echo(f"- {name}")

@app.command()
def demo(name: str, message: str = "hello"):
    """Run a tiny demo with the selected algorithm (keygen + sign + verify)."""
    _load_adapters()
    try:
        algo_cls = registry.get(name)
    except KeyError as exc:
        typer.echo(str(exc.args[0]), err=True)
        raise typer.Exit(code=1)
    try:
        algo = algo_cls()
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1)
    if not hasattr(algo, "keygen"):
        typer.echo("Algorithm missing keygen")
        raise typer.Exit(code=1)
    payload = message.encode("utf-8")
    pk, sk = algo.keygen()
    sig = algo.sign(sk, payload)
    ok = algo.verify(pk, payload, sig)
    typer.echo(f"[SIG] {name}: verify={ok} (pk={len(pk)}B sk={len(sk)}B sig={len(sig)}B)")

@app.command("run-tests")
def run_tests(
    pytest_args: Optional[List[str]] = typer.Argument(
        None,
        metavar="PYTEST_ARGS...",
        help="Extra arguments forwarded to pytest (after default targets).",
    ),
) -> None:
    """Execute the repository test suite via pytest."""
    repo_root = Path.cwd()
    command = [sys.executable, "-m", "pytest"]

    root_tests = repo_root / "tests"
    if root_tests.exists():
        command.append(str(root_tests))
    else:
        typer.echo("Warning: `tests/` directory not found relative to current working directory.", err=True)

    if pytest_args:
        command.extend(pytest_args)

    typer.echo(f"Running pytest via: {' '.join(command)}")
    outcome = subprocess.run(command, cwd=repo_root)
    raise typer.Exit(outcome.returncode)

def app_main():
    app()

if __name__ == "__main__":
    app_main()
