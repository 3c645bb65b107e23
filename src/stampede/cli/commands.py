"""Offline commands: build scripts, parse reports, run a test locally."""

import asyncio
import json
from pathlib import Path

import typer
from rich.markup import escape

from stampede.cli._console import (
    console,
    error,
    info,
    metrics_table,
    nl,
    setup_logging,
    success,
    warning,
)
from stampede.config import get_settings
from stampede.domain import HttpMethod, LoadTestConfig
from stampede.engine import K6Executor, LoadTestRunner, generate_script, parse_output
from stampede.errors import ConfigurationError, ExecutionError


def _parse_headers(raw: list[str] | None) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in raw or []:
        if ":" not in item:
            error(f"Invalid header {item!r} (expected Name: value)")
            raise typer.Exit(1)
        name, value = item.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers


def _build_config(
    url: str,
    method: HttpMethod,
    rps: int,
    duration: str,
    headers: list[str] | None,
    body: str | None,
) -> LoadTestConfig:
    config = LoadTestConfig(
        target_url=url,
        method=method,
        rps=rps,
        duration=duration,
        headers=_parse_headers(headers),
        body=body,
    )
    try:
        return config.validate()
    except ConfigurationError as e:
        error(escape(str(e)))
        raise typer.Exit(1)


def script(
    url: str = typer.Argument(..., help="Target URL (http:// or https://)"),
    method: HttpMethod = typer.Option(HttpMethod.GET, "--method", "-X", help="HTTP method"),
    rps: int = typer.Option(10, "--rps", help="Target requests per second"),
    duration: str = typer.Option("15s", "--duration", "-d", help="e.g. 30s, 2m"),
    header: list[str] = typer.Option(None, "--header", "-H", help="Name: value"),
    body: str | None = typer.Option(None, "--body", help="Request body (POST/PUT)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Print the k6 script that would be run for a test."""
    config = _build_config(url, method, rps, duration, header, body)
    source = generate_script(config)
    if output is None:
        typer.echo(source)
        return
    output.write_text(source, encoding="utf-8")
    success(f"Script written to {output}")


def parse(
    report: Path = typer.Argument(..., exists=True, dir_okay=False, help="k6 text report"),
    as_json: bool = typer.Option(False, "--json", help="Print metrics as JSON"),
) -> None:
    """Extract aggregate metrics from a saved k6 report."""
    metrics = parse_output(report.read_text(encoding="utf-8", errors="replace"))
    if as_json:
        typer.echo(json.dumps(metrics.to_dict(), indent=2))
        return
    if metrics.total_requests == 0:
        warning("No requests found in report")
    console.print(metrics_table(metrics, title=report.name))


def run(
    url: str = typer.Argument(..., help="Target URL (http:// or https://)"),
    method: HttpMethod = typer.Option(HttpMethod.GET, "--method", "-X", help="HTTP method"),
    rps: int = typer.Option(10, "--rps", help="Target requests per second"),
    duration: str = typer.Option("15s", "--duration", "-d", help="e.g. 30s, 2m"),
    header: list[str] = typer.Option(None, "--header", "-H", help="Name: value"),
    body: str | None = typer.Option(None, "--body", help="Request body (POST/PUT)"),
    k6_binary: str | None = typer.Option(
        None, "--k6", help="k6 binary (overrides STAMPEDE_K6_BINARY)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run one load test in the foreground, without the server."""
    setup_logging(verbose=verbose)
    settings = get_settings()
    config = _build_config(url, method, rps, duration, header, body)

    executor = K6Executor(
        binary=k6_binary or settings.k6_binary,
        script_dir=settings.script_dir,
    )
    runner = LoadTestRunner(executor=executor, samples=settings.timeseries_samples)

    nl()
    info(f"{config.method} {config.target_url} at {config.rps} rps for {config.duration}")
    try:
        outcome = asyncio.run(runner.run(config))
    except ExecutionError as e:
        error(escape(str(e)))
        raise typer.Exit(1)

    if not outcome.execution.succeeded:
        warning(f"k6 exited with {outcome.execution.returncode} (thresholds breached?)")
    console.print(metrics_table(outcome.metrics))
    nl()
