"""Best-effort extraction of aggregate metrics from the k6 end-of-run summary.

k6 prints a human-readable summary, for example::

    http_req_duration..............: avg=120.5ms min=98ms med=110ms max=390ms p(90)=150ms p(95)=180.2ms p(99)=250ms
    http_req_failed................: 12.50% 30 out of 240
    http_reqs......................: 240    24.0/s

Each metric is pulled out by a small extractor that looks at a single
line and returns ``None`` when its pattern does not match. ``parse_output``
combines them with zero defaults, so a partial or garbled report degrades
to zeros instead of failing.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from stampede.domain import AggregateMetrics

REQS_MARKER = "http_reqs"
DURATION_MARKER = "http_req_duration"
FAILED_MARKER = "http_req_failed"

_NUMBER = r"(\d+(?:\.\d+)?)"
_REQUEST_COUNT_RE = re.compile(r"http_reqs.*?(\d+)\s+")
_THROUGHPUT_RE = re.compile(_NUMBER + r"\s*/s$")
_PERCENT_RE = re.compile(_NUMBER + r"\s*%")
_FAILED_COUNT_RE = re.compile(r"(\d+)\s+out\s+of\s+\d+")
_LATENCY_UNIT = r"(µs|us|ms|s|m)"
_AVG_RE = re.compile(r"avg=" + _NUMBER + _LATENCY_UNIT)
_P95_RE = re.compile(r"p\(95\)=" + _NUMBER + _LATENCY_UNIT)
_P99_RE = re.compile(r"p\(99\)=" + _NUMBER + _LATENCY_UNIT)

_UNIT_TO_MS = {"µs": 0.001, "us": 0.001, "ms": 1.0, "s": 1000.0, "m": 60_000.0}


@dataclass(frozen=True)
class LatencyFields:
    """Latency values found on an ``http_req_duration`` line, in milliseconds."""

    avg_ms: float | None = None
    p95_ms: float | None = None
    p99_ms: float | None = None


def _to_ms(match: re.Match[str] | None) -> float | None:
    if match is None:
        return None
    return float(match.group(1)) * _UNIT_TO_MS[match.group(2)]


def extract_request_count(line: str) -> int | None:
    """Total request count from an ``http_reqs`` line."""
    if REQS_MARKER not in line:
        return None
    match = _REQUEST_COUNT_RE.search(line)
    return int(match.group(1)) if match else None


def extract_throughput(line: str) -> float | None:
    """Observed requests/second from the trailing ``<n>/s`` of an ``http_reqs`` line."""
    if REQS_MARKER not in line:
        return None
    match = _THROUGHPUT_RE.search(line.rstrip())
    return float(match.group(1)) if match else None


def extract_latency(line: str) -> LatencyFields | None:
    """avg/p(95)/p(99) from an ``http_req_duration`` line."""
    if DURATION_MARKER not in line:
        return None
    fields = LatencyFields(
        avg_ms=_to_ms(_AVG_RE.search(line)),
        p95_ms=_to_ms(_P95_RE.search(line)),
        p99_ms=_to_ms(_P99_RE.search(line)),
    )
    if fields == LatencyFields():
        return None
    return fields


def extract_error_rate(line: str) -> float | None:
    """Failure percentage from an ``http_req_failed`` line."""
    if FAILED_MARKER not in line:
        return None
    match = _PERCENT_RE.search(line)
    return float(match.group(1)) if match else None


def extract_failed_count(line: str) -> int | None:
    """Explicit failed count (``<n> out of <total>``) when k6 prints one."""
    if FAILED_MARKER not in line:
        return None
    match = _FAILED_COUNT_RE.search(line)
    return int(match.group(1)) if match else None


def parse_output(output: str) -> AggregateMetrics:
    """
    Parse a raw k6 report into aggregate metrics.

    Lines may appear in any order. Fields that cannot be found stay zero.

    Raises:
        TypeError: If ``output`` is not a string.
    """
    if not isinstance(output, str):
        raise TypeError(f"Expected report text, got {type(output).__name__}")

    total_requests = 0
    rps = 0.0
    avg = p95 = p99 = 0.0
    error_rate = 0.0
    failed_count: int | None = None

    for line in output.splitlines():
        count = extract_request_count(line)
        if count is not None:
            total_requests = count

        throughput = extract_throughput(line)
        if throughput is not None:
            rps = throughput

        latency = extract_latency(line)
        if latency is not None:
            avg = latency.avg_ms if latency.avg_ms is not None else avg
            p95 = latency.p95_ms if latency.p95_ms is not None else p95
            p99 = latency.p99_ms if latency.p99_ms is not None else p99

        rate = extract_error_rate(line)
        if rate is not None:
            error_rate = min(rate, 100.0)

        explicit_failed = extract_failed_count(line)
        if explicit_failed is not None:
            failed_count = explicit_failed

    if failed_count is None:
        # Half-up, not banker's rounding.
        failed_count = math.floor(error_rate / 100 * total_requests + 0.5)

    return AggregateMetrics(
        total_requests=total_requests,
        failed_requests=min(failed_count, total_requests),
        avg_latency_ms=avg,
        p95_latency_ms=p95,
        p99_latency_ms=p99,
        error_rate=error_rate,
        rps=rps,
    )
