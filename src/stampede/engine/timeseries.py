"""Synthetic time series shaped from aggregate metrics.

k6's text summary only carries run-level aggregates, so the series produced
here are not measurements. They are a deterministic, smooth shaping of the
aggregates across the run window, meant for plotting. Identical metrics and
window always yield identical series.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from stampede.domain import AggregateMetrics, SamplePoint, TimeSeries

DEFAULT_SAMPLES = 50


def synthesize_time_series(
    metrics: AggregateMetrics,
    start: datetime,
    end: datetime,
    samples: int = DEFAULT_SAMPLES,
) -> TimeSeries:
    """
    Expand aggregate metrics into three parallel sample series.

    Args:
        metrics: Aggregates parsed from the engine report.
        start: Run start instant.
        end: Run end instant.
        samples: Number of points per series.

    Returns:
        Latency, throughput and error-rate series of ``samples`` points each.
    """
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")

    duration_seconds = math.floor((end - start).total_seconds())
    interval = max(1, duration_seconds // samples)

    latency: list[SamplePoint] = []
    rps: list[SamplePoint] = []
    error_rate: list[SamplePoint] = []

    for i in range(samples):
        progress = i / samples
        timestamp = start + timedelta(seconds=i * interval)

        latency_value = metrics.avg_latency_ms * (0.5 + 0.5 * math.sin(math.pi * progress))
        rps_value = metrics.rps * (0.8 + 0.2 * math.sin(2 * math.pi * progress))
        error_value = metrics.error_rate * (0.5 + 0.5 * math.sin(3 * math.pi * progress))

        latency.append(SamplePoint(timestamp, max(0.0, latency_value)))
        rps.append(SamplePoint(timestamp, max(0.0, rps_value)))
        error_rate.append(SamplePoint(timestamp, max(0.0, error_value)))

    return TimeSeries(latency=tuple(latency), rps=tuple(rps), error_rate=tuple(error_rate))
