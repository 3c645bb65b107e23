"""Typed repository-layer request models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from stampede.domain import AggregateMetrics, LoadTestStatus, TimeSeries


@dataclass(frozen=True)
class TerminalUpdate:
    """
    The single write that ends a test run.

    Metrics and series are optional: a failed run usually carries neither.
    """

    status: LoadTestStatus
    completed_at: datetime
    metrics: AggregateMetrics | None = None
    time_series: TimeSeries | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not LoadTestStatus.RUNNING.can_transition_to(self.status):
            raise ValueError(f"Terminal update requires a terminal status, got {self.status}")

    @classmethod
    def completed(
        cls,
        *,
        metrics: AggregateMetrics,
        time_series: TimeSeries,
        completed_at: datetime,
    ) -> TerminalUpdate:
        return cls(
            status=LoadTestStatus.COMPLETED,
            completed_at=completed_at,
            metrics=metrics,
            time_series=time_series,
        )

    @classmethod
    def failed(cls, *, error: str, completed_at: datetime) -> TerminalUpdate:
        return cls(status=LoadTestStatus.FAILED, completed_at=completed_at, error=error)

    def to_values(self) -> dict[str, Any]:
        """Column values for the UPDATE statement."""
        values: dict[str, Any] = {
            "status": self.status.value,
            "completed_at": self.completed_at,
            "error": self.error,
        }
        if self.metrics is not None:
            values.update(
                total_requests=self.metrics.total_requests,
                failed_requests=self.metrics.failed_requests,
                avg_latency_ms=self.metrics.avg_latency_ms,
                p95_latency_ms=self.metrics.p95_latency_ms,
                p99_latency_ms=self.metrics.p99_latency_ms,
                error_rate=self.metrics.error_rate,
                observed_rps=self.metrics.rps,
            )
        if self.time_series is not None:
            values["time_series"] = self.time_series.to_dict()
        return values
