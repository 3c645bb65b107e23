"""Domain models used by the orchestrator and its collaborators."""

from stampede.domain.load_tests import (
    AggregateMetrics,
    HttpMethod,
    LoadTestConfig,
    LoadTestStatus,
    SamplePoint,
    TimeSeries,
    parse_duration,
)

__all__ = [
    "AggregateMetrics",
    "HttpMethod",
    "LoadTestConfig",
    "LoadTestStatus",
    "SamplePoint",
    "TimeSeries",
    "parse_duration",
]
