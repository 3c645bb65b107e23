"""Stampede: HTTP load-test orchestration backed by k6."""

from stampede._version import __version__
from stampede.domain import (
    AggregateMetrics,
    HttpMethod,
    LoadTestConfig,
    LoadTestStatus,
)

__all__ = [
    "AggregateMetrics",
    "HttpMethod",
    "LoadTestConfig",
    "LoadTestStatus",
    "__version__",
]
