"""API request/response contracts."""

from stampede.contracts.auth import MeResponse, SignupRequest, SignupResponse
from stampede.contracts.health import DependencyHealth, HealthResponse
from stampede.contracts.load_tests import (
    SYNTHETIC_SERIES_NOTE,
    DeleteTestResponse,
    LoadTestConfigResponse,
    LoadTestListItem,
    LoadTestListResponse,
    LoadTestResultResponse,
    LoadTestSummary,
    RunTestRequest,
    RunTestResponse,
    SamplePointResponse,
    TimeSeriesResponse,
)

__all__ = [
    "DeleteTestResponse",
    "DependencyHealth",
    "HealthResponse",
    "LoadTestConfigResponse",
    "LoadTestListItem",
    "LoadTestListResponse",
    "LoadTestResultResponse",
    "LoadTestSummary",
    "MeResponse",
    "RunTestRequest",
    "RunTestResponse",
    "SYNTHETIC_SERIES_NOTE",
    "SamplePointResponse",
    "SignupRequest",
    "SignupResponse",
    "TimeSeriesResponse",
]
