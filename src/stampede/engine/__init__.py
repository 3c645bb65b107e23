"""Load test engine: script generation, execution and report parsing."""

from stampede.engine.executor import ExecutionResult, K6Executor, script_file
from stampede.engine.parser import (
    LatencyFields,
    extract_error_rate,
    extract_failed_count,
    extract_latency,
    extract_request_count,
    extract_throughput,
    parse_output,
)
from stampede.engine.runner import LoadTestOutcome, LoadTestRunner, ScriptExecutor
from stampede.engine.script import MAX_VUS, compute_vus, generate_script
from stampede.engine.timeseries import DEFAULT_SAMPLES, synthesize_time_series

__all__ = [
    "DEFAULT_SAMPLES",
    "ExecutionResult",
    "K6Executor",
    "LatencyFields",
    "LoadTestOutcome",
    "LoadTestRunner",
    "MAX_VUS",
    "ScriptExecutor",
    "compute_vus",
    "extract_error_rate",
    "extract_failed_count",
    "extract_latency",
    "extract_request_count",
    "extract_throughput",
    "generate_script",
    "parse_output",
    "script_file",
    "synthesize_time_series",
]
