"""Script → engine → parser → series pipeline for a single test run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from stampede.domain import AggregateMetrics, LoadTestConfig, TimeSeries
from stampede.engine.executor import ExecutionResult
from stampede.engine.parser import parse_output
from stampede.engine.script import generate_script
from stampede.engine.timeseries import DEFAULT_SAMPLES, synthesize_time_series
from stampede.errors import ExecutionError

logger = logging.getLogger(__name__)


class ScriptExecutor(Protocol):
    async def run(self, script: str) -> ExecutionResult: ...


@dataclass(frozen=True)
class LoadTestOutcome:
    """Everything a completed run writes back to its record."""

    metrics: AggregateMetrics
    time_series: TimeSeries
    execution: ExecutionResult


class LoadTestRunner:
    """Runs one load test end to end and returns its parsed outcome."""

    def __init__(
        self,
        *,
        executor: ScriptExecutor,
        samples: int = DEFAULT_SAMPLES,
    ) -> None:
        self._executor = executor
        self._samples = samples

    async def run(self, config: LoadTestConfig) -> LoadTestOutcome:
        """
        Execute ``config`` and parse the engine report.

        A non-zero engine exit is tolerated as long as the report shows
        traffic; partial results are kept in that case.

        Raises:
            ScriptGenerationError: If no script can be built for ``config``.
            ExecutionError: If the engine failed to start, or exited non-zero
                without reporting any requests.
        """
        script = generate_script(config)
        execution = await self._executor.run(script)
        metrics = parse_output(execution.output)

        if not execution.succeeded:
            if metrics.total_requests == 0:
                note = f"Load engine failed ({execution.returncode})"
                tail = execution.output_tail
                if tail:
                    note += f": {tail}"
                raise ExecutionError(
                    note,
                    returncode=execution.returncode,
                    output_tail=tail,
                )
            logger.warning(
                "Load engine exited with %s but reported %d requests; keeping results",
                execution.returncode,
                metrics.total_requests,
            )

        time_series = synthesize_time_series(
            metrics,
            execution.started_at,
            execution.finished_at,
            samples=self._samples,
        )
        return LoadTestOutcome(
            metrics=metrics,
            time_series=time_series,
            execution=execution,
        )
