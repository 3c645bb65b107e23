"""Fire-and-forget execution of submitted load tests.

``submit`` persists a ``running`` record and returns its ID straight away;
the test itself runs in a background asyncio task whose only way of
reporting back is the single terminal write to that record. Polling
clients see ``running`` until that write lands.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from stampede.config import Settings
from stampede.db.repositories import LoadTestRepository, TerminalUpdate
from stampede.db.session import Database, get_database
from stampede.domain import LoadTestConfig
from stampede.engine import K6Executor, LoadTestRunner
from stampede.middleware import test_id_var

logger = logging.getLogger(__name__)

SHUTDOWN_MESSAGE = "Load test interrupted by server shutdown"


class LoadTestOrchestrator:
    """Owns the running → completed/failed lifecycle of load test records."""

    def __init__(
        self,
        *,
        runner: LoadTestRunner,
        database: Database | None = None,
    ) -> None:
        self._runner = runner
        self._database = database
        self._tasks: set[asyncio.Task[None]] = set()
        self._stopping = False

    @classmethod
    def from_settings(
        cls, settings: Settings, *, database: Database | None = None
    ) -> LoadTestOrchestrator:
        executor = K6Executor(binary=settings.k6_binary, script_dir=settings.script_dir)
        runner = LoadTestRunner(executor=executor, samples=settings.timeseries_samples)
        return cls(runner=runner, database=database)

    @property
    def _db(self) -> Database:
        return self._database if self._database is not None else get_database()

    @property
    def in_flight(self) -> int:
        """Number of background runs that have not finished yet."""
        return len(self._tasks)

    async def submit(self, config: LoadTestConfig, owner_id: str) -> str:
        """
        Record a new test as ``running`` and start it in the background.

        Returns:
            The new test ID, before the run has finished.

        Raises:
            ConfigurationError: If the configuration is invalid. Nothing is
                persisted or spawned in that case.
            RuntimeError: If the orchestrator is shutting down.
        """
        config.validate()
        if self._stopping:
            raise RuntimeError("Orchestrator is shutting down")

        # The row must be committed before the task can race to update it.
        async with self._db.session() as session:
            record = await LoadTestRepository(session).create(owner_id, config)
            test_id = record.id

        logger.info(
            "Submitted load test %s: %s %s at %d rps for %s",
            test_id,
            config.method,
            config.target_url,
            config.rps,
            config.duration,
        )
        task = asyncio.create_task(self._run(test_id, config), name=f"load-test-{test_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return test_id

    async def _run(self, test_id: str, config: LoadTestConfig) -> None:
        token = test_id_var.set(test_id)
        try:
            try:
                outcome = await self._runner.run(config)
            except asyncio.CancelledError:
                await self._finish(
                    test_id,
                    TerminalUpdate.failed(
                        error=SHUTDOWN_MESSAGE, completed_at=datetime.now(UTC)
                    ),
                )
                raise
            except Exception as exc:
                logger.error("Load test %s failed: %s", test_id, exc)
                await self._finish(
                    test_id,
                    TerminalUpdate.failed(
                        error=str(exc) or type(exc).__name__,
                        completed_at=datetime.now(UTC),
                    ),
                )
                return

            metrics = outcome.metrics
            logger.info(
                "Load test %s completed: %d requests, %.2f%% errors, p95=%.1fms",
                test_id,
                metrics.total_requests,
                metrics.error_rate,
                metrics.p95_latency_ms,
            )
            await self._finish(
                test_id,
                TerminalUpdate.completed(
                    metrics=metrics,
                    time_series=outcome.time_series,
                    completed_at=outcome.execution.finished_at,
                ),
            )
        finally:
            test_id_var.reset(token)

    async def _finish(self, test_id: str, change: TerminalUpdate) -> bool:
        """Write the terminal state. Errors are logged, never raised."""
        try:
            async with self._db.session() as session:
                applied = await LoadTestRepository(session).update_by_id(test_id, change)
        except Exception:
            logger.exception(
                "Could not record %s for load test %s; it stays running",
                change.status,
                test_id,
            )
            return False

        if not applied:
            logger.warning(
                "Load test %s was deleted or already terminal; %s not recorded",
                test_id,
                change.status,
            )
        return applied

    async def wait_idle(self) -> None:
        """Wait until every background run started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel in-flight runs, marking their records failed."""
        self._stopping = True
        tasks = list(self._tasks)
        if not tasks:
            return
        logger.info("Cancelling %d in-flight load test(s)", len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


_orchestrator: LoadTestOrchestrator | None = None


def register_orchestrator(orchestrator: LoadTestOrchestrator | None) -> None:
    global _orchestrator
    _orchestrator = orchestrator


def get_orchestrator() -> LoadTestOrchestrator:
    """Get the process-wide orchestrator."""
    if _orchestrator is None:
        raise RuntimeError("Orchestrator not initialized")
    return _orchestrator
