"""Runs generated scripts through the external k6 binary."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from stampede.errors import ExecutionError

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_BINARY = "k6"
SCRIPT_PREFIX = "stampede-"
SCRIPT_SUFFIX = ".js"
OUTPUT_TAIL_CHARS = 700


@dataclass(frozen=True)
class ExecutionResult:
    """Raw outcome of one engine invocation."""

    output: str
    returncode: int
    started_at: datetime
    finished_at: datetime

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def output_tail(self) -> str:
        return self.output.strip()[-OUTPUT_TAIL_CHARS:]


@contextlib.contextmanager
def script_file(script: str, *, directory: str | Path | None = None) -> Iterator[Path]:
    """
    Write ``script`` to a unique temporary file and remove it on exit.

    Every invocation gets its own path, so concurrent runs never share a
    file. The file is removed however the block exits.
    """
    if directory is not None:
        Path(directory).mkdir(parents=True, exist_ok=True)
    fd, raw_path = tempfile.mkstemp(
        prefix=SCRIPT_PREFIX,
        suffix=SCRIPT_SUFFIX,
        dir=str(directory) if directory is not None else None,
    )
    path = Path(raw_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(script)
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove temporary script %s", path)


class K6Executor:
    """
    Spawns ``k6 run <script>`` and captures its combined output.

    A non-zero exit code is reported, not raised: k6 exits non-zero when a
    threshold is breached even though the report is complete. Only a
    failure to start the process raises.
    """

    def __init__(
        self,
        *,
        binary: str = DEFAULT_ENGINE_BINARY,
        script_dir: str | Path | None = None,
    ) -> None:
        self._binary = binary
        self._script_dir = script_dir

    @property
    def binary(self) -> str:
        return self._binary

    async def run(self, script: str) -> ExecutionResult:
        """
        Run a script to completion.

        Raises:
            ExecutionError: If the engine could not be started.
        """
        with script_file(script, directory=self._script_dir) as path:
            started_at = datetime.now(UTC)
            logger.debug("Starting %s run %s", self._binary, path)
            try:
                proc = await asyncio.create_subprocess_exec(
                    self._binary,
                    "run",
                    str(path),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                )
            except OSError as exc:
                raise ExecutionError(
                    f"Failed to start load engine {self._binary!r}: {exc}"
                ) from exc

            try:
                stdout, _ = await proc.communicate()
            except asyncio.CancelledError:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
                raise
            finished_at = datetime.now(UTC)

        returncode = proc.returncode if proc.returncode is not None else -1
        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        if returncode != 0:
            logger.warning(
                "Load engine exited with code %s after %.1fs",
                returncode,
                (finished_at - started_at).total_seconds(),
            )
        return ExecutionResult(
            output=output,
            returncode=returncode,
            started_at=started_at,
            finished_at=finished_at,
        )
