from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from stampede.engine import K6Executor, script_file
from stampede.engine.executor import OUTPUT_TAIL_CHARS, ExecutionResult
from stampede.errors import ExecutionError
from tests._fixtures.reports import K6_REPORT
from tests._fixtures.time import run_window


def _seen_paths(fake) -> list[Path]:
    return [Path(line) for line in fake.seen_paths.read_text().splitlines() if line]


def test_script_file_is_unique_and_removed(tmp_path: Path) -> None:
    with script_file("one", directory=tmp_path) as first, script_file(
        "two", directory=tmp_path
    ) as second:
        assert first != second
        assert first.name.startswith("stampede-")
        assert first.suffix == ".js"
        assert first.read_text() == "one"
        assert second.read_text() == "two"

    assert not first.exists()
    assert not second.exists()


def test_script_file_is_removed_when_block_raises(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        with script_file("boom", directory=tmp_path / "nested") as path:
            assert path.parent == tmp_path / "nested"
            raise RuntimeError("engine crashed")

    assert not path.exists()


def test_execution_result_helpers() -> None:
    start, end = run_window(12.5)
    result = ExecutionResult(
        output="x" * 1000 + "\nlast line\n",
        returncode=99,
        started_at=start,
        finished_at=end,
    )

    assert not result.succeeded
    assert result.duration_seconds == 12.5
    assert len(result.output_tail) == OUTPUT_TAIL_CHARS
    assert result.output_tail.endswith("last line")


@pytest.mark.asyncio
async def test_run_captures_output_and_removes_script(tmp_path: Path, make_fake_k6) -> None:
    fake = make_fake_k6(K6_REPORT)
    executor = K6Executor(binary=str(fake.binary), script_dir=tmp_path / "scripts")

    result = await executor.run("export default function () {}")

    assert result.succeeded
    assert result.returncode == 0
    assert "http_reqs" in result.output
    assert result.finished_at >= result.started_at
    assert fake.captured_script.read_text() == "export default function () {}"
    (script_path,) = _seen_paths(fake)
    assert script_path.parent == tmp_path / "scripts"
    assert not script_path.exists()
    assert list((tmp_path / "scripts").iterdir()) == []


@pytest.mark.asyncio
async def test_run_reports_nonzero_exit_and_merges_stderr(tmp_path: Path, make_fake_k6) -> None:
    fake = make_fake_k6(
        "http_reqs: 5 1/s\n",
        exit_code=99,
        stderr="thresholds on metrics 'failed_requests' have been crossed\n",
    )
    executor = K6Executor(binary=str(fake.binary), script_dir=tmp_path)

    result = await executor.run("// script")

    assert result.returncode == 99
    assert not result.succeeded
    assert "http_reqs: 5" in result.output
    assert "have been crossed" in result.output
    (script_path,) = _seen_paths(fake)
    assert not script_path.exists()


@pytest.mark.asyncio
async def test_missing_binary_raises_execution_error(tmp_path: Path) -> None:
    executor = K6Executor(binary=str(tmp_path / "no-such-k6"), script_dir=tmp_path / "s")

    with pytest.raises(ExecutionError, match="Failed to start load engine"):
        await executor.run("// script")

    assert list((tmp_path / "s").iterdir()) == []


@pytest.mark.asyncio
async def test_concurrent_runs_use_distinct_script_files(tmp_path: Path, make_fake_k6) -> None:
    fake = make_fake_k6("http_reqs: 1 1/s\n")
    executor = K6Executor(binary=str(fake.binary), script_dir=tmp_path / "scripts")

    results = await asyncio.gather(*(executor.run(f"// run {i}") for i in range(5)))

    assert all(r.succeeded for r in results)
    paths = _seen_paths(fake)
    assert len(paths) == 5
    assert len(set(paths)) == 5
    assert not any(p.exists() for p in paths)


@pytest.mark.asyncio
async def test_cancelled_run_kills_engine_and_removes_script(
    tmp_path: Path, make_fake_k6
) -> None:
    fake = make_fake_k6("", sleep_seconds=30)
    executor = K6Executor(binary=str(fake.binary), script_dir=tmp_path / "scripts")

    task = asyncio.create_task(executor.run("// long run"))
    for _ in range(200):
        if fake.seen_paths.exists():
            break
        await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert list((tmp_path / "scripts").iterdir()) == []
