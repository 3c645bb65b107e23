from __future__ import annotations

import stat
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
import pytest_asyncio

import stampede.db.session as session_module
import stampede.services.orchestrator as orchestrator_module
from stampede.config import get_settings
from stampede.db.session import Database
from stampede.db.session import init_database as _init_database
from stampede.domain import HttpMethod, LoadTestConfig


@dataclass
class FakeK6:
    """A shell script standing in for the k6 binary."""

    binary: Path
    captured_script: Path
    seen_paths: Path


@pytest_asyncio.fixture
async def sqlite_db(tmp_path: Path) -> AsyncIterator[Database]:
    db_path = tmp_path / "stampede-test.db"
    db = _init_database(f"sqlite+aiosqlite:///{db_path}")
    await db.connect()
    await db.create_tables()
    try:
        yield db
    finally:
        await db.disconnect()
        session_module._database = None  # type: ignore[attr-defined]


@pytest.fixture
def make_fake_k6(tmp_path: Path) -> Callable[..., FakeK6]:
    """Build an executable that prints a canned report and exits with ``exit_code``.

    The script it was handed is copied aside so tests can inspect it after
    the real temp file has been removed.
    """
    counter = iter(range(1_000))

    def _make(
        report: str = "",
        *,
        exit_code: int = 0,
        stderr: str = "",
        sleep_seconds: float = 0,
    ) -> FakeK6:
        n = next(counter)
        root = tmp_path / f"fake-k6-{n}"
        root.mkdir()
        report_path = root / "report.txt"
        report_path.write_text(report, encoding="utf-8")
        captured = root / "captured.js"
        seen = root / "seen-paths.txt"

        lines = [
            "#!/bin/sh",
            f'cp "$2" "{captured}"',
            f'echo "$2" >> "{seen}"',
            f'cat "{report_path}"',
        ]
        if stderr:
            err_path = root / "stderr.txt"
            err_path.write_text(stderr, encoding="utf-8")
            lines.append(f'cat "{err_path}" 1>&2')
        if sleep_seconds:
            lines.append(f"exec sleep {sleep_seconds}")
        lines.append(f"exit {exit_code}")

        binary = root / "k6"
        binary.write_text("\n".join(lines) + "\n", encoding="utf-8")
        binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeK6(binary=binary, captured_script=captured, seen_paths=seen)

    return _make


@pytest.fixture
def sample_config() -> LoadTestConfig:
    return LoadTestConfig(
        target_url="https://example.test/api",
        method=HttpMethod.GET,
        rps=10,
        duration="10s",
    )


@pytest.fixture(autouse=True)
def _reset_globals():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    orchestrator_module._orchestrator = None  # type: ignore[attr-defined]
    session_module._database = None  # type: ignore[attr-defined]
