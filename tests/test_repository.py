from __future__ import annotations

from datetime import timedelta

import pytest

from stampede.db.repositories import AuthRepository, LoadTestRepository, TerminalUpdate
from stampede.db.repositories.auth_repository import API_KEY_PREFIX, hash_api_key
from stampede.domain import AggregateMetrics, HttpMethod, LoadTestConfig, LoadTestStatus
from stampede.engine import synthesize_time_series
from tests._fixtures.time import naive_utc, run_window, utc_dt

METRICS = AggregateMetrics(
    total_requests=240,
    failed_requests=30,
    avg_latency_ms=120.5,
    p95_latency_ms=180.2,
    p99_latency_ms=250.75,
    error_rate=12.5,
    rps=24.0,
)


def _config(**overrides) -> LoadTestConfig:
    fields = {
        "target_url": "https://svc.local/items",
        "method": HttpMethod.POST,
        "rps": 10,
        "duration": "10s",
        "headers": {"Content-Type": "application/json"},
        "body": "{}",
    }
    fields.update(overrides)
    return LoadTestConfig(**fields)


def test_terminal_update_requires_terminal_status() -> None:
    with pytest.raises(ValueError):
        TerminalUpdate(status=LoadTestStatus.RUNNING, completed_at=utc_dt(2026, 3, 1))

    failed = TerminalUpdate.failed(error="boom", completed_at=utc_dt(2026, 3, 1))
    assert failed.to_values() == {
        "status": "failed",
        "completed_at": utc_dt(2026, 3, 1),
        "error": "boom",
    }


def test_completed_update_maps_metrics_to_columns() -> None:
    start, end = run_window(10)
    series = synthesize_time_series(METRICS, start, end, samples=2)

    values = TerminalUpdate.completed(
        metrics=METRICS, time_series=series, completed_at=end
    ).to_values()

    assert values["status"] == "completed"
    assert values["error"] is None
    assert values["observed_rps"] == 24.0
    assert values["failed_requests"] == 30
    assert len(values["time_series"]["latency"]) == 2


@pytest.mark.asyncio
async def test_create_and_fetch_running_record(sqlite_db) -> None:
    start, _ = run_window(10)
    async with sqlite_db.session() as session:
        record = await LoadTestRepository(session).create(
            "owner-a", _config(), started_at=start
        )
        test_id = record.id

    async with sqlite_db.session() as session:
        fetched = await LoadTestRepository(session).get_by_id(test_id)

    assert fetched is not None
    assert fetched.status == LoadTestStatus.RUNNING.value
    assert fetched.owner_id == "owner-a"
    assert fetched.config == _config()
    assert fetched.metrics is None
    assert fetched.series is None
    assert fetched.completed_at is None
    assert fetched.duration_ms is None
    assert naive_utc(fetched.started_at) == naive_utc(start)


@pytest.mark.asyncio
async def test_update_by_id_applies_exactly_once(sqlite_db) -> None:
    start, end = run_window(10)
    async with sqlite_db.session() as session:
        test_id = (await LoadTestRepository(session).create("o", _config(), started_at=start)).id

    completed = TerminalUpdate.completed(
        metrics=METRICS,
        time_series=synthesize_time_series(METRICS, start, end, samples=5),
        completed_at=end,
    )
    async with sqlite_db.session() as session:
        assert await LoadTestRepository(session).update_by_id(test_id, completed) is True

    late_failure = TerminalUpdate.failed(error="too late", completed_at=end)
    async with sqlite_db.session() as session:
        assert await LoadTestRepository(session).update_by_id(test_id, late_failure) is False

    async with sqlite_db.session() as session:
        record = await LoadTestRepository(session).get_by_id(test_id)

    assert record is not None
    assert record.status == "completed"
    assert record.error is None
    assert record.metrics == METRICS
    assert record.series is not None and len(record.series) == 5
    assert record.duration_ms == 10_000


@pytest.mark.asyncio
async def test_update_missing_record_is_not_applied(sqlite_db) -> None:
    change = TerminalUpdate.failed(error="x", completed_at=utc_dt(2026, 3, 1))
    async with sqlite_db.session() as session:
        assert await LoadTestRepository(session).update_by_id("missing", change) is False


@pytest.mark.asyncio
async def test_owner_scoped_reads_list_and_delete(sqlite_db) -> None:
    base = utc_dt(2026, 3, 1, 12)
    async with sqlite_db.session() as session:
        repo = LoadTestRepository(session)
        older = await repo.create("alice", _config(rps=1), started_at=base)
        newer = await repo.create(
            "alice", _config(rps=2), started_at=base + timedelta(minutes=1)
        )
        other = await repo.create("bob", _config(rps=3), started_at=base)
        ids = (older.id, newer.id, other.id)

    async with sqlite_db.session() as session:
        await LoadTestRepository(session).update_by_id(
            ids[0], TerminalUpdate.failed(error="x", completed_at=base)
        )

    async with sqlite_db.session() as session:
        repo = LoadTestRepository(session)
        listed = await repo.list_for_owner("alice")
        running = await repo.list_for_owner("alice", status=LoadTestStatus.RUNNING)
        assert [r.id for r in listed] == [ids[1], ids[0]]
        assert [r.id for r in running] == [ids[1]]
        assert await repo.count_for_owner("alice") == 2
        assert await repo.count_for_owner("alice", status=LoadTestStatus.FAILED) == 1
        assert [r.id for r in await repo.list_for_owner("alice", limit=1, offset=1)] == [
            ids[0]
        ]

        assert await repo.get_by_id_and_owner(ids[2], "alice") is None
        assert await repo.delete_by_id_and_owner(ids[2], "alice") is None

        deleted = await repo.delete_by_id_and_owner(ids[1], "alice")
        assert deleted is not None and deleted.id == ids[1]

    async with sqlite_db.session() as session:
        repo = LoadTestRepository(session)
        assert await repo.get_by_id(ids[1]) is None
        assert await repo.get_by_id(ids[2]) is not None
        # The run for a deleted test finishing later is silently dropped.
        change = TerminalUpdate.failed(error="late", completed_at=base)
        assert await repo.update_by_id(ids[1], change) is False


@pytest.mark.asyncio
async def test_auth_repository_users_and_keys(sqlite_db) -> None:
    async with sqlite_db.session() as session:
        repo = AuthRepository(session)
        user = await repo.create_user("carol")
        api_key, raw_key = await repo.create_api_key(user.id)

        with pytest.raises(ValueError, match="already exists"):
            await repo.create_user("carol")

    assert raw_key.startswith(API_KEY_PREFIX)
    assert api_key.key_prefix == raw_key[:12]
    assert api_key.key_hash == hash_api_key(raw_key)

    async with sqlite_db.session() as session:
        repo = AuthRepository(session)
        found = await repo.get_api_key_by_hash(hash_api_key(raw_key))
        assert found is not None and found.user_id == user.id
        assert (await repo.get_user_by_username("carol")).id == user.id  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_seed_admin_api_key_is_idempotent(sqlite_db) -> None:
    for _ in range(2):
        async with sqlite_db.session() as session:
            await AuthRepository(session).seed_admin_api_key("seed-key-123")

    async with sqlite_db.session() as session:
        repo = AuthRepository(session)
        admin = await repo.get_user_by_username("admin")
        key = await repo.get_api_key_by_hash(hash_api_key("seed-key-123"))

    assert admin is not None and admin.is_admin
    assert key is not None and key.user_id == admin.id


@pytest.mark.asyncio
async def test_database_ping_and_session_rollback(sqlite_db) -> None:
    await sqlite_db.ping()
    assert sqlite_db.is_sqlite

    with pytest.raises(RuntimeError, match="abort"):
        async with sqlite_db.session() as session:
            await LoadTestRepository(session).create("owner-x", _config())
            raise RuntimeError("abort")

    async with sqlite_db.session() as session:
        assert await LoadTestRepository(session).count_for_owner("owner-x") == 0

    await sqlite_db.drop_tables()
    await sqlite_db.create_tables()
    await sqlite_db.disconnect()
    with pytest.raises(RuntimeError, match="not connected"):
        await sqlite_db.ping()
    await sqlite_db.connect()
