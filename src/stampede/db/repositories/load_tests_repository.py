"""Repository for load test records."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stampede.db.repositories.models import TerminalUpdate
from stampede.db.tables import LoadTest
from stampede.domain import LoadTestConfig, LoadTestStatus


class LoadTestRepository:
    """
    Repository for load test operations.

    Every read or delete made on behalf of a user goes through the
    ``*_and_owner`` variants; the unscoped ``get_by_id`` is for the
    orchestrator, which only touches records it created.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        owner_id: str,
        config: LoadTestConfig,
        *,
        started_at: datetime | None = None,
    ) -> LoadTest:
        """
        Create a ``running`` record for a freshly submitted test.

        Returns:
            The flushed record, with its generated ID.
        """
        now = started_at or datetime.now(UTC)
        record = LoadTest(
            owner_id=owner_id,
            target_url=config.target_url,
            method=str(config.method),
            headers=dict(config.headers),
            body=config.body,
            rps=config.rps,
            duration=config.duration,
            status=LoadTestStatus.RUNNING.value,
            started_at=now,
            created_at=now,
            updated_at=now,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def update_by_id(self, test_id: str, change: TerminalUpdate) -> bool:
        """
        Apply the terminal transition for a test.

        The UPDATE only matches a ``running`` row, so a test can leave
        ``running`` once and never move again.

        Returns:
            True if the transition was applied, False if the test does not
            exist or is already terminal.
        """
        values = change.to_values()
        values["updated_at"] = datetime.now(UTC)
        stmt = (
            update(LoadTest)
            .where(
                LoadTest.id == test_id,
                LoadTest.status == LoadTestStatus.RUNNING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def get_by_id(self, test_id: str) -> LoadTest | None:
        """Get a test by ID, regardless of owner."""
        result = await self._session.execute(
            select(LoadTest).where(LoadTest.id == test_id)
        )
        return result.scalar_one_or_none()

    async def get_by_id_and_owner(self, test_id: str, owner_id: str) -> LoadTest | None:
        """Get a test by ID if it belongs to ``owner_id``."""
        result = await self._session.execute(
            select(LoadTest).where(
                LoadTest.id == test_id,
                LoadTest.owner_id == owner_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_owner(
        self,
        owner_id: str,
        *,
        status: LoadTestStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LoadTest]:
        """List an owner's tests, newest first."""
        query = (
            select(LoadTest)
            .where(LoadTest.owner_id == owner_id)
            .order_by(LoadTest.created_at.desc(), LoadTest.id.desc())
        )
        if status is not None:
            query = query.where(LoadTest.status == status.value)
        query = query.limit(limit).offset(offset)

        result = await self._session.execute(query)
        return list(result.scalars().all())

    async def count_for_owner(
        self, owner_id: str, *, status: LoadTestStatus | None = None
    ) -> int:
        query = select(func.count(LoadTest.id)).where(LoadTest.owner_id == owner_id)
        if status is not None:
            query = query.where(LoadTest.status == status.value)
        result = await self._session.execute(query)
        return int(result.scalar_one() or 0)

    async def delete_by_id_and_owner(
        self, test_id: str, owner_id: str
    ) -> LoadTest | None:
        """
        Delete a test owned by ``owner_id``.

        Returns:
            The deleted record, or None if no such test exists for this
            owner. A test owned by someone else looks exactly like a
            missing one.
        """
        record = await self.get_by_id_and_owner(test_id, owner_id)
        if record is None:
            return None
        await self._session.delete(record)
        await self._session.flush()
        return record
