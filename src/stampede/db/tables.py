"""SQLAlchemy models for stampede persistence."""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from stampede.domain import (
    AggregateMetrics,
    LoadTestConfig,
    LoadTestStatus,
    TimeSeries,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all models."""

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


class LoadTest(Base):
    """
    One submitted load test.

    Created ``running`` when the test is submitted, then written exactly once
    more by the background task that runs it, moving it to ``completed`` or
    ``failed``.
    """

    __tablename__ = "load_tests"

    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Configuration snapshot
    target_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    headers: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    rps: Mapped[int] = mapped_column(Integer, nullable=False)
    duration: Mapped[str] = mapped_column(String(20), nullable=False)

    # Status: running, completed, failed
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LoadTestStatus.RUNNING.value
    )

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Aggregate metrics (null until terminal)
    total_requests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    failed_requests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    p95_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    p99_latency_ms: Mapped[float | None] = mapped_column(Float, nullable=True)
    error_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    observed_rps: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Synthetic series, stored as JSON (null until completed)
    time_series: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_load_tests_owner_id", "owner_id"),
        Index("ix_load_tests_status", "status"),
        Index("ix_load_tests_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<LoadTest(id={self.id!r}, target_url={self.target_url!r}, status={self.status!r})>"

    @property
    def config(self) -> LoadTestConfig:
        """Configuration snapshot as a domain object."""
        return LoadTestConfig.from_dict(
            {
                "target_url": self.target_url,
                "method": self.method,
                "headers": self.headers or {},
                "body": self.body,
                "rps": self.rps,
                "duration": self.duration,
            }
        )

    @property
    def metrics(self) -> AggregateMetrics | None:
        """Aggregate metrics, or None until the test has any."""
        if self.total_requests is None:
            return None
        return AggregateMetrics(
            total_requests=self.total_requests or 0,
            failed_requests=self.failed_requests or 0,
            avg_latency_ms=self.avg_latency_ms or 0.0,
            p95_latency_ms=self.p95_latency_ms or 0.0,
            p99_latency_ms=self.p99_latency_ms or 0.0,
            error_rate=self.error_rate or 0.0,
            rps=self.observed_rps or 0.0,
        )

    @property
    def series(self) -> TimeSeries | None:
        if self.time_series is None:
            return None
        return TimeSeries.from_dict(self.time_series)

    @property
    def duration_ms(self) -> float | None:
        """Derived wall-clock duration in milliseconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds() * 1000
        return None


class User(Base):
    """A user that owns load tests."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    api_keys: Mapped[list["ApiKey"]] = relationship(
        "ApiKey", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, username={self.username!r})>"


class ApiKey(Base):
    """Hashed API key; the raw key is shown once at creation."""

    __tablename__ = "api_keys"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    key_prefix: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="default")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user: Mapped["User"] = relationship("User", back_populates="api_keys")

    __table_args__ = (Index("ix_api_keys_user_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id!r}, prefix={self.key_prefix!r})>"
