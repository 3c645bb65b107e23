"""Health contract payloads."""

from typing import Literal

from pydantic import BaseModel


class DependencyHealth(BaseModel):
    status: Literal["ok", "error", "skipped"]
    detail: str | None = None


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    version: str
    database: DependencyHealth
    engine: DependencyHealth
    in_flight_tests: int = 0


__all__ = [
    "DependencyHealth",
    "HealthResponse",
]
