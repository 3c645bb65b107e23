"""Health check routes."""

import logging
import shutil

from fastapi import APIRouter

from stampede.config import get_settings
from stampede.contracts import DependencyHealth, HealthResponse
from stampede.db.session import get_database
from stampede.services import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database_readiness() -> DependencyHealth:
    try:
        db = get_database()
    except RuntimeError as exc:
        return DependencyHealth(status="error", detail=str(exc))

    try:
        await db.ping()
    except Exception as exc:
        return DependencyHealth(
            status="error",
            detail=f"Database readiness probe failed: {exc}",
        )

    return DependencyHealth(status="ok")


def _check_engine(binary: str) -> DependencyHealth:
    path = shutil.which(binary)
    if path is None:
        return DependencyHealth(status="error", detail=f"{binary!r} not found on PATH")
    return DependencyHealth(status="ok", detail=path)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness plus database and load engine readiness."""
    settings = get_settings()
    database = await _check_database_readiness()
    engine = _check_engine(settings.k6_binary)

    try:
        in_flight = get_orchestrator().in_flight
    except RuntimeError:
        in_flight = 0

    healthy = database.status == "ok" and engine.status == "ok"
    return HealthResponse(
        status="ok" if healthy else "degraded",
        version=settings.version,
        database=database,
        engine=engine,
        in_flight_tests=in_flight,
    )
