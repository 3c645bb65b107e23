"""Shared FastAPI dependencies for route handlers."""

from fastapi import HTTPException

from stampede.db.session import Database, get_database
from stampede.services import LoadTestOrchestrator, get_orchestrator


def require_database() -> Database:
    """FastAPI dependency that returns the database or raises 503."""
    try:
        return get_database()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Database not available")


def require_orchestrator() -> LoadTestOrchestrator:
    """FastAPI dependency that returns the orchestrator or raises 503."""
    try:
        return get_orchestrator()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Test runner not available")
