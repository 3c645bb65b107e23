"""API routes."""

from fastapi import APIRouter, Depends

from stampede.auth import require_api_key
from stampede.routes.auth import account_router
from stampede.routes.auth import router as auth_router
from stampede.routes.health import router as health_router
from stampede.routes.load_tests import router as load_tests_router

# Public routes (no auth required)
v1_public_router = APIRouter(prefix="/api/v1")
v1_public_router.include_router(auth_router)

# Protected routes (auth required when enabled)
v1_router = APIRouter(prefix="/api/v1", dependencies=[Depends(require_api_key)])
v1_router.include_router(account_router)
v1_router.include_router(load_tests_router)

__all__ = [
    "v1_public_router",
    "v1_router",
    "health_router",
]
