"""Stampede API server."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from stampede.config import get_settings
from stampede.db.repositories import AuthRepository
from stampede.db.session import get_database, init_database
from stampede.logging import configure_logging
from stampede.middleware import CorrelationIDMiddleware
from stampede.routes import health_router, v1_public_router, v1_router
from stampede.services import LoadTestOrchestrator, register_orchestrator

# Configure logging (supports STAMPEDE_LOG_FORMAT=json for structured output).
_boot_settings = get_settings()
configure_logging(log_format=_boot_settings.log_format, debug=_boot_settings.debug)
logger = logging.getLogger(__name__)


class AppResponse(BaseModel):
    """App response."""

    name: str = "Stampede API"
    version: str = get_settings().version
    docs: str = "/docs"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler."""

    # Startup
    logger.info("Starting Stampede API server...")

    settings = get_settings()

    # Initialize database (defaults to SQLite if not configured)
    db = init_database(settings.effective_database_url)
    await db.connect()
    await db.create_tables()
    logger.info("Database connected (%s)", "SQLite" if settings.is_sqlite else "external")

    # Seed admin user + API key when auth is enabled
    if settings.auth_enabled:
        logger.info("Authentication enabled")
        if settings.api_key:
            async with db.session() as session:
                await AuthRepository(session).seed_admin_api_key(settings.api_key)
        else:
            logger.warning(
                "STAMPEDE_AUTH_ENABLED=true but no STAMPEDE_API_KEY set. "
                "Users must sign up to obtain a key."
            )
    elif settings.is_production:
        logger.warning(
            "Authentication disabled in production; anyone can run tests as %r",
            settings.anonymous_owner_id,
        )
    else:
        logger.info(
            "Authentication disabled; tests are owned by %r", settings.anonymous_owner_id
        )

    orchestrator = LoadTestOrchestrator.from_settings(settings, database=db)
    register_orchestrator(orchestrator)

    yield

    # Shutdown
    logger.info("Shutting down Stampede API server...")

    # Runs still in flight are marked failed before the database goes away.
    await orchestrator.stop()
    register_orchestrator(None)

    db = get_database()
    await db.disconnect()
    logger.info("Database disconnected")


# Create FastAPI app
app_settings = get_settings()
app = FastAPI(
    title="Stampede API",
    description="Submit HTTP load tests, run them with k6 and inspect the results",
    version=app_settings.version,
    lifespan=lifespan,
)

# Add correlation ID middleware (runs before CORS so the ID is on every response)
app.add_middleware(CorrelationIDMiddleware)

allow_origins = app_settings.cors_allow_origins_list
allow_credentials = app_settings.cors_allow_credentials and "*" not in allow_origins
if app_settings.cors_allow_credentials and "*" in allow_origins:
    logger.warning(
        "CORS credentials disabled because wildcard origins are configured. "
        "Set STAMPEDE_CORS_ALLOW_ORIGINS to explicit origins to enable credentials."
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(v1_public_router)
app.include_router(v1_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return AppResponse()


def main():
    """Run the server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "stampede.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
