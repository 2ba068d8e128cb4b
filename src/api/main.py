"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import firebase_admin
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from psycopg_pool import ConnectionPool

from src.adapters.firebase import FcmPushTransport, FirebaseDeviceRegistry, create_firebase_app
from src.adapters.push.console import ConsolePushTransport
from src.adapters.repository.postgres import PostgresDeviceRegistry, run_migrations
from src.api.errors import register_exception_handlers
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Call cancellation API v1 - Stop ringing on a user's other devices",
    },
]


def configure_logging(settings: Settings) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_pool(settings: Settings) -> ConnectionPool:
    """Create a connection pool whose checkout and statements are time-bounded."""
    statement_timeout_ms = int(settings.registry_timeout_seconds * 1000)
    return ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.registry_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={statement_timeout_ms}"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Initializes Firebase apps for the registry and transport
    - Creates database connection pool and runs migrations (postgres registry)
    - Releases both on shutdown
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info("Starting application...")
    firebase_apps: list[firebase_admin.App] = []
    pool: ConnectionPool | None = None

    if settings.registry_backend == "postgres":
        logger.info("Connecting to database...")
        pool = create_pool(settings)
        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.registry = PostgresDeviceRegistry(pool)
    else:
        registry_app = create_firebase_app(
            settings, "registry", settings.registry_timeout_seconds
        )
        firebase_apps.append(registry_app)
        app.state.registry = FirebaseDeviceRegistry(
            registry_app, path_template=settings.registry_path_template
        )

    if settings.push_backend == "console":
        logger.warning("Push backend is 'console': cancellations are logged, not delivered")
        app.state.transport = ConsolePushTransport()
    else:
        transport_app = create_firebase_app(
            settings, "transport", settings.transport_timeout_seconds
        )
        firebase_apps.append(transport_app)
        app.state.transport = FcmPushTransport(transport_app)

    app.state.pool = pool
    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    for firebase_app in firebase_apps:
        firebase_admin.delete_app(firebase_app)
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="call-taken",
    description="Call cancellation API - Notifies a user's other devices that a call was accepted",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")
# Unversioned path used by already-deployed clients
app.include_router(v1_router, prefix="/api", include_in_schema=False)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness probe."""
    return "Call Server is running!"


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint.

    Returns 200 OK if the application is up. With the postgres registry,
    database connectivity is validated as well.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}


def run() -> None:
    """Serve the application with uvicorn."""
    settings = get_settings()
    uvicorn.run("src.api.main:app", host=settings.host, port=settings.port)
