"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from featured_video.database import get_database_manager, init_database_manager
from featured_video.migrations import MigrationRunner
from featured_video_api.core.config import get_settings
from featured_video_api.core.errors import register_error_handlers
from featured_video_api.core.logging import setup_logging
from featured_video_api.routers import (
    floating_videos_router,
    posts_router,
    public_router,
    settings_router,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "featured-video-api"
VERSION = "1.0.0"

_start_time: float = 0.0
_db_retry_task: asyncio.Task | None = None


async def _prepare_database(db_manager, run_migrations: bool) -> None:
    if not db_manager.is_connected:
        await db_manager.connect()
    if run_migrations:
        await MigrationRunner(db_manager.pool).run_pending()


async def _db_retry_loop(db_manager, run_migrations: bool) -> None:
    """Background loop to retry DB connection after startup timeout."""
    delay = 5
    max_delay = 60
    while True:
        await asyncio.sleep(delay)
        try:
            await _prepare_database(db_manager, run_migrations)
            logger.info("Database connected (background retry)")
            return
        except asyncio.CancelledError:
            return
        except Exception as e:
            logger.warning(
                f"DB background retry failed: {type(e).__name__}: {e}, "
                f"next retry in {min(delay * 2, max_delay)}s"
            )
            delay = min(delay * 2, max_delay)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time, _db_retry_task
    _start_time = time.time()

    settings = get_settings()

    logger.info("Starting featured video API server")
    logger.info(f"Environment: {settings.environment}")

    # Wait up to 30s for the pool before accepting requests, then keep retrying in background
    db_manager = init_database_manager(settings.database_url)

    try:
        await asyncio.wait_for(_prepare_database(db_manager, settings.run_migrations), timeout=30)
        logger.info("Database connected")
    except TimeoutError:
        logger.warning("DB connection timed out during startup, retrying in background")
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager, settings.run_migrations))
    except Exception as e:
        logger.error(
            f"DB connection failed during startup: {type(e).__name__}: {e}, retrying in background"
        )
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager, settings.run_migrations))

    yield

    logger.info("Shutting down featured video API server")
    if _db_retry_task:
        _db_retry_task.cancel()
    try:
        await db_manager.disconnect()
        logger.info("Database disconnected")
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Featured Video API",
        description="Floating video targeting, featured video sync and player payloads",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Search routes are declared before /{record_id} inside the router
    app.include_router(floating_videos_router.router)
    app.include_router(public_router.router)
    app.include_router(posts_router.router)
    app.include_router(settings_router.router)

    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": SERVICE_NAME, "status": "running"}

    # Liveness probe, no external dependency
    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "uptime_seconds": int(time.time() - _start_time),
        }

    @app.get("/status")
    async def status():
        """Readiness / status endpoint, includes an actual DB health check"""
        db_ok = False
        try:
            db_manager = get_database_manager()
        except RuntimeError:
            db_manager = None
        if db_manager is not None and db_manager.is_connected:
            db_ok = await db_manager.check_health()
        return {
            "service": SERVICE_NAME,
            "version": VERSION,
            "uptime_seconds": int(time.time() - _start_time),
            "db_connected": db_ok,
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        return "pong"

    logger.info("FastAPI application configured")

    return app
