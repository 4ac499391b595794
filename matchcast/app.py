"""FastAPI application factory"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from matchcast import __version__
from matchcast.core.config import get_settings
from matchcast.core.dependencies import close_console, get_poller, init_console
from matchcast.core.logging import setup_logging
from matchcast.routers import queue_router, session_router, status_router

logger = logging.getLogger(__name__)

# Track server start time
_start_time: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time
    _start_time = time.time()

    settings = get_settings()

    # Startup
    logger.info("Starting matchcast console")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Event source: {settings.event_source_url or '(not configured)'}")

    init_console(settings)
    poller = get_poller()
    if poller is not None:
        poller.start()

    yield

    # Shutdown
    logger.info("Shutting down matchcast console")
    try:
        await close_console()
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    # Setup logging first
    setup_logging(settings)

    app = FastAPI(
        title="Matchcast Console",
        description="Live commentary broadcast console",
        version=__version__,
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

    # Register routers
    app.include_router(queue_router.router)
    app.include_router(session_router.router)
    app.include_router(status_router.router)

    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": "matchcast", "status": "running"}

    # Liveness probe, no dependency on the event source
    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "uptime_seconds": int(time.time() - _start_time),
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        """Ping endpoint"""
        return "pong"

    logger.info("FastAPI application configured")

    return app
