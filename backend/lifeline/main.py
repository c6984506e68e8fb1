import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifeline.config import get_settings
from lifeline.database import close_db, connect, connect_with_retry, db_state
from lifeline.routers import locations
from lifeline.utils.errors import register_exception_handlers

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if settings.database_required:
        # Fail startup instead of serving 503s
        await connect()
        connector = None
    else:
        connector = asyncio.create_task(connect_with_retry())

    yield

    if connector is not None and not connector.done():
        connector.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await connector
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="""
    LifeLine - Emergency Response Location Service

    Tracks where people in need and helpers are, and finds the nearest
    verified, available helpers and relief centers for a point.

    ## Features
    - Current-location updates from the mobile app
    - Saved places (home, work) with building and access details
    - Nearby helper and relief-center search
    - Location verification
    """,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers (current and v1 aliases)
app.include_router(locations.router, prefix="/api/locations/v1", tags=["Locations"])
app.include_router(locations.router, prefix="/api/locations", tags=["Locations"], include_in_schema=False)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "healthy",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint."""
    return {
        "status": "ok" if db_state.connected else "degraded",
        "message": f"{settings.app_name} backend is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": db_state.status(),
    }
