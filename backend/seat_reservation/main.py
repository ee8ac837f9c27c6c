"""
Seat Reservation API - Main Application Entry Point

Seat-level reservation engine for cinema showtimes:
- Time-bounded, holder-scoped holds with conditional per-seat writes
- Post-write verification so racing holders never share a seat
- Finalization backed by a database uniqueness constraint
- Expired holds reconciled on read and by a background sweeper
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from seat_reservation.core.config import get_settings
from seat_reservation.core.logging import setup_logging, get_logger
from seat_reservation.core.metrics import metrics_endpoint
from seat_reservation.api.router import api_router
from seat_reservation.api.errors import register_exception_handlers
from seat_reservation.api.middleware import RequestLoggingMiddleware
from seat_reservation.db.session import SessionLocal
from seat_reservation.infrastructure.redis_client import get_redis, close_redis
from seat_reservation.services.cache_service import get_cache_stats
from seat_reservation.services.reconciler import HoldSweeper
from seat_reservation.services.store_factory import build_hold_store

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        hold_store=settings.HOLD_STORE,
    )

    # Initialize Redis connection
    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    elif settings.HOLD_STORE == "redis":
        logger.error("redis_unavailable", message="Redis hold store selected; hold calls will fail")
    else:
        logger.warning("redis_unavailable", message="Running without seat map cache")

    sweeper = None
    if settings.HOLD_SWEEP_ENABLED:
        sweeper = HoldSweeper(SessionLocal, build_hold_store, settings.HOLD_SWEEP_INTERVAL_SECONDS)
        sweeper.start()
    app.state.hold_sweeper = sweeper

    yield

    # Cleanup
    if sweeper:
        await sweeper.stop()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Seat reservation engine with time-bounded holds and conflict-free bookings",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

# Routes
app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    sweeper = getattr(app.state, "hold_sweeper", None)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "hold_store": settings.HOLD_STORE,
        "hold_sweeper": "running" if sweeper and sweeper.running else "stopped",
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
