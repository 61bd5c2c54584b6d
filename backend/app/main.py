"""
Desk Reservation API - Main Application Entry Point

Reserve a named desk or room for one calendar date:
- One active booking per seat per day and per person per day, enforced by
  partial unique indexes in the database
- Bookings expire automatically once their date has passed
- Structured logging with request correlation
- Optional Redis cache for per-date seat maps
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.clock import get_clock
from app.core.config import get_settings
from app.core.logging import setup_logging, get_logger
from app.core.metrics import metrics_endpoint
from app.api.router import api_router
from app.api.middleware import RequestLoggingMiddleware
from app.api.exception_handlers import register_exception_handlers
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.services.cache_service import SeatStatusCache
from app.services.expiry_service import run_sweep_scheduler
from app.services.seat_service import initialize_seats

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: owns the engine, cache and sweep task."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    app.state.session_factory = session_factory

    if settings.CREATE_TABLES_ON_STARTUP:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    if settings.SEED_SEATS_ON_STARTUP:
        async with session_factory() as db:
            await initialize_seats(db)

    app.state.cache = await SeatStatusCache.connect(settings)
    if app.state.cache.enabled:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without seat map cache")

    sweep_task = None
    if settings.SWEEP_SCHEDULER_ENABLED:
        sweep_task = asyncio.create_task(
            run_sweep_scheduler(
                session_factory,
                get_clock(),
                settings.SWEEP_HOUR,
                settings.SWEEP_MINUTE,
                cache=app.state.cache,
            ),
            name="expiry-sweep-scheduler",
        )

    yield

    if sweep_task is not None:
        sweep_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweep_task
    await app.state.cache.close()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Desk and room reservation API with per-day booking rules",
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
    cache = getattr(app.state, "cache", None)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": await cache.stats() if cache else {"status": "disabled"},
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
