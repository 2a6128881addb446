"""
FastAPI Application Entry Point.

This is the main application file for the Fleet Tracker Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from jose import JWTError
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from backend.app.core.config import settings
from backend.app.db.session import engine, Base, get_db, check_database_connection

# Import models to ensure they are registered with Base.
# Must run before the router import: endpoint modules build loader options
# at import time, which configures every mapper.
from backend.app.models.department import Department
from backend.app.models.user import User
from backend.app.models.user_session import UserSession
from backend.app.models.vehicle import Vehicle
from backend.app.models.vehicle_status_log import VehicleStatusLog
from backend.app.models.trip import Trip
from backend.app.models.vehicle_inspection import VehicleInspection
from backend.app.models.maintenance_schedule import MaintenanceSchedule

from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.observability import ObservabilityMiddleware
from backend.app.core.rate_limit import RateLimitMiddleware
from backend.app.core.redis_client import close_redis, ping_redis
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    jwt_exception_handler,
    generic_exception_handler
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Checks the database and creates missing tables, then pings Redis. An unreachable
       backend is logged and the server still starts.
    2. Closes the Redis connection on shutdown.
    """
    if await check_database_connection():
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database connection established")
        except Exception as exc:
            logger.error(f"Table creation failed: {exc}")
    else:
        logger.error("Database unreachable at startup; continuing without it")

    if not await ping_redis():
        logger.warning("Redis unreachable at startup; rate limiting will fail open")

    yield

    await close_redis()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.is_development,
    description="Fleet management back office: vehicles, drivers, trips, maintenance, analytics and reports",
    docs_url="/api-docs",
    lifespan=lifespan,
)

# Middleware (last added runs first)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(JWTError, jwt_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
        dict: Status, environment and database reachability
    """
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as exc:
        logger.warning(f"Health check database query failed: {exc}")
        database = "disconnected"

    return {
        "status": "OK",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "environment": settings.node_env,
        "database": database,
        "redis": "connected" if await ping_redis() else "disconnected",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/api/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Fleet Tracker API",
        "docs": "/api-docs",
        "health": "/health",
    }
