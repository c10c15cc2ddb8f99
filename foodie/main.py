"""
Foodie Ordering API

HTTP routes live in foodie.api; this module assembles them into one FastAPI
app, installs the response envelope for errors and wraps everything in the
socket.io ASGI app that serves the live dashboard.

    uvicorn foodie.main:asgi_app --port 5000
    python -m foodie.main

Route groups:
    /api/auth, /api/restaurant, /api/admin        accounts and sessions
    /api/products, /api/cart, /api/address        storefront
    /api/order                                    checkout and order status
    /api/combined/top-states                      dashboard numbers
    /api/miscellaneous, /api/dev                  geocoding and dev helpers
    /health                                       dependency probe
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime

import redis
import socketio
import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from foodie.api import routers
from foodie.core.config import get_settings, setup_logging
from foodie.database import engine, get_db, init_db
from foodie.realtime.server import sio
from foodie.schemas import HealthResponse
from foodie.services.geo import get_geo_service
from foodie.services.payment import get_payment_gateway

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# STARTUP / SHUTDOWN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, report which integrations are live, dispose the pool on exit."""
    logger.info("-" * 60)
    logger.info(f"{settings.app_name} {settings.app_version} [{settings.env_mode.value}]")
    logger.info("-" * 60)

    await init_db()
    logger.info("Schema ready")

    logger.info(f"Payments via {get_payment_gateway().provider_name}")
    logger.info(f"Geocoding via {get_geo_service().provider_name}")
    logger.info(f"Dashboard fan-out via {'redis' if settings.socket_redis_enabled else 'this process'}")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"Running with {settings.env_mode.value} defaults for: {', '.join(missing)}")

    yield

    await engine.dispose()
    logger.info("Database pool closed")


# =============================================================================
# APP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Customer storefront, restaurant back-office and admin console for a "
        "food ordering platform, with a live socket.io dashboard."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in routers:
    app.include_router(router)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "message": f"{settings.app_name} is running",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


def ping_redis() -> str:
    client = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
    try:
        client.ping()
    except redis.RedisError as e:
        logger.error(f"Redis unreachable: {e}")
        return f"unhealthy: {e}"
    finally:
        client.close()
    return "healthy"


@app.get("/health", response_model=HealthResponse, tags=["Health"], summary="Dependency probe")
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """
    Probe the database, Redis and both external integrations.

    Any failing component turns the overall status to "degraded"; the
    endpoint itself always answers 200.
    """
    try:
        await db.execute(select(func.now()))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database unreachable: {e}")
        db_status = f"unhealthy: {e}"

    # redis-py here is the blocking client
    redis_status = await asyncio.to_thread(ping_redis)

    payment_status = "healthy" if await get_payment_gateway().health_check() else "unhealthy"
    geo_status = "healthy" if await get_geo_service().health_check() else "unhealthy"

    statuses = (db_status, redis_status, payment_status, geo_status)
    return HealthResponse(
        status="operational" if all(s == "healthy" for s in statuses) else "degraded",
        database=db_status,
        redis=redis_status,
        payment_service=payment_status,
        geo_service=geo_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR ENVELOPE
# =============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything that escapes a route becomes a 500 envelope; the text is exposed only with DEBUG."""
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "detail": str(exc) if settings.debug else None,
        },
    )


# socket.io handles /socket.io/, the rest goes to FastAPI
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


if __name__ == "__main__":
    uvicorn.run(asgi_app, host=settings.api_host, port=settings.api_port)
