"""
FastAPI application factory.

* Registers routes for quotes and admin.
* Builds the reference-data cache, the distance oracle and the outbound
  HTTP client in the lifespan, and starts / stops the cache warmer.
* Maps the pricing error hierarchy to structured JSON errors.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware import limiter
from src.api.routes import admin, quotes
from src.config import settings
from src.domain.errors import (
    ConfigurationInvariantViolation,
    DistanceOracleFailure,
    InvalidQuoteRequest,
    LookupFailure,
    PriceUnavailable,
    PricingError,
)
from src.infrastructure.cache import Cache, InMemoryCache, RedisCache
from src.infrastructure.database import dispose_engine
from src.infrastructure.distance_oracle import (
    DistanceOracle,
    GoogleDistanceOracle,
    StraightLineDistanceOracle,
)
from src.infrastructure.redis_client import close_redis, get_redis
from src.workers import cache_warmer

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PricingError], int] = {
    InvalidQuoteRequest: 400,
    ConfigurationInvariantViolation: 400,
    PriceUnavailable: 422,
    DistanceOracleFailure: 503,
    LookupFailure: 503,
}


def _error(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "details": details}},
    )


# ── Exception handlers ────────────────────────────────────────────────


async def pricing_error_handler(request: Request, exc: PricingError) -> JSONResponse:
    status_code = next(
        (status for cls, status in ERROR_STATUS.items() if isinstance(exc, cls)), 500
    )
    if status_code >= 500:
        logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
    return _error(status_code, exc.code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return _error(400, InvalidQuoteRequest.code, "Request validation failed", details)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return _error(exc.status_code, code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")


# ── Lifespan ──────────────────────────────────────────────────────────


def _build_cache() -> tuple[Cache, object]:
    if settings.cache_backend == "redis":
        client = get_redis()
        return RedisCache(client), client
    return InMemoryCache(), None


def _build_oracle(http_client: httpx.AsyncClient) -> DistanceOracle:
    if settings.google_maps_api_key:
        return GoogleDistanceOracle(
            http_client,
            settings.google_maps_api_key,
            timeout_seconds=settings.distance_oracle_timeout_seconds,
            max_journey_miles=settings.max_journey_miles,
        )
    logger.warning("No Google Maps API key configured, using straight-line distance estimates")
    return StraightLineDistanceOracle(
        road_factor=settings.straight_line_road_factor,
        average_speed_mph=settings.straight_line_speed_mph,
        max_journey_miles=settings.max_journey_miles,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire shared resources on startup; release them on shutdown."""
    http_client = httpx.AsyncClient(timeout=settings.distance_oracle_timeout_seconds)
    redis_client = None

    if not hasattr(app.state, "cache"):
        app.state.cache, redis_client = _build_cache()
    if not hasattr(app.state, "distance_oracle"):
        _set_oracle(app, _build_oracle(http_client))

    if app.state.start_warmer:
        await cache_warmer.start_cache_warmer(app.state.cache, redis_client)
    try:
        yield
    finally:
        if app.state.start_warmer:
            await cache_warmer.stop_cache_warmer()
        await http_client.aclose()
        if redis_client is not None:
            await close_redis()
        await dispose_engine()


def _set_oracle(app: FastAPI, oracle: DistanceOracle) -> None:
    app.state.distance_oracle = oracle
    app.state.distance_oracle_name = type(oracle).__name__


def create_app(
    *,
    cache: Optional[Cache] = None,
    distance_oracle: Optional[DistanceOracle] = None,
    start_warmer: bool = True,
) -> FastAPI:
    app = FastAPI(
        title="Transfer Quote Engine API",
        description=(
            "Prices transfer and taxi journeys: fixed routes, postcode zones, "
            "distance-based and hourly fares, with date/time surge rules, "
            "corporate discounts and return-journey discounts."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    if cache is not None:
        app.state.cache = cache
    if distance_oracle is not None:
        _set_oracle(app, distance_oracle)
    app.state.start_warmer = start_warmer

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Errors
    app.add_exception_handler(PricingError, pricing_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routers
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
