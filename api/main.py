"""
api/main.py -- FastAPI application entry point for Storefront.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Lifespan builds every component from Settings once at startup and parks them
on app.state. Nothing below the API reads configuration on its own: the
engine, hasher, token service and stores receive plain values here.

Error translation lives here and only here. Services raise ServiceError
subclasses; one exception handler maps each kind to a status code and the
shared ErrorResponse envelope.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.products import router as products_router
from auth.hashing import PasswordHasher
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import TokenService
from catalog.service import ProductService
from catalog.store import ProductStore
from core.config import Settings, get_settings
from core.database import create_db_engine, init_schema, ping
from core.errors import (
    Conflict,
    Forbidden,
    HashingError,
    InvalidCredentials,
    InvalidInput,
    NotFound,
    ServiceError,
    TokenError,
)

API_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("storefront.api")

# ---------------------------------------------------------------------------
# Error kind -> HTTP status
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    InvalidInput: 422,
    TokenError: 401,
    InvalidCredentials: 401,
    Forbidden: 403,
    NotFound: 404,
    Conflict: 409,
    HashingError: 500,
}


def status_for(exc: ServiceError) -> int:
    for kind, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, kind):
            return status
    return 500


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def wire_app_state(app: FastAPI, settings: Settings, engine: Engine) -> None:
    """Build services from settings and attach them to app.state.

    Shared by the real lifespan and the test fixtures so both wire the app
    the same way.
    """
    tokens = TokenService(
        secret=settings.secret_key,
        validity=settings.token_validity,
        issuer=settings.token_issuer,
    )
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.engine = engine
    app.state.token_service = tokens
    app.state.account_service = AccountService(AccountStore(engine), hasher, tokens)
    app.state.product_service = ProductService(ProductStore(engine))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the engine and services on startup; dispose the pool on shutdown."""
    settings = get_settings()
    logging.getLogger("storefront").setLevel(logging.DEBUG if settings.debug else logging.INFO)
    logger.info("Storefront API starting up (debug=%s)", settings.debug)

    engine = create_db_engine(settings.database_url, timeout=settings.db_timeout_seconds)
    init_schema(engine)
    wire_app_state(app, settings, engine)
    logger.info("Services initialized (token validity %ds)", settings.token_expire_seconds)

    yield

    engine.dispose()
    logger.info("Storefront API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Storefront API",
    description="Account registration and per-account product management.",
    version=API_VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Accounts"])
app.include_router(products_router, prefix="/api/v1", tags=["Products"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Translate a domain error kind to its HTTP status.

    HashingError is an internal fault: it is logged with traceback and the
    client gets a generic message.
    """
    status = status_for(exc)
    if status >= 500:
        logger.error("Internal fault on %s %s: %s", request.method, request.url.path, exc.message, exc_info=exc)
        detail = ErrorDetail(code="internal_error", message="An unexpected error occurred.")
    else:
        detail = ErrorDetail(code=exc.code, message=exc.message)
    response = JSONResponse(status_code=status, content=ErrorResponse(error=detail).model_dump())
    if status == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, InvalidCredentials):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No authentication.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    db_ok = ping(request.app.state.engine)
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
