"""
api/main.py -- FastAPI application entry point for loginapp.

Run with:      python main.py
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware   -- adds CORS headers for the configured frontend origins
  2. log_requests     -- one log line per request with status and latency

Lifespan reads Settings once and builds the auth components from them:
UserStore (database_url), PasswordHasher (bcrypt_rounds), TokenIssuer
(jwt_secret, jwt_expires_in) and the AuthService that ties them together.
Shutdown disposes the store's connection pool.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.errors import (
    AccountInactiveError,
    AuthError,
    DuplicateEmailError,
    HashingError,
    InvalidCredentialsError,
    InvalidTokenError,
    SigningError,
    StorageError,
    UserNotFoundError,
)
from auth.hashing import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("loginapp.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the auth components on startup and release the store on shutdown.

    UserStore's constructor runs the idempotent schema setup, so the users
    table and its unique email constraint exist before the first request.
    A database that cannot be reached raises StorageError here and the
    server refuses to start.
    """
    settings = get_settings()
    logger.info("loginapp API starting up")
    logger.info("Connecting to database: %s", settings.database_url)
    store = UserStore(settings.database_url)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenIssuer(settings.jwt_secret, lifetime_seconds=settings.jwt_expires_in)
    app.state.user_store = store
    app.state.auth_service = AuthService(store, hasher, tokens)
    logger.info("Auth initialized (token lifetime %ds)", settings.jwt_expires_in)
    logger.info("Frontend URL configured: %s", settings.frontend_url)

    yield

    app.state.user_store.close()
    logger.info("loginapp API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="loginapp API",
    description="User registration, login and session tokens.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys([_settings.frontend_url, "http://localhost:3000", "http://localhost:5173"])),
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=True,
    max_age=3600,
)


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

app.include_router(auth_router, prefix="/api", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

_AUTH_ERROR_STATUS: dict[type[AuthError], int] = {
    DuplicateEmailError: 409,
    InvalidCredentialsError: 401,
    AccountInactiveError: 403,
    InvalidTokenError: 401,
    UserNotFoundError: 404,
}

_INFRASTRUCTURE_ERRORS = (HashingError, SigningError, StorageError)


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map auth core errors to HTTP responses.

    Infrastructure failures are logged with their internal detail and
    returned as an opaque 500. Client-facing errors return the class-level
    message only -- exc.detail may mention internals and is never sent.
    """
    if isinstance(exc, _INFRASTRUCTURE_ERRORS):
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return _error_response(500, "internal_error", "An unexpected error occurred.")
    status_code = _AUTH_ERROR_STATUS.get(type(exc), 400)
    response = _error_response(status_code, exc.code, exc.message)
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
    # Submitted values (passwords included) are never echoed back.
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    return _error_response(422, "validation_error", "Request validation failed.", str(errors))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    response = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    database = "ok" if request.app.state.user_store.ping() else "error"
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=__version__,
        components={"app": "ok", "database": database},
    )
