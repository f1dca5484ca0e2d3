"""
api/main.py -- FastAPI application entry point for Postgate.

Run with:      uvicorn asgi:app --reload
               python main.py

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one log line per request with status and latency

Lifespan builds the process-wide collaborators exactly once from Settings and
hangs them on app.state:
  app.state.hasher  -- PasswordHasher (bcrypt cost from BCRYPT_ROUNDS)
  app.state.tokens  -- TokenService (JWT_SECRET, 24h TTL)
  app.state.store   -- BlogStore (DATABASE_URL)
A missing JWT_SECRET raises ConfigurationError here, so the server refuses to
start rather than failing on the first request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse, PostResponse, UserResponse
from api.routes.auth import router as auth_router
from api.routes.posts import router as posts_router
from api.routes.users import router as users_router
from auth.models import User
from auth.passwords import PasswordHasher
from auth.tokens import TokenService
from blog.models import Post
from blog.store import BlogStore
from core.config import get_settings
from core.errors import AuthorizationRejected, Conflict, ConfigurationError, PostgateError

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("postgate.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the hasher, token service and store on startup; dispose on shutdown.

    Startup order matters: the TokenService is built first so a missing
    secret aborts before any database connection is opened.
    """
    logger.info("Postgate API starting up")
    settings = get_settings()
    try:
        app.state.tokens = TokenService(
            settings.jwt_secret,
            ttl_seconds=settings.token_ttl_seconds,
            min_secret_length=settings.min_secret_length,
        )
    except ConfigurationError as exc:
        logger.critical("Refusing to start: %s", exc.message)
        raise
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.store = BlogStore(settings.database_url, app.state.hasher)
    logger.info("Store initialized")

    yield

    app.state.store.close()
    logger.info("Postgate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Postgate API",
    description="Token-authenticated CRUD backend for blog posts and users.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
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

app.include_router(auth_router, tags=["Auth"])
app.include_router(posts_router, tags=["Posts"])
app.include_router(users_router, tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every failure leaves through _error_response, so clients always receive the
# same {"error": {...}} envelope.
# ---------------------------------------------------------------------------


def _existing_payload(existing: Any) -> Optional[dict[str, Any]]:
    if isinstance(existing, Post):
        return PostResponse.from_post(existing).model_dump()
    if isinstance(existing, User):
        return UserResponse.from_user(existing).model_dump()
    return None


def _error_response(status: int, code: str, message: str, **extra: Any) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, **extra))
    return JSONResponse(status_code=status, content=body.model_dump())


@app.exception_handler(PostgateError)
async def postgate_error_handler(request: Request, exc: PostgateError) -> JSONResponse:
    """Render the error taxonomy from core/errors.py.

    AuthorizationRejected carries the gate's reason string as the message.
    Conflict attaches the record that already holds the unique key.
    Server-side failures are logged; the client gets only the message.
    """
    if exc.status >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    elif isinstance(exc, AuthorizationRejected):
        logger.info("Gate rejected %s %s: %s", request.method, request.url.path, exc.message)

    existing = _existing_payload(exc.existing) if isinstance(exc, Conflict) else None
    return _error_response(int(exc.status), exc.code, exc.message, existing=existing)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(422, "validation_error", "Request validation failed.", detail=str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths and disallowed methods raised by the router itself."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # The raw exception goes to the log only, never to the response body.
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Public endpoints defined directly on the app
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    return "Hello, World!"


@app.get("/api/healthcheck", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
