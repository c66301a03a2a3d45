"""
api/main.py -- FastAPI application entry point for Ubiquitous.

The HTTP layer is a thin dispatcher over the identity and access-control
core: routes read the session, hand the Identity to a service, and map the
result into a response model. Business rules live in auth/ and projects/.

Run with:      uvicorn api.main:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
                              (credentials allowed so the session cookie flows)
  3. SlowAPIMiddleware     -- applies api.limiter defaults; per-route limits
                              run in the @limiter.limit endpoint wrappers

Lifespan builds the stores and services once, stores them on app.state, and
starts the session purge task. Shutdown cancels the task and disposes the
engines symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.admin import router as admin_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.projects import router as projects_router
from auth.authenticator import Authenticator
from auth.sessions import SessionAuthority
from auth.store import UserStore
from core.config import get_settings
from core.db import ping
from core.errors import AccessControlError
from projects.access import AccessRequestEngine
from projects.store import ProjectStore

__version__ = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.DEBUG if _settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("ubiquitous.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Drop expired sessions every SESSION_PURGE_INTERVAL_SECONDS.

    resolve() already discards an expired session when it sees one; this
    sweep catches the ones nobody presents again. CancelledError from
    task.cancel() during shutdown propagates out of asyncio.sleep and unwinds
    the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(_settings.session_purge_interval_seconds)
        removed = app.state.sessions.purge_expired()
        if removed:
            logger.info("Purged %d expired session(s)", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def wire_services(app: FastAPI, user_store: UserStore, project_store: ProjectStore, sessions: SessionAuthority) -> None:
    """Attach stores and the services built on them to app.state.

    Shared by the real lifespan and the test fixtures so both wire the
    same object graph.
    """
    app.state.user_store = user_store
    app.state.project_store = project_store
    app.state.sessions = sessions
    app.state.authenticator = Authenticator(user_store)
    app.state.access_engine = AccessRequestEngine(project_store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown, even if a request handler raised.
    """
    logger.info("Ubiquitous API starting up")
    wire_services(
        app,
        UserStore(_settings.database_url),
        ProjectStore(_settings.database_url),
        SessionAuthority(ttl_seconds=_settings.session_expire_seconds),
    )
    if not app.state.user_store.has_users():
        logger.warning("No users exist yet -- create an admin with: python main.py create-user --role Admin")
    app.state.purge_task = asyncio.create_task(_purge_loop(app))
    logger.info("Stores initialized (session ttl=%ss)", _settings.session_expire_seconds)

    yield

    app.state.purge_task.cancel()
    app.state.user_store.close()
    app.state.project_store.close()
    logger.info("Ubiquitous API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Ubiquitous API",
    description="Project access control: accounts, sessions, and admin-approved project access.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Only method, path, status, latency and client host are logged --
# never bodies, cookies or Authorization headers.
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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(projects_router, prefix="/api/v1", tags=["Projects"])
app.include_router(admin_router, prefix="/api/v1", tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            error=ErrorDetail(code=code, message=message, detail=detail),
        ).model_dump(),
    )


@app.exception_handler(AccessControlError)
async def access_control_error_handler(request: Request, exc: AccessControlError) -> JSONResponse:
    """Render domain errors raised by services and auth dependencies.

    HashingFailure and OperationFailed details are internal; only the generic
    message goes to the client.
    """
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path)
        return _error(exc.status_code, exc.code, exc.message)
    return _error(exc.status_code, exc.code, exc.message, exc.detail)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or params fail validation."""
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured envelope for framework HTTP errors (unknown route, wrong method)."""
    message = "Route not found." if exc.status_code == 404 else str(exc.detail)
    return _error(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit and no auth --
# load balancers must be able to poll it.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and whether the store answers."""
    db_ok = ping(request.app.state.user_store.engine)
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
