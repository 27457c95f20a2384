"""
api/main.py -- FastAPI application entry point for the credential service.

Run with:      python main.py
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware       -- adds CORS headers for CORS_ORIGIN
  2. log_requests         -- one log line per request with latency

Lifespan opens the configured store (SQL or Mongo), wires it into a single
CredentialService on app.state, and closes the store on shutdown. Nothing
touches the database at import time.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse, HelloResponse
from api.routes.auth import router as auth_router
from auth.errors import AuthError, CredentialError, StoreError
from auth.service import CredentialService
from auth.store import SQLUserStore, UserStore
from core.config import Settings, get_settings, mask_url

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("credsvc.api")


# ---------------------------------------------------------------------------
# Store selection
# ---------------------------------------------------------------------------


def open_store(settings: Settings) -> UserStore:
    """Construct the UserStore named by STORAGE_BACKEND.

    The Mongo adapter is imported lazily so SQL-only deployments never load
    the driver.
    """
    logger.info("Storage backend: %s (%s)", settings.storage_backend, mask_url(settings.storage_url))
    if settings.storage_backend == "mongo":
        from auth.mongo_store import MongoUserStore

        return MongoUserStore(
            settings.mongo_uri,
            db_name=settings.db_name,
            timeout_ms=settings.db_timeout_ms,
            tls=settings.mongo_tls,
            tls_allow_invalid_certificates=settings.mongo_tls_allow_invalid_certificates,
        )
    return SQLUserStore(settings.database_url, timeout_ms=settings.db_timeout_ms)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the store on startup and close it on shutdown.

    An unreachable database does not abort startup; see ensure_schema() in
    auth/store.py and auth/mongo_store.py.

    uvicorn drains in-flight requests before the code after yield runs, so
    the store stays open for requests that were already being served.
    """
    settings = get_settings()
    logger.info("Credential service starting up")
    store = open_store(settings)
    try:
        store.ensure_schema()
        logger.info("Store initialized")
    except StoreError:
        # Keep serving: requests fail with 500 and /api/health reports degraded
        # until the database is reachable and the schema is created on first use.
        logger.exception("Store unavailable at startup")
    app.state.user_store = store
    app.state.credential_service = CredentialService(store, settings)

    yield

    app.state.user_store.close()
    logger.info("Credential service shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Credential Service",
    description="Signup, login and bearer-token verification.",
    version=VERSION,
    lifespan=lifespan,
)

_origins = get_settings().cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    # Browsers reject credentialed requests against a wildcard origin.
    allow_credentials="*" not in _origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
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
# errors uniformly.
# ---------------------------------------------------------------------------


@app.exception_handler(CredentialError)
async def credential_error_handler(request: Request, exc: CredentialError) -> JSONResponse:
    """Render a service error with its own status and code.

    AuthError reasons are logged here and never included in the body.
    """
    if isinstance(exc, AuthError) and exc.reason:
        logger.info("Auth rejected on %s (%s)", request.url.path, exc.reason)
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )
    if isinstance(exc, AuthError):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when the request body fails validation."""
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


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for HTTP exceptions, including routing 404 and 405.

    Registered on the Starlette base class so it also catches the exceptions
    the router raises itself; fastapi.HTTPException is a subclass. Headers
    such as Allow on a 405 are passed through.
    """
    return JSONResponse(
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only. The client receives a generic
    message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="Internal server error",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health and smoke endpoints
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and a database reachability check."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )


@app.get("/api/hello", tags=["Health"])
async def hello() -> HelloResponse:
    return HelloResponse(ok=True, message="Backend working!")
