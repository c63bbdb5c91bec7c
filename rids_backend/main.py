"""
main.py — RIDS backend FastAPI application entry point.

Start with: uvicorn rids_backend.main:app --reload --port 8000
"""
import logging
import os
import subprocess
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rids_backend.config import settings
from rids_backend.errors import RidsError, StorageError
from rids_backend.responses import error_response, ok

# ---------------------------------------------------------------------------
# Logging — configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


def _upgrade_schema() -> None:
    """alembic upgrade head, run from the package dir where alembic.ini lives."""
    package_dir = os.path.dirname(os.path.abspath(__file__))
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=package_dir,
    )
    if result.returncode != 0:
        logger.error("Schema upgrade failed:\n%s", result.stderr)
        raise RuntimeError(f"Schema upgrade failed: {result.stderr}")
    logger.info("Schema upgraded: %s", result.stdout.strip() or "already at head")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: schema upgrade (settings.run_migrations), Redis pool when
    redis_url is set, identity service client and verifier.
    Shutdown: release them in reverse order.
    """
    # --- 1. Database schema ---
    if settings.run_migrations:
        _upgrade_schema()

    # --- 2. Redis: wizard progress cache ---
    from rids_backend.cache import create_redis_pool
    app.state.redis = await create_redis_pool() if settings.redis_url else None
    if app.state.redis is None:
        logger.warning("REDIS_URL empty — wizard progress stored in PostgreSQL only")

    # --- 3. Identity service client — singleton for HTTP connection pool reuse ---
    from rids_backend.auth import IdentityVerifier, create_identity_client
    app.state.identity_client = create_identity_client()
    app.state.identity_verifier = IdentityVerifier(
        app.state.identity_client, api_key=settings.identity_api_key
    )
    logger.info("Identity verifier initialized for %s", settings.identity_url)

    logger.info("RIDS backend v%s starting up", settings.app_version)
    yield

    # --- Shutdown ---
    await app.state.identity_client.aclose()
    if app.state.redis is not None:
        await app.state.redis.aclose()
    from rids_backend.database import engine
    await engine.dispose()
    logger.info("RIDS backend stopped")


# ---------------------------------------------------------------------------
# FastAPI application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="RIDS API",
    version=settings.app_version,
    description=(
        "Reservist Information Data Sheet (RIDS) intake: form lifecycle, "
        "per-section entry records and resumable wizard progress."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS middleware — restricted to frontend origins from settings
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handlers — registered BEFORE routers
# All failures leave as {"success": false, "error": str}
# ---------------------------------------------------------------------------
@app.exception_handler(RidsError)
async def rids_error_handler(request: Request, exc: RidsError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Every field violation in one message: 'field: issue; field: issue'."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        issues.append(f"{field}: {error['msg']}" if field else error["msg"])
    return error_response("; ".join(issues) or "Request validation failed", 422)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(str(exc.detail), exc.status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything not raised as a RidsError: traceback to the log, generic 500 to the caller."""
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=True,
    )
    message = "Internal server error"
    if settings.debug:
        message = f"{message} ({type(exc).__name__}: {exc})"
    return error_response(message, 500)


# ---------------------------------------------------------------------------
# Health endpoint (no auth required)
# ---------------------------------------------------------------------------
@app.get("/api/health", tags=["system"])
async def health() -> dict:
    return ok(
        {
            "status": "ok",
            "version": settings.app_version,
            "redis": getattr(app.state, "redis", None) is not None,
            "checked_at": datetime.now(timezone.utc).isoformat(),
        }
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from rids_backend.rids.routes import router as rids_router  # noqa: E402
from rids_backend.sections.routes import router as sections_router  # noqa: E402
from rids_backend.wizard.routes import router as wizard_router  # noqa: E402

app.include_router(rids_router)
app.include_router(sections_router)
app.include_router(wizard_router)
