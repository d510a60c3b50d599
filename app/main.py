"""FastAPI main application for the election results dashboard."""

from contextlib import asynccontextmanager
import time

import asyncpg
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes import dashboard, elections, reports, results, stations
from app.core.config import settings
from app.core.database import close_db_pool, create_db_pool
from app.core.logging_config import get_logger, setup_logging
from app.core.responses import error_response_dict, success_response
from app.services.snapshot import SnapshotFeed

# Setup logging
setup_logging()
logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - runs on startup and shutdown."""
    logger.info("Starting election results backend...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    app.state.snapshot_feed = SnapshotFeed(channel=settings.SNAPSHOT_CHANNEL)
    app.state.db_pool = None

    # Database and change feed are skipped in the test environment
    if settings.ENVIRONMENT != "test":
        app.state.db_pool = await create_db_pool(settings)
        await app.state.snapshot_feed.start(app.state.db_pool)

    yield

    if settings.ENVIRONMENT != "test":
        await app.state.snapshot_feed.stop()
        await close_db_pool(app.state.db_pool)
    logger.info("Shutting down election results backend...")


app = FastAPI(
    title="Election Results Dashboard",
    description="""
    **Election Results Dashboard** - collection and aggregation of polling station results

    Features:
    - Result entry per polling station, with CSV bulk import
    - Dashboard KPIs over the latest submission of each station
    - Candidate ranking and chart data
    - Sortable per-station detailed table
    - Official report (procès-verbal) listing and CSV export

    ## Authentication

    Include a JWT issued by the identity provider in the Authorization header:

    ```
    Authorization: Bearer <your_jwt_token>
    ```

    ## Roles

    - **Super Admin**: everything, including registry management, CSV import and reports
    - **Admin** / **Bureau de Vote**: enter results for their assigned polling station
    - **Observateur**: read-only dashboard and history
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(SecurityHeadersMiddleware)

if settings.ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
        expose_headers=["Content-Disposition"],
    )


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with standardized error responses."""
    if isinstance(exc.detail, dict):
        response = error_response_dict(exc.detail, exc.status_code)
    else:
        response = error_response_dict(
            {"success": False, "message": exc.detail, "data": None, "errors": None},
            exc.status_code,
        )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors[field] = error["msg"]

    return error_response_dict(
        {
            "success": False,
            "message": "Validation failed",
            "data": None,
            "errors": errors,
        },
        422,
    )


@app.exception_handler(asyncpg.exceptions.PostgresError)
async def database_exception_handler(
    request: Request, exc: asyncpg.exceptions.PostgresError
):
    """Handle database errors."""
    logger.error(f"Database error: {exc}", exc_info=True)
    return error_response_dict(
        {
            "success": False,
            "message": "Database error occurred",
            "data": None,
            "errors": None,
        },
        500,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return error_response_dict(
        {
            "success": False,
            "message": "An unexpected error occurred",
            "data": None,
            "errors": None,
        },
        500,
    )


# Versioned API router
v1_router = APIRouter(prefix="/v1")

for module in (dashboard, results, reports, elections, stations):
    v1_router.include_router(module.router)
    # Also at root level (latest version)
    app.include_router(module.router)

app.include_router(v1_router)


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring and load balancers.

    Checks database connectivity and reports the loaded snapshot version.
    Returns 200 if healthy, 503 otherwise.
    """
    health_status = {"status": "healthy", "timestamp": time.time(), "checks": {}}
    health_status["checks"]["api"] = {"status": "healthy", "message": "API is running"}

    pool = getattr(request.app.state, "db_pool", None)
    if pool is None:
        health_status["checks"]["database"] = {
            "status": "skipped",
            "message": "No database pool configured",
        }
    else:
        try:
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            health_status["checks"]["database"] = {
                "status": "healthy",
                "message": "Database is accessible",
                "pool": {"size": pool.get_size(), "idle": pool.get_idle_size()},
            }
        except (asyncpg.PostgresError, OSError) as e:
            health_status["status"] = "unhealthy"
            health_status["checks"]["database"] = {
                "status": "unhealthy",
                "message": f"Database check failed: {e!s}",
            }

    feed = getattr(request.app.state, "snapshot_feed", None)
    snapshot = feed.current if feed else None
    health_status["checks"]["snapshot"] = {
        "status": "loaded" if snapshot else "empty",
        "version": snapshot.version if snapshot else None,
    }

    if health_status["status"] != "healthy":
        return error_response_dict(
            {
                "success": False,
                "message": "Health check failed",
                "data": health_status,
                "errors": None,
            },
            503,
        )

    return success_response(data=health_status)
