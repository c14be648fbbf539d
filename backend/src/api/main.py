"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import categories, health, problems, stats, users, webhooks
from core.config import get_settings
from db.session import create_database

logger = logging.getLogger(__name__)

# Paths that stay reachable while MAINTENANCE_MODE is on
MAINTENANCE_EXEMPT_PATHS = frozenset({"/health"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    # Startup: resolve the database mode and open the connection pool once
    database, config = create_database(get_settings())
    app.state.database = database
    app.state.database_config = config
    logger.info("Database ready (mode: %s)", config.mode)

    yield

    # Shutdown: close pooled connections
    await database.dispose()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


class MaintenanceModeMiddleware(BaseHTTPMiddleware):
    """Answer 503 for every route except the health check while in maintenance."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Short-circuit the request when MAINTENANCE_MODE is enabled."""
        if get_settings().maintenance_mode and request.url.path not in MAINTENANCE_EXEMPT_PATHS:
            return JSONResponse(
                status_code=503,
                content={"error": "Service is under maintenance"},
            )
        return await call_next(request)


app_settings = get_settings()

app = FastAPI(
    title="LeetLog API",
    description="A journal of solved coding problems with categories, statistics, and CSV import/export.",  # noqa: E501
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Render HTTP errors as {"error": message}; structured details pass through."""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception,
) -> JSONResponse:
    """Log unexpected failures and return a generic 500 without internals."""
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


# Maintenance mode middleware (innermost, short-circuits before routing)
app.add_middleware(MaintenanceModeMiddleware)

# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(problems.router)
app.include_router(categories.router)
app.include_router(stats.router)
app.include_router(webhooks.router)
