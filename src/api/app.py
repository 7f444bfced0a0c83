"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import cleanup_dependencies, get_alert_service
from src.api.routes import alerts, health
from src.config.settings import get_settings
from src.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Alert API starting up")

    service = await get_alert_service()
    logger.info("Alert engine ready", **service.status())

    yield

    logger.info("Alert API shutting down")
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "alerts", "description": "Metric alert engine"},
    ]

    app = FastAPI(
        title="CardStrategy Alert API",
        description="""
API over the CardStrategy metric alert engine.

## Flow

Metric snapshots are checked against per-dimension thresholds; alerts
above threshold are deduplicated (5 minute window per type), recorded,
and fanned out to email, Slack, webhook, and SMS by severity.

## Authentication

Requires `X-API-KEY` header for all requests except `/health`.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # CORS origins from CORS_ORIGINS env var, comma-separated
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Correlation ID bound for the whole request, so alert-engine log lines
    # emitted while handling it (dedup, dispatch) carry the same request_id.
    @app.middleware("http")
    async def correlate_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_context(request_id=request_id, route=request.url.path)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers["X-Request-ID"] = request_id
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        # Health probes log at debug
        log = logger.debug if request.url.path == "/health" else logger.info
        log(
            "Request handled",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=elapsed_ms,
        )
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(alerts.router, tags=["alerts"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "CardStrategy Alert API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
