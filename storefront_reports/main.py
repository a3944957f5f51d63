"""
FastAPI Application

Main entry point for the Storefront Reports API.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from storefront_reports.config import get_settings
from storefront_reports.config.logging import configure_logging
from storefront_reports.database import close_database, init_database
from storefront_reports.serving.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from storefront_reports.serving.api.routes import health_router, reports_router
from storefront_reports.serving.cache import close_redis, init_redis

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect backing services on startup, release them on shutdown"""
    configure_logging()
    logger.info("Starting Storefront Reports API")

    try:
        await init_database()
    except Exception as e:
        logger.warning("Database init failed", error=str(e))

    try:
        await init_redis()
    except Exception as e:
        logger.warning("Redis init failed, serving without cache", error=str(e))

    yield

    logger.info("Shutting down")
    await close_database()
    await close_redis()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()
    app = FastAPI(
        title="Storefront Reports API",
        description="Back-office report datasets: KPIs, charts, tables and CSV export",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.security.rate_limit_requests,
        window_seconds=settings.security.rate_limit_window_seconds,
    )

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Storefront Reports API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus scrape endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_settings().api_host, port=get_settings().api_port)
