"""
Main FastAPI application for the Journey Builder service.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from journey_builder.api.endpoints.health import router as health_router
from journey_builder.api.endpoints.journeys import router as journeys_router
from journey_builder.api.middleware.error_handlers import setup_exception_handlers
from journey_builder.api.middleware.tracking import RequestTrackingMiddleware
from journey_builder.core.config import get_settings
from journey_builder.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    settings = get_settings()
    setup_logging(
        level=settings.LOG_LEVEL,
        format_type=settings.LOG_FORMAT,
        log_file=settings.LOG_FILE
    )
    logger.info(
        "Journey builder started",
        extra={"environment": settings.ENVIRONMENT, "version": settings.APP_VERSION}
    )

    yield

    logger.info("Journey builder stopped")


def create_application() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Compiles customer journeys built in the wizard into sequences",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # Add tracking middleware (first for maximum coverage)
    app.add_middleware(RequestTrackingMiddleware)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
            allow_methods=settings.CORS_ALLOW_METHODS,
            allow_headers=settings.CORS_ALLOW_HEADERS,
        )

    setup_exception_handlers(app)

    app.include_router(
        journeys_router,
        prefix=settings.API_V1_STR,
        tags=["journeys"]
    )

    app.include_router(
        health_router,
        prefix=settings.API_V1_STR,
        tags=["health"]
    )

    # Root health check endpoint
    @app.get("/health", include_in_schema=False)
    async def root_health_check():
        """Root health check endpoint for load balancers."""
        return {"status": "healthy", "version": settings.APP_VERSION}

    return app


# Create application instance
app = create_application()


def run_server() -> None:
    """Run the FastAPI server."""
    settings = get_settings()

    uvicorn.run(
        "journey_builder.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_server()
