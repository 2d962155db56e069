"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.database import close_db, engine, init_db, ping_database
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import analytics, booking, health, metrics, profile, tour

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Sets up tracing and the database on startup and releases connections on
    shutdown.
    """
    logger.info("Starting FastAPI application")
    logger.info(f"Environment: {settings.environment}")

    try:
        setup_tracing()
        setup_metrics()
        instrument_sqlalchemy(engine)
        logger.info("Observability setup completed")

        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    if not settings.notification_url:
        logger.warning("NOTIFICATION_URL is not set; cancellations will not be announced")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down FastAPI application")
    await close_db()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Tour Desk API",
        description="RPC-over-HTTP API for tour bookings, the tour catalog and operator analytics",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition", "traceparent", "tracestate"],
    )

    setup_middleware(app, enable_logging=True)

    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=dict,
    )
    async def health_check():
        """Liveness probe."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        response_model=dict,
    )
    async def readiness_check():
        """Readiness probe; reports the database as unavailable when a trivial query fails."""
        try:
            database = "ok" if await ping_database() else "unavailable"
        except Exception as e:
            logger.warning("Readiness check failed", extra={"error": str(e)})
            database = "unavailable"

        ready = database == "ok"
        return JSONResponse(
            status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if ready else "not_ready",
                "service": SERVICE_NAME,
                "checks": {
                    "database": database,
                    "notifications": "configured" if settings.notification_url else "disabled",
                },
            },
        )

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        response_model=dict,
    )
    async def service_info():
        """Service information endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Tour bookings, catalog management and operator analytics",
            "environment": settings.environment,
            "features": {
                "authentication": True,
                "cancellation_notifications": bool(settings.notification_url),
                "tracing": bool(settings.otlp_endpoint),
                "problem_details": True,
                "report_export": True,
            },
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if settings.debug else None,
            },
        }

    app.include_router(health.router)
    app.include_router(profile.router)
    app.include_router(tour.router)
    app.include_router(booking.router)
    app.include_router(analytics.router)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tourdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
