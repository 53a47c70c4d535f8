"""
FastAPI application entry point.

Initializes FastAPI app, registers routers and exception handlers, adds
middleware, and configures lifespan.

Dependencies: fastapi, doc_optimizer.api, doc_optimizer.observability, doc_optimizer.configs
System role: Application initialization and configuration
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from doc_optimizer.api import api_router
from doc_optimizer.api.deps import get_service_cache
from doc_optimizer.api.error_handlers import register_exception_handlers
from doc_optimizer.configs import get_settings
from doc_optimizer.observability.logger import configure_logging
from doc_optimizer.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    Prepares the artifact directory and starts the periodic health probe.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    services = get_service_cache()
    try:
        await services.store.initialize()
        if settings.health.probe_enabled:
            services.health_monitor.start()
        logger.info(
            "Application startup complete",
            extra={
                "inference_url": settings.inference.base_url,
                "model": settings.inference.model,
                "upload_dir": str(settings.upload.upload_dir),
                "concurrency_limit": settings.chunk.concurrency_limit,
            },
        )
    except Exception as e:
        logger.exception(
            "Failed to initialize application resources",
            extra={"error": str(e)},
        )
        raise

    yield

    # Shutdown
    await services.aclose()
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Document Optimizer API",
        description="Streams DOCX/TXT uploads through a local language model with retry and circuit breaking",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add observability middleware (added first = last to execute)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID", "Retry-After"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "doc_optimizer.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
