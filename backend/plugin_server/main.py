"""
Plugin Server FastAPI Application
Serves uploaded plugin JARs and the files inside them
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.responses import Response

from .config import get_settings
from .database import check_database_health, create_tables
from .middleware.error_handling import register_error_handlers
from .routes import plugins

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management."""
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")
    create_tables()
    logger.info(f"Plugin API available under {settings.api_prefix}{plugins.router.prefix}")

    yield

    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Stores plugin JAR archives and serves their contents on demand",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

register_error_handlers(app, include_debug_info=settings.debug)


@app.middleware("http")
async def request_size_limit_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Reject request bodies larger than the configured upload limit."""
    max_size = settings.max_upload_size

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_size:
        logger.warning(
            f"Request too large: {content_length} bytes from {request.client.host if request.client else 'unknown'}"
        )
        return JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"detail": f"Request body too large. Maximum size: {max_size} bytes"},
        )

    return await call_next(request)


app.include_router(plugins.router, prefix=settings.api_prefix)


# Health Check Endpoint
@app.get("/health")
async def health_check() -> JSONResponse:
    """Liveness check, reports database connectivity."""
    db_healthy = check_database_health()
    health_status = {
        "status": "healthy" if db_healthy else "degraded",
        "timestamp": time.time(),
        "version": settings.app_version,
        "database": "healthy" if db_healthy else "unhealthy",
    }
    if not db_healthy:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)
    return JSONResponse(status_code=status.HTTP_200_OK, content=health_status)


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "plugin_server.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
