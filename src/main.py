"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order
- Can create multiple app instances if needed (e.g., for testing)

For local development:
    uvicorn src.main:app --reload

For production:
    python -m src.main
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import health, videos
from .api.static import static_files_or_none
from .config.settings import Settings, get_settings
from .core.catalog.errors import BackendUnavailable, ClientInputError
from .infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


def build_storage_client(settings: Settings) -> StorageClient:
    """Create the shared storage client from validated settings."""
    if settings.storage_mock_mode:
        return create_storage_client(mock_mode=True)

    config = StorageConfig(
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        bucket_name=settings.aws_s3_bucket_name,
        region=settings.aws_region,
        endpoint_url=settings.aws_s3_endpoint_url or None,
        force_path_style=settings.aws_s3_force_path_style,
    )
    return create_storage_client(config=config)


def create_app(
    settings: Optional[Settings] = None,
    storage_client: Optional[StorageClient] = None,
) -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. Tests can pass their
    own settings and storage client; otherwise both come from the
    environment when the application starts.
    """
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Startup validates configuration and builds the storage client
        once. Missing settings raise StartupConfigurationError, which
        aborts startup: the process must not serve with a broken config.
        """
        logger.info(
            "Video streamer starting",
            extra={
                "version": settings.api_version,
                "mock_mode": settings.storage_mock_mode,
                "bucket": settings.aws_s3_bucket_name,
            }
        )

        if storage_client is None:
            settings.ensure_valid()
            app.state.storage_client = build_storage_client(settings)
        else:
            app.state.storage_client = storage_client

        yield

        # Shutdown
        logger.info("Video streamer shutting down")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Browse videos stored in an S3-compatible bucket and stream them
        through short-lived signed URLs.

        1. **Browse**: `GET /api/videos?prefix=&page=&pageSize=`
        2. **Stream**: `GET /api/videos/stream/{key}` redirects to a signed URL
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "HEAD"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        videos.router,
        prefix="/api/videos",
        tags=["Videos"],
    )

    @app.exception_handler(ClientInputError)
    async def client_input_error_handler(request: Request, exc: ClientInputError):
        logger.warning(
            "Rejected client input",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(BackendUnavailable)
    async def backend_unavailable_handler(request: Request, exc: BackendUnavailable):
        logger.error(
            "Storage backend unavailable",
            extra={
                "path": request.url.path,
                "operation": exc.operation,
                "code": exc.code,
                "error": str(exc),
            },
        )
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        In production, this prevents stack traces from leaking to clients.
        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error."}
        )

    # Static frontend last, so it only sees paths no router claimed
    static_app = static_files_or_none(settings.static_dir)
    if static_app is not None:
        app.mount("/", static_app, name="static")

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
            "static_dir": settings.static_dir if static_app else None,
        }
    )

    return app


# Create the application instance
# This is what uvicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
