"""
Trade Journal REST API
======================

FastAPI application exposing the live trade journal.

Usage:
    # Development
    uvicorn tradejournal.api.main:app --reload --port 8000

Environment Variables:
    TRADEJOURNAL_CONFIG: Path to the YAML settings file
    TRADEJOURNAL_STORE_BACKEND: memory | firebase
    TRADEJOURNAL_DATABASE_URL: Realtime Database URL (firebase backend)
    TRADEJOURNAL_CREDENTIALS: Service-account JSON (firebase backend)
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config.logging import clear_request_context, configure_logging, set_request_context
from ..config.settings import JournalSettings, load_settings
from ..core.errors import JournalError
from ..store.base import DocumentStore
from .dependencies import Container
from .routers import register_routers
from .routers.base import get_timestamp

logger = logging.getLogger(__name__)

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:5173",
]


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    settings: Optional[JournalSettings] = None,
    store: Optional[DocumentStore] = None,
    setup_logging: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use; loaded from YAML/env when omitted
        store: Store connection to own; built from settings when omitted
        setup_logging: Configure root logging from settings

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or load_settings()
    if setup_logging:
        configure_logging(
            level=settings.logging.level,
            json_format=settings.logging.json_format,
            log_file=settings.logging.log_file,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Trade journal API starting up...")
        container = Container(settings=settings, store=store)
        await container.initialize()
        app.state.container = container
        logger.info("Trade journal API ready")

        yield

        logger.info("Trade journal API shutting down...")
        await container.close()

    app = FastAPI(
        title="Trade Journal API",
        description="Personal trading journal backed by a live document store",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "System", "description": "Health checks"},
            {"name": "Trades", "description": "Trade records"},
            {"name": "Journal", "description": "Statistics and trading rules"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = set_request_context(request.headers.get("X-Request-ID"))
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response

    register_routers(app)

    @app.exception_handler(JournalError)
    async def journal_error_handler(request: Request, exc: JournalError):
        """Validation, not-found and persistence failures keep their own status."""
        logger.info(f"{request.method} {request.url.path} -> {exc.http_status}: {exc.technical_message}")
        return JSONResponse(
            status_code=exc.http_status,
            content={
                "success": False,
                "error": exc.user_message,
                "detail": exc.to_dict(),
                "timestamp": get_timestamp(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": exc.detail,
                "timestamp": get_timestamp(),
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "detail": str(exc) if os.environ.get("DEBUG") else None,
                "timestamp": get_timestamp(),
            },
        )

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


def run_dev_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the development server."""
    import uvicorn

    uvicorn.run(
        "tradejournal.api.main:app",
        host=host,
        port=port,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    run_dev_server()
