"""
FastAPI Application Factory

Exposes the connector operations over HTTP for hosts that talk JSON.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
import logging

from ddconnector import __version__
from ddconnector.api.routes import connector, health, objects
from ddconnector.framework.exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    ConnectionFailedError,
    ConnectorError,
    InvalidAttributeValueError,
    UnknownUidError,
)

logger = logging.getLogger(__name__)

# Connector error type -> HTTP status, first match wins
ERROR_STATUS = (
    (InvalidAttributeValueError, 400),
    (UnknownUidError, 404),
    (AlreadyExistsError, 409),
    (ConnectionFailedError, 502),
    (ConfigurationError, 500),
    (ConnectorError, 502),
)


def error_status(exc: ConnectorError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Datadog Identity Connector API",
        description="User and role provisioning for Datadog",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Fixed paths before the {object_class} routes
    app.include_router(health.router, tags=["Health"])
    app.include_router(connector.router, prefix="/api", tags=["Connector"])
    app.include_router(objects.router, prefix="/api", tags=["Objects"])

    @app.exception_handler(ConnectorError)
    async def connector_exception_handler(request, exc: ConnectorError):
        status = error_status(exc)
        logger.warning(f"{request.method} {request.url.path} failed ({status}): {exc}")
        return JSONResponse(
            status_code=status,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)},
        )

    return app


# Create the app instance
app = create_app()
