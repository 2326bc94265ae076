"""
Health Check Endpoints

Liveness never touches Datadog. Readiness only checks that the DD_*
settings are usable; use POST /api/test to check the keys themselves.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime

from ddconnector import __version__
from ddconnector.config import DatadogConfig
from ddconnector.framework.exceptions import ConfigurationError
from ddconnector.handlers import HANDLERS

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness plus the object classes this connector serves."""
    return {
        "status": "healthy",
        "service": "ddconnector",
        "version": __version__,
        "object_classes": [object_class.value for object_class in HANDLERS],
        "timestamp": datetime.now().isoformat(),
    }


@router.get("/health/ready")
async def readiness_check():
    """Report whether a connector could be built from the environment."""
    config = DatadogConfig.from_env()
    try:
        config.validate_config()
    except ConfigurationError as e:
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "detail": str(e)},
        )

    return {
        "status": "ready",
        "site": config.site,
        "base_url": config.base_url,
        "proxy": bool(config.proxies),
    }
