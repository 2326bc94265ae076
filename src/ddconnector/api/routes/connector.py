"""
Connector-level Endpoints

Schema discovery and connection test.
"""

import logging

from fastapi import APIRouter, Depends

from ddconnector.api.dependencies import get_connector
from ddconnector.connector import DatadogConnector

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/schema")
def get_schema(connector: DatadogConnector = Depends(get_connector)):
    """Object classes, their attributes and the supported search options."""
    return connector.schema().to_dict()


@router.post("/test")
def test_connection(connector: DatadogConnector = Depends(get_connector)):
    """Check the configured credentials against Datadog."""
    connector.test()
    logger.info("Datadog connection test succeeded")
    return {"status": "ok"}
