"""
Request-scoped dependencies.
"""

from typing import Iterator

from ddconnector.config import DatadogConfig
from ddconnector.connector import DatadogConnector


def get_connector() -> Iterator[DatadogConnector]:
    """Build one connector per request and release its HTTP session afterwards."""
    connector = DatadogConnector(DatadogConfig.from_env(), instance_name="api")
    try:
        yield connector
    finally:
        connector.dispose()
