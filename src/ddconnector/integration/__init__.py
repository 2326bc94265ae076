"""
Integration modules for external systems (Datadog).
"""

from ddconnector.integration.datadog_client import DatadogClient

__all__ = [
    "DatadogClient",
]
