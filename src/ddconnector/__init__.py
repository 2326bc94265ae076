"""
ddconnector - Datadog identity connector

Bridges an identity governance platform to Datadog's user and role
administration API.

Modules:
- framework: Host-facing objects, filters, schema descriptors and errors
- integration: Datadog v2 REST client
- handlers: Per object class (user, role) validation and dispatch
- connector: The connector facade used by the host
- api: HTTP adapter exposing the connector operations
"""

__version__ = "0.1.0"

from ddconnector.config import DatadogConfig
from ddconnector.connector import DatadogConnector
from ddconnector.filter import DatadogFilter, DatadogFilterTranslator
from ddconnector.integration import DatadogClient
from ddconnector.handlers import build_schema

__all__ = [
    "__version__",
    "DatadogConfig",
    "DatadogConnector",
    "DatadogFilter",
    "DatadogFilterTranslator",
    "DatadogClient",
    "build_schema",
]
