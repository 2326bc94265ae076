"""
HTTP adapter for the Datadog connector.
"""

from ddconnector.api.app import create_app

__all__ = ["create_app"]
