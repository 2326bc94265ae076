"""
API Routes
"""

from ddconnector.api.routes import health, connector, objects

__all__ = ["health", "connector", "objects"]
