"""
Object class handlers.

``HANDLERS`` maps every supported object class to its handler class.
"""

from typing import Dict, Type

from ddconnector.framework.objects import ObjectClass
from ddconnector.framework.schema import Schema
from ddconnector.handlers.base import AbstractDatadogHandler
from ddconnector.handlers.role import RoleHandler
from ddconnector.handlers.user import UserHandler
from ddconnector.schema import SEARCH_OPTIONS

HANDLERS: Dict[ObjectClass, Type[AbstractDatadogHandler]] = {
    ObjectClass.USER: UserHandler,
    ObjectClass.ROLE: RoleHandler,
}


def build_schema() -> Schema:
    """Connector schema assembled from the registered handlers."""
    return Schema(
        object_classes=tuple(handler.schema_info() for handler in HANDLERS.values()),
        search_options=SEARCH_OPTIONS,
    )


__all__ = [
    "AbstractDatadogHandler",
    "UserHandler",
    "RoleHandler",
    "HANDLERS",
    "build_schema",
]
