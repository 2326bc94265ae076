"""
Identity connector framework types.

Host-facing objects, filters, schema descriptors and the error taxonomy.
"""

from ddconnector.framework.exceptions import (
    ConnectorError,
    ConfigurationError,
    InvalidAttributeValueError,
    ConnectionFailedError,
    UnknownUidError,
    AlreadyExistsError,
    ConnectorIOError,
    PaginationLimitExceededError,
)
from ddconnector.framework.objects import (
    UID,
    NAME,
    ENABLE,
    ObjectClass,
    AttributeValueCompleteness,
    Name,
    Uid,
    Attribute,
    AttributeDelta,
    OperationOptions,
    ConnectorObject,
    ResultsHandler,
)
from ddconnector.framework.filters import (
    Filter,
    EqualsFilter,
    ContainsFilter,
    StartsWithFilter,
    NotFilter,
    AndFilter,
    OrFilter,
    AbstractFilterTranslator,
)
from ddconnector.framework.schema import (
    AttributeInfo,
    ObjectClassInfo,
    Schema,
)

__all__ = [
    # Errors
    "ConnectorError",
    "ConfigurationError",
    "InvalidAttributeValueError",
    "ConnectionFailedError",
    "UnknownUidError",
    "AlreadyExistsError",
    "ConnectorIOError",
    "PaginationLimitExceededError",
    # Objects
    "UID",
    "NAME",
    "ENABLE",
    "ObjectClass",
    "AttributeValueCompleteness",
    "Name",
    "Uid",
    "Attribute",
    "AttributeDelta",
    "OperationOptions",
    "ConnectorObject",
    "ResultsHandler",
    # Filters
    "Filter",
    "EqualsFilter",
    "ContainsFilter",
    "StartsWithFilter",
    "NotFilter",
    "AndFilter",
    "OrFilter",
    "AbstractFilterTranslator",
    # Schema
    "AttributeInfo",
    "ObjectClassInfo",
    "Schema",
]
