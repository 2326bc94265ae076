"""
Connector utility functions.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, Set

from ddconnector.framework.objects import OperationOptions
from ddconnector.framework.schema import ObjectClassInfo

# Fractional seconds, normalized to microseconds before parsing
_FRACTION = re.compile(r"\.(\d+)")


def to_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a Datadog ISO-8601 timestamp, keeping its offset."""
    if not value:
        return None
    # fromisoformat only accepts a trailing "Z" and fractions that aren't
    # 3 or 6 digits from Python 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)


def to_resource_attribute_value(value: Optional[str]) -> str:
    """Datadog clears a string attribute when it receives an empty string."""
    return "" if value is None else value


def should_return(
    attributes_to_get: Optional[Set[str]],
    attribute_name: str,
    schema_info: ObjectClassInfo,
) -> bool:
    """
    Decide whether an attribute belongs in a search result.

    With an explicit attributes-to-get set only the listed attributes are
    returned; otherwise only the ones flagged returned-by-default.
    """
    if attributes_to_get is None:
        info = schema_info.get(attribute_name)
        return info is not None and info.returned_by_default
    return attribute_name in attributes_to_get


def should_allow_partial_attribute_values(options: Optional[OperationOptions]) -> bool:
    # Hosts leave unset options as None
    return options is not None and options.allow_partial_attribute_values is True


def should_return_default_attributes(options: Optional[OperationOptions]) -> bool:
    return options is not None and options.return_default_attributes is True


def create_full_attributes_to_get(
    schema_info: ObjectClassInfo,
    options: Optional[OperationOptions],
) -> Optional[Set[str]]:
    """
    Combine RETURN_DEFAULT_ATTRIBUTES and ATTRIBUTES_TO_GET into one set.

    Returns None when neither option is set, meaning "returned-by-default
    attributes only".
    """
    attributes_to_get: Optional[Set[str]] = None
    if should_return_default_attributes(options):
        attributes_to_get = set(schema_info.returned_by_default)
    if options is not None and options.attributes_to_get is not None:
        if attributes_to_get is None:
            attributes_to_get = set()
        attributes_to_get.update(options.attributes_to_get)
    return attributes_to_get
