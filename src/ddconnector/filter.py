"""
Datadog Search Filters

Datadog can only list whole collections, so the only searches worth
translating are exact lookups by id or by name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ddconnector.framework.filters import AbstractFilterTranslator, EqualsFilter
from ddconnector.framework.objects import NAME, UID, Name, ObjectClass, OperationOptions, Uid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatadogFilter:
    """Lookup of a single object, either by uid or by name."""
    uid: Optional[Uid] = None
    name: Optional[Name] = None

    @classmethod
    def by_uid(cls, uid: Uid) -> "DatadogFilter":
        return cls(uid=uid)

    @classmethod
    def by_name(cls, name: Name) -> "DatadogFilter":
        return cls(name=name)

    @property
    def is_by_uid(self) -> bool:
        return self.uid is not None

    @property
    def is_by_name(self) -> bool:
        return self.name is not None


class DatadogFilterTranslator(AbstractFilterTranslator[DatadogFilter]):
    """
    Filter translator for Datadog queries.

    Supports the basic equality lookups hosts need for synchronization.
    Everything else is left to the host by returning no filter.
    """

    def __init__(self, object_class: ObjectClass, options: Optional[OperationOptions] = None):
        self.object_class = object_class
        self.options = options

    def create_equals_expression(self, filter: EqualsFilter, not_: bool) -> Optional[DatadogFilter]:
        # No way to search for "not equals"
        if not_:
            return None

        attribute = filter.attribute
        value = attribute.string_value()
        if value is None:
            return None

        if attribute.name == UID:
            return DatadogFilter.by_uid(Uid(value))
        if attribute.name == NAME:
            return DatadogFilter.by_name(Name(value))

        logger.debug(f"Untranslatable {self.object_class.value} filter on attribute {attribute.name}")
        return None
