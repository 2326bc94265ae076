"""
Base class for Datadog object handlers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set

from ddconnector.config import DatadogConfig
from ddconnector.filter import DatadogFilter
from ddconnector.framework.exceptions import InvalidAttributeValueError
from ddconnector.framework.objects import (
    Attribute,
    AttributeDelta,
    ObjectClass,
    OperationOptions,
    ResultsHandler,
    Uid,
)
from ddconnector.framework.schema import ObjectClassInfo
from ddconnector.integration.datadog_client import DatadogClient
from ddconnector.utils import create_full_attributes_to_get

logger = logging.getLogger(__name__)


class AbstractDatadogHandler(ABC):
    """
    Handles one object class.

    Subclasses declare ``SCHEMA`` (their attribute table) and delegate the
    operations to the matching DatadogClient methods. Attribute sets and
    deltas are checked against ``SCHEMA`` before the client is called.
    """

    SCHEMA: ObjectClassInfo

    def __init__(self, instance_name: str, config: DatadogConfig, client: DatadogClient):
        self.instance_name = instance_name
        self.config = config
        self.client = client

    @property
    def object_class(self) -> ObjectClass:
        return self.SCHEMA.object_class

    @classmethod
    def schema_info(cls) -> ObjectClassInfo:
        return cls.SCHEMA

    # ========== Validation ==========

    def validate_create(self, attributes: Iterable[Attribute]) -> List[Attribute]:
        attributes = list(attributes)
        present = set()

        for attr in attributes:
            info = self.SCHEMA.get(attr.name)
            if info is None:
                raise InvalidAttributeValueError(
                    f"Unknown attribute {attr.name} for object class {self.object_class.value}"
                )
            if not info.createable:
                raise InvalidAttributeValueError(
                    f"Attribute {attr.name} of {self.object_class.value} can't be set on create"
                )
            if not info.multi_valued and len(attr.values) > 1:
                raise InvalidAttributeValueError(f"Attribute {attr.name} is single-valued")
            if attr.values:
                present.add(attr.name)

        for info in self.SCHEMA.attributes:
            if info.required and info.name not in present:
                raise InvalidAttributeValueError(
                    f"Missing required attribute {info.name} for object class {self.object_class.value}"
                )

        return attributes

    def validate_deltas(self, deltas: Iterable[AttributeDelta]) -> List[AttributeDelta]:
        deltas = list(deltas)

        for delta in deltas:
            info = self.SCHEMA.get(delta.name)
            if info is None:
                raise InvalidAttributeValueError(
                    f"Unknown attribute {delta.name} for object class {self.object_class.value}"
                )
            if not info.updateable:
                raise InvalidAttributeValueError(
                    f"Attribute {delta.name} of {self.object_class.value} can't be updated"
                )
            if not info.multi_valued and (delta.values_to_add or delta.values_to_remove):
                raise InvalidAttributeValueError(
                    f"Attribute {delta.name} is single-valued, use a replace delta"
                )

        return deltas

    # ========== Operations ==========

    @abstractmethod
    def create(self, attributes: Iterable[Attribute]) -> Uid:
        ...

    @abstractmethod
    def update_delta(
        self,
        uid: Uid,
        deltas: Iterable[AttributeDelta],
        options: Optional[OperationOptions],
    ) -> Set[AttributeDelta]:
        ...

    @abstractmethod
    def delete(self, uid: Uid, options: Optional[OperationOptions]) -> None:
        ...

    def query(
        self,
        filter: Optional[DatadogFilter],
        handler: ResultsHandler,
        options: Optional[OperationOptions],
    ) -> None:
        # Full attributes to get is RETURN_DEFAULT_ATTRIBUTES + ATTRIBUTES_TO_GET
        attributes_to_get = create_full_attributes_to_get(self.SCHEMA, options)
        page_size = self.config.query_page_size

        if filter is None:
            self.list_all(handler, options, attributes_to_get, page_size)
        elif filter.is_by_uid:
            self.get_by_uid(filter.uid, handler, options, attributes_to_get, page_size)
        else:
            self.get_by_name(filter.name, handler, options, attributes_to_get, page_size)

    @abstractmethod
    def list_all(self, handler, options, attributes_to_get, page_size) -> None:
        ...

    @abstractmethod
    def get_by_uid(self, uid, handler, options, attributes_to_get, page_size) -> None:
        ...

    @abstractmethod
    def get_by_name(self, name, handler, options, attributes_to_get, page_size) -> None:
        ...
