"""
Schema Descriptors

Static descriptions of object classes and their attributes. Each handler
declares its attribute table with these types; the table drives create and
update validation as well as the default attribute projection of searches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ddconnector.framework.objects import ObjectClass

STRING_CASE_IGNORE = "string-case-ignore"

# Python types allowed as attribute types, keyed by their schema name
ATTRIBUTE_TYPES: Dict[type, str] = {
    str: "string",
    bool: "boolean",
    int: "long",
    datetime: "datetime",
}


@dataclass(frozen=True)
class AttributeInfo:
    """Capabilities of one attribute of an object class."""
    name: str
    type: type = str
    native_name: Optional[str] = None
    subtype: Optional[str] = None
    required: bool = False
    createable: bool = True
    updateable: bool = True
    readable: bool = True
    multi_valued: bool = False
    returned_by_default: bool = True

    def __post_init__(self):
        if self.type not in ATTRIBUTE_TYPES:
            raise TypeError(f"Unsupported attribute type for {self.name}: {self.type}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": ATTRIBUTE_TYPES[self.type],
            "native_name": self.native_name,
            "subtype": self.subtype,
            "required": self.required,
            "createable": self.createable,
            "updateable": self.updateable,
            "readable": self.readable,
            "multi_valued": self.multi_valued,
            "returned_by_default": self.returned_by_default,
        }


@dataclass(frozen=True)
class ObjectClassInfo:
    """Attribute table of one object class."""
    object_class: ObjectClass
    attributes: Tuple[AttributeInfo, ...]

    def __post_init__(self):
        names = [info.name for info in self.attributes]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate attributes in {self.object_class.value} schema: {sorted(duplicates)}")

    def get(self, name: str) -> Optional[AttributeInfo]:
        for info in self.attributes:
            if info.name == name:
                return info
        return None

    @property
    def returned_by_default(self) -> List[str]:
        return [info.name for info in self.attributes if info.returned_by_default]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.object_class.value,
            "attributes": [info.to_dict() for info in self.attributes],
        }


@dataclass(frozen=True)
class Schema:
    """Full connector schema: object classes plus supported search options."""
    object_classes: Tuple[ObjectClassInfo, ...]
    search_options: Tuple[str, ...] = field(default_factory=tuple)

    def get(self, object_class: ObjectClass) -> Optional[ObjectClassInfo]:
        for info in self.object_classes:
            if info.object_class is object_class:
                return info
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object_classes": [info.to_dict() for info in self.object_classes],
            "search_options": list(self.search_options),
        }
