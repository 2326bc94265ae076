"""
Connector Objects

Value types exchanged between the identity governance host and the connector:
object classes, identifiers, attributes, attribute deltas, search options and
the normalized objects returned by searches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from ddconnector.framework.exceptions import InvalidAttributeValueError

# Special attribute names understood by every identity governance host
UID = "__UID__"
NAME = "__NAME__"
ENABLE = "__ENABLE__"


class ObjectClass(str, Enum):
    """Object classes supported by the connector."""
    USER = "user"
    ROLE = "role"

    @classmethod
    def parse(cls, value: Any) -> "ObjectClass":
        """Resolve a host-supplied object class, rejecting anything unsupported."""
        if value is None:
            raise InvalidAttributeValueError("ObjectClass value not provided")
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidAttributeValueError(f"Unsupported object class {value}")


class AttributeValueCompleteness(str, Enum):
    """Whether an attribute carries all of its values."""
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class Name:
    """Unique, human readable identifier of an object."""
    value: str


@dataclass(frozen=True)
class Uid:
    """Server-assigned identifier of an object, with an optional name hint."""
    value: str
    name_hint: Optional[Name] = None


@dataclass(frozen=True)
class Attribute:
    """A named, possibly multi-valued attribute."""
    name: str
    values: List[Any] = field(default_factory=list)
    completeness: AttributeValueCompleteness = AttributeValueCompleteness.COMPLETE

    @classmethod
    def of(cls, name: str, *values: Any) -> "Attribute":
        return cls(name=name, values=list(values))

    @property
    def value(self) -> Any:
        """Single value of the attribute, None when empty."""
        if not self.values:
            return None
        if len(self.values) > 1:
            raise InvalidAttributeValueError(f"Expected a single value for attribute {self.name}")
        return self.values[0]

    def string_value(self) -> Optional[str]:
        value = self.value
        return None if value is None else str(value)

    def boolean_value(self) -> Optional[bool]:
        return to_bool(self.name, self.value)

    @property
    def is_complete(self) -> bool:
        return self.completeness is AttributeValueCompleteness.COMPLETE


@dataclass(frozen=True)
class AttributeDelta:
    """
    Change to a single attribute.

    Single-valued attributes are changed with ``values_to_replace``
    (an empty list removes the value); multi-valued attributes are changed
    with ``values_to_add`` / ``values_to_remove``.
    """
    name: str
    values_to_add: Optional[List[Any]] = None
    values_to_remove: Optional[List[Any]] = None
    values_to_replace: Optional[List[Any]] = None

    @classmethod
    def replace(cls, name: str, *values: Any) -> "AttributeDelta":
        return cls(name=name, values_to_replace=list(values))

    @classmethod
    def add_remove(
        cls,
        name: str,
        add: Optional[Iterable[Any]] = None,
        remove: Optional[Iterable[Any]] = None,
    ) -> "AttributeDelta":
        return cls(
            name=name,
            values_to_add=list(add) if add is not None else None,
            values_to_remove=list(remove) if remove is not None else None,
        )

    @property
    def value(self) -> Any:
        """Single replacement value, None when the value is being removed."""
        if not self.values_to_replace:
            return None
        if len(self.values_to_replace) > 1:
            raise InvalidAttributeValueError(f"Expected a single value for attribute {self.name}")
        return self.values_to_replace[0]

    def string_value(self) -> Optional[str]:
        value = self.value
        return None if value is None else str(value)

    def boolean_value(self) -> Optional[bool]:
        return to_bool(self.name, self.value)


@dataclass
class OperationOptions:
    """Search options recognized by the connector."""
    attributes_to_get: Optional[List[str]] = None
    return_default_attributes: Optional[bool] = None
    allow_partial_attribute_values: Optional[bool] = None


@dataclass
class ConnectorObject:
    """Normalized representation of a Datadog user or role."""
    object_class: ObjectClass
    uid: str
    name: str
    attributes: Dict[str, Attribute] = field(default_factory=dict)

    def add_attribute(self, name: str, *values: Any) -> None:
        # None means "no value", not a value of None
        self.attributes[name] = Attribute(name=name, values=[v for v in values if v is not None])

    def add(self, attribute: Attribute) -> None:
        self.attributes[attribute.name] = attribute

    def get(self, name: str) -> Optional[Attribute]:
        return self.attributes.get(name)

    def value(self, name: str) -> Any:
        attribute = self.attributes.get(name)
        if attribute is None or not attribute.values:
            return None
        return attribute.values[0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        attributes: Dict[str, Any] = {}
        incomplete: List[str] = []
        for attribute in self.attributes.values():
            attributes[attribute.name] = list(attribute.values)
            if not attribute.is_complete:
                incomplete.append(attribute.name)
        return {
            "object_class": self.object_class.value,
            "uid": self.uid,
            "name": self.name,
            "attributes": attributes,
            "incomplete_attributes": incomplete,
        }


# Receives each search result; returning False stops the search
ResultsHandler = Callable[[ConnectorObject], Optional[bool]]


def to_bool(attribute_name: str, value: Any) -> Optional[bool]:
    """Coerce a host-supplied value to a boolean."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise InvalidAttributeValueError(f"Expected a boolean value for attribute {attribute_name}: {value!r}")


def get_name_from_attributes(attributes: Iterable[Attribute]) -> Optional[Name]:
    for attribute in attributes:
        if attribute.name == NAME:
            value = attribute.string_value()
            return Name(value) if value else None
    return None


def get_delta_for_name(deltas: Iterable[AttributeDelta]) -> Optional[AttributeDelta]:
    for delta in deltas:
        if delta.name == NAME:
            return delta
    return None
