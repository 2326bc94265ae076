"""
Search Filters

Generic filter tree submitted by the host, and the translator base class
that turns it into connector-native queries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from ddconnector.framework.objects import Attribute

T = TypeVar("T")


class Filter:
    """Base class for host filters."""
    pass


@dataclass(frozen=True)
class EqualsFilter(Filter):
    attribute: Attribute


@dataclass(frozen=True)
class ContainsFilter(Filter):
    attribute: Attribute


@dataclass(frozen=True)
class StartsWithFilter(Filter):
    attribute: Attribute


@dataclass(frozen=True)
class NotFilter(Filter):
    filter: Filter


@dataclass(frozen=True)
class AndFilter(Filter):
    left: Filter
    right: Filter


@dataclass(frozen=True)
class OrFilter(Filter):
    left: Filter
    right: Filter


class AbstractFilterTranslator(Generic[T]):
    """
    Walks a host filter and produces native queries.

    Subclasses override the ``create_*_expression`` hooks they support and
    return None for anything they can't express. A filter that can't be
    translated produces an empty list, which tells the caller to list every
    object and let the host filter the results.
    """

    def translate(self, filter: Optional[Filter]) -> List[T]:
        if filter is None:
            return []
        query = self._translate(filter, False)
        return [] if query is None else [query]

    def _translate(self, filter: Filter, not_: bool) -> Optional[T]:
        if isinstance(filter, NotFilter):
            return self._translate(filter.filter, not not_)
        if isinstance(filter, EqualsFilter):
            return self.create_equals_expression(filter, not_)
        if isinstance(filter, ContainsFilter):
            return self.create_contains_expression(filter, not_)
        if isinstance(filter, StartsWithFilter):
            return self.create_starts_with_expression(filter, not_)
        if isinstance(filter, (AndFilter, OrFilter)) and not not_:
            left = self._translate(filter.left, False)
            right = self._translate(filter.right, False)
            if left is None or right is None:
                return None
            if isinstance(filter, AndFilter):
                return self.create_and_expression(left, right)
            return self.create_or_expression(left, right)
        return None

    def create_equals_expression(self, filter: EqualsFilter, not_: bool) -> Optional[T]:
        return None

    def create_contains_expression(self, filter: ContainsFilter, not_: bool) -> Optional[T]:
        return None

    def create_starts_with_expression(self, filter: StartsWithFilter, not_: bool) -> Optional[T]:
        return None

    def create_and_expression(self, left: T, right: T) -> Optional[T]:
        return None

    def create_or_expression(self, left: T, right: T) -> Optional[T]:
        return None
