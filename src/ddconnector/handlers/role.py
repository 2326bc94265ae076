"""
Handle Datadog role objects.

Creating, renaming and deleting roles needs the custom roles feature,
which is opt-in on the Datadog side. Listing works on every organization.
"""

from __future__ import annotations

from typing import Iterable, Optional, Set

from ddconnector.framework.objects import Attribute, AttributeDelta, OperationOptions, Uid
from ddconnector.handlers.base import AbstractDatadogHandler
from ddconnector.schema import ROLE_SCHEMA


class RoleHandler(AbstractDatadogHandler):
    SCHEMA = ROLE_SCHEMA

    def create(self, attributes: Iterable[Attribute]) -> Uid:
        return self.client.create_role(self.validate_create(attributes))

    def update_delta(
        self,
        uid: Uid,
        deltas: Iterable[AttributeDelta],
        options: Optional[OperationOptions],
    ) -> Set[AttributeDelta]:
        self.client.update_role(uid, self.validate_deltas(deltas), options)
        return set()

    def delete(self, uid: Uid, options: Optional[OperationOptions]) -> None:
        self.client.delete_role(uid, options)

    def list_all(self, handler, options, attributes_to_get, page_size) -> None:
        self.client.get_roles(handler, options, attributes_to_get, page_size)

    def get_by_uid(self, uid, handler, options, attributes_to_get, page_size) -> None:
        self.client.get_role_by_uid(uid, handler, options, attributes_to_get, page_size)

    def get_by_name(self, name, handler, options, attributes_to_get, page_size) -> None:
        self.client.get_role_by_name(name, handler, options, attributes_to_get, page_size)
