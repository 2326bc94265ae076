"""
Handle Datadog user objects.
"""

from __future__ import annotations

from typing import Iterable, Optional, Set

from ddconnector.framework.objects import Attribute, AttributeDelta, OperationOptions, Uid
from ddconnector.handlers.base import AbstractDatadogHandler
from ddconnector.schema import USER_SCHEMA


class UserHandler(AbstractDatadogHandler):
    """Users: handle, profile attributes, enable flag, roles and invitations."""

    SCHEMA = USER_SCHEMA

    def create(self, attributes: Iterable[Attribute]) -> Uid:
        return self.client.create_user(self.validate_create(attributes))

    def update_delta(
        self,
        uid: Uid,
        deltas: Iterable[AttributeDelta],
        options: Optional[OperationOptions],
    ) -> Set[AttributeDelta]:
        self.client.update_user(uid, self.validate_deltas(deltas), options)
        return set()

    def delete(self, uid: Uid, options: Optional[OperationOptions]) -> None:
        self.client.delete_user(uid, options)

    def list_all(self, handler, options, attributes_to_get, page_size) -> None:
        self.client.get_users(handler, options, attributes_to_get, page_size)

    def get_by_uid(self, uid, handler, options, attributes_to_get, page_size) -> None:
        self.client.get_user_by_uid(uid, handler, options, attributes_to_get, page_size)

    def get_by_name(self, name, handler, options, attributes_to_get, page_size) -> None:
        self.client.get_user_by_name(name, handler, options, attributes_to_get, page_size)
