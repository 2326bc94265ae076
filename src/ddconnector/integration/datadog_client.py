"""
Datadog REST API Client

Client for the Datadog v2 user, role, role membership and invitation APIs.
Translates generic attribute sets and deltas into Datadog payloads and maps
Datadog resources back into connector objects.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set
from urllib.parse import quote

import requests

from ddconnector.config import DatadogConfig
from ddconnector.framework.exceptions import (
    AlreadyExistsError,
    ConnectionFailedError,
    ConnectorError,
    ConnectorIOError,
    InvalidAttributeValueError,
    PaginationLimitExceededError,
    UnknownUidError,
)
from ddconnector.framework.objects import (
    ENABLE,
    NAME,
    Attribute,
    AttributeDelta,
    AttributeValueCompleteness,
    ConnectorObject,
    Name,
    ObjectClass,
    OperationOptions,
    ResultsHandler,
    Uid,
    get_delta_for_name,
    get_name_from_attributes,
)
from ddconnector.schema import (
    ATTR_CREATED_AT,
    ATTR_EMAIL,
    ATTR_ICON,
    ATTR_INVITATION,
    ATTR_MODIFIED_AT,
    ATTR_NAME,
    ATTR_ROLE_NAMES,
    ATTR_ROLES,
    ATTR_STATUS,
    ATTR_TITLE,
    ATTR_USER_COUNT,
    ATTR_VERIFIED,
    ROLE_SCHEMA,
    USER_SCHEMA,
    USER_STATUS_PENDING,
)
from ddconnector.utils import (
    should_allow_partial_attribute_values,
    should_return,
    to_datetime,
    to_resource_attribute_value,
)

logger = logging.getLogger(__name__)

# Role listing used for name <-> id resolution
ROLE_LOOKUP_PAGE_SIZE = 100


def _path(*segments: Any) -> str:
    """
    Build an endpoint path, escaping each segment.

    Every segment is percent-encoded with no safe characters, "/" included.
    Dot segments are rejected since the HTTP stack resolves them.
    """
    parts = []
    for segment in segments:
        value = str(segment)
        if value in ("", ".", ".."):
            raise InvalidAttributeValueError(f"Invalid datadog id: {value!r}")
        parts.append(quote(value, safe=""))
    return "/" + "/".join(parts)


class DatadogClient:
    """
    Datadog v2 API client.

    One instance owns one ``requests.Session``. Instances hold no state
    besides the session, so concurrent callers should use separate instances.

    Example:
        >>> client = DatadogClient(DatadogConfig(), instance_name="datadog-prod")
        >>> uid = client.create_user([Attribute.of(NAME, "alice@example.com")])
    """

    API_PREFIX = "/api/v2"

    def __init__(
        self,
        config: DatadogConfig,
        instance_name: str = "",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Datadog API client.

        Args:
            config: Connector configuration (keys, site, timeouts, proxy)
            instance_name: Connector instance name used as log prefix
            session: Session to send requests with; a new one is created if omitted
        """
        self.config = config
        self.instance_name = instance_name
        self.base_url = config.base_url
        self.timeout = config.timeout

        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "DD-API-KEY": config.api_key.get_secret_value(),
            "DD-APPLICATION-KEY": config.app_key.get_secret_value(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

        proxies = config.proxies
        if proxies:
            self.session.proxies.update(proxies)
            logger.debug(f"[{self.instance_name}] Using HTTP proxy {config.http_proxy_host}:{config.http_proxy_port}")

    def close(self) -> None:
        self.session.close()

    # ========== Transport ==========

    def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Make a request to the Datadog API.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint below /api/v2 (e.g. "/users")
            data: Request body (JSON encoded)
            params: Query parameters

        Returns:
            The response, when its status is below 400

        Raises:
            ConnectorError: Mapped from the HTTP status, or ConnectorIOError
                for transport failures
        """
        url = f"{self.base_url}{self.API_PREFIX}{endpoint}"

        try:
            response = self.session.request(
                method=method,
                url=url,
                json=data,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"[{self.instance_name}] Request to datadog failed: {method} {url}: {e}")
            raise ConnectorIOError(f"Failed to call datadog api: {e}") from e

        if response.status_code >= 400:
            raise self._handle_api_error(response)

        return response

    def _handle_api_error(self, response: requests.Response) -> ConnectorError:
        """Map a Datadog error response to the connector error taxonomy."""
        status = response.status_code
        body = response.text
        logger.error(
            f"Exception when calling datadog api. Status code: {status}, "
            f"Reason: {body}, Response headers: {dict(response.headers)}"
        )

        message = f"Datadog API error ({status}): {body}"
        if status == 400:
            return InvalidAttributeValueError(message)
        if status == 403:
            return ConnectionFailedError(message)
        if status == 404:
            return UnknownUidError(message)
        if status == 409:
            return AlreadyExistsError(message)

        return ConnectorIOError("Failed to call datadog api", status_code=status, response_body=body)

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ConnectorIOError(
                f"Invalid JSON in datadog response: {e}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def _paginate(self, endpoint: str, sort: str, page_size: int) -> Iterator[Dict[str, Any]]:
        """
        Yield every resource of a paginated listing.

        Pages are numbered from 0. The listing ends at the first empty page.
        A listing that still returns rows after ``max_query_pages`` pages
        raises PaginationLimitExceededError.
        """
        max_pages = self.config.max_query_pages
        page_number = 0

        while True:
            response = self._make_request(
                "GET",
                endpoint,
                params={
                    "page[size]": page_size,
                    "page[number]": page_number,
                    "sort": sort,
                },
            )
            results = self._json(response).get("data") or []

            if not results:
                return

            if page_number >= max_pages:
                raise PaginationLimitExceededError(
                    f"Datadog listing {endpoint} returned rows beyond {max_pages} pages"
                )

            yield from results
            page_number += 1

    def test(self) -> None:
        """Check that the configured keys can list users."""
        response = self._make_request("GET", "/users")
        if response.status_code != 200:
            raise ConnectorError("This datadog connector isn't active.")

    # ========== Roles lookup ==========

    def _list_all_roles(self) -> List[Dict[str, Any]]:
        return list(self._paginate("/roles", "name", ROLE_LOOKUP_PAGE_SIZE))

    def get_reverse_all_role_map(self) -> Dict[str, str]:
        """
        Fetch all roles keyed by lowercase role name.

        Returns:
            Mapping of role name (lowercase) to role id

        Raises:
            ConnectorIOError: If two roles share a name, ignoring case
        """
        role_map: Dict[str, str] = {}
        for role in self._list_all_roles():
            name = role["attributes"]["name"]
            key = name.lower()
            if key in role_map:
                raise ConnectorIOError(
                    f"Duplicate datadog role name: {name} "
                    f"(roles {role_map[key]} and {role['id']})"
                )
            role_map[key] = role["id"]
        return role_map

    def get_all_role_map(self) -> Dict[str, str]:
        """
        Fetch all roles keyed by id.

        Returns:
            Mapping of role id to role name
        """
        return {
            role["id"]: role["attributes"]["name"]
            for role in self._list_all_roles()
        }

    @staticmethod
    def _resolve_role_names(role_names: Iterable[Any], all_roles: Dict[str, str]) -> List[str]:
        role_ids = []
        for value in role_names:
            role_id = all_roles.get(str(value).lower())
            if role_id is None:
                raise InvalidAttributeValueError(f"Invalid datadog role name: {value}")
            role_ids.append(role_id)
        return role_ids

    # ========== Users ==========

    def create_user(self, attributes: Iterable[Attribute]) -> Uid:
        """
        Create a Datadog user.

        The handle is set from ``__NAME__``. A user created with
        ``__ENABLE__=false`` is disabled right after creation; otherwise
        ``invitation=true`` sends an invitation.

        Raises:
            InvalidAttributeValueError: If a role name doesn't exist
            AlreadyExistsError: If the handle is taken
        """
        create_attrs: Dict[str, Any] = {}
        role_names: Optional[List[Any]] = None
        role_ids: Optional[List[Any]] = None
        do_invitation = False
        do_disable = False

        for attr in attributes:
            if attr.name == NAME:
                create_attrs["email"] = attr.string_value()
            elif attr.name == ENABLE:
                do_disable = attr.boolean_value() is False
            elif attr.name == ATTR_NAME:
                create_attrs["name"] = attr.string_value()
            elif attr.name == ATTR_TITLE:
                create_attrs["title"] = attr.string_value()
            elif attr.name == ATTR_INVITATION:
                do_invitation = attr.boolean_value() is True
            elif attr.name == ATTR_ROLE_NAMES:
                role_names = attr.values
            elif attr.name == ATTR_ROLES:
                role_ids = attr.values
            elif attr.name == ATTR_EMAIL:
                # Datadog derives the handle from the creation email
                logger.debug(f"[{self.instance_name}] Ignoring {ATTR_EMAIL} on create, the handle is used as email")

        roles_data = []
        if role_names:
            all_roles = self.get_reverse_all_role_map()
            for role_id in self._resolve_role_names(role_names, all_roles):
                roles_data.append({"type": "roles", "id": role_id})
        if role_ids:
            for role_id in role_ids:
                roles_data.append({"type": "roles", "id": str(role_id)})

        body = {
            "data": {
                "type": "users",
                "attributes": create_attrs,
                "relationships": {
                    "roles": {"data": roles_data},
                },
            }
        }

        logger.info(f"[{self.instance_name}] Create datadog user: {create_attrs.get('email')}")
        logger.debug(f"[{self.instance_name}] Create datadog user payload: {body}")

        response = self._make_request("POST", "/users", data=body)
        if response.status_code != 201:
            raise ConnectorIOError(
                f"Invalid status code when creating datadog user. status: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        created = self._json(response)["data"]
        user_id = created["id"]

        if do_disable:
            self.disable(user_id)
        elif do_invitation:
            self.invite(user_id)

        return Uid(user_id, Name(created["attributes"]["handle"]))

    def disable(self, user_id: str) -> None:
        body = {
            "data": {
                "type": "users",
                "id": user_id,
                "attributes": {"disabled": True},
            }
        }
        logger.info(f"[{self.instance_name}] Disable datadog user: {user_id}")
        self._make_request("PATCH", _path("users", user_id), data=body)

    def invite(self, user_id: str) -> None:
        body = {
            "data": [
                {
                    "type": "user_invitations",
                    "relationships": {
                        "user": {"data": {"type": "users", "id": user_id}},
                    },
                }
            ]
        }
        logger.info(f"[{self.instance_name}] Invite datadog user: {user_id}")
        self._make_request("POST", "/user_invitations", data=body)

    def update_user(
        self,
        uid: Uid,
        deltas: Iterable[AttributeDelta],
        options: Optional[OperationOptions] = None,
    ) -> None:
        """
        Apply an attribute delta set to a Datadog user.

        Only attributes present in ``deltas`` are sent. Role membership
        changes are applied one role at a time after the attribute update.

        Raises:
            InvalidAttributeValueError: For handle changes, email removal or
                unknown role names. Nothing is sent in that case.
        """
        user_id = uid.value
        update_attrs: Dict[str, Any] = {}
        assign_role_ids: List[str] = []
        unassign_role_ids: List[str] = []
        do_invitation = False

        for delta in deltas:
            if delta.name == NAME:
                raise InvalidAttributeValueError("Invalid datadog handle. It cannot be updated.")

            if delta.name == ENABLE:
                enabled = delta.boolean_value()
                if enabled is None:
                    raise InvalidAttributeValueError("Invalid datadog enable flag. It cannot be deleted.")
                update_attrs["disabled"] = not enabled

            elif delta.name == ATTR_EMAIL:
                value = delta.string_value()
                if value is None:
                    raise InvalidAttributeValueError("Invalid datadog email. It cannot be deleted.")
                update_attrs["email"] = value

            elif delta.name == ATTR_NAME:
                update_attrs["name"] = to_resource_attribute_value(delta.string_value())

            elif delta.name == ATTR_INVITATION:
                do_invitation = delta.boolean_value() is True

            elif delta.name == ATTR_ROLE_NAMES:
                all_roles = self.get_reverse_all_role_map()
                assign_role_ids.extend(self._resolve_role_names(delta.values_to_add or [], all_roles))
                unassign_role_ids.extend(self._resolve_role_names(delta.values_to_remove or [], all_roles))

            elif delta.name == ATTR_ROLES:
                assign_role_ids.extend(str(v) for v in delta.values_to_add or [])
                unassign_role_ids.extend(str(v) for v in delta.values_to_remove or [])

        if update_attrs:
            body = {
                "data": {
                    "type": "users",
                    "id": user_id,
                    "attributes": update_attrs,
                }
            }
            logger.info(f"[{self.instance_name}] Update datadog user: {user_id}")
            logger.debug(f"[{self.instance_name}] Update datadog user payload: {body}")
            self._make_request("PATCH", _path("users", user_id), data=body)

        self.assign_roles(user_id, assign_role_ids)
        self.unassign_roles(user_id, unassign_role_ids)

        if do_invitation and self.is_pending_user(user_id):
            self.invite(user_id)

    def is_pending_user(self, user_id: str) -> bool:
        user = self._json(self._make_request("GET", _path("users", user_id)))["data"]
        return user["attributes"].get("status") == USER_STATUS_PENDING

    def assign_roles(self, user_id: str, role_ids: Iterable[str]) -> None:
        for role_id in role_ids:
            body = {"data": {"type": "users", "id": user_id}}
            logger.info(f"[{self.instance_name}] Assign datadog role {role_id} to user {user_id}")
            self._make_request("POST", _path("roles", role_id, "users"), data=body)

    def unassign_roles(self, user_id: str, role_ids: Iterable[str]) -> None:
        for role_id in role_ids:
            body = {"data": {"type": "users", "id": user_id}}
            logger.info(f"[{self.instance_name}] Unassign datadog role {role_id} from user {user_id}")
            self._make_request("DELETE", _path("roles", role_id, "users"), data=body)

    def delete_user(self, uid: Uid, options: Optional[OperationOptions] = None) -> None:
        """Disable a user. Datadog has no API to delete users."""
        logger.info(f"[{self.instance_name}] Delete(disable) datadog user: {uid.value}")

        response = self._make_request("DELETE", _path("users", uid.value))
        if response.status_code != 204:
            raise ConnectorIOError(
                f"Invalid status code when disabling datadog user. status: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

    def get_users(
        self,
        handler: ResultsHandler,
        options: Optional[OperationOptions],
        attributes_to_get: Optional[Set[str]],
        page_size: int,
    ) -> None:
        allow_partial = should_allow_partial_attribute_values(options)

        for user in self._paginate("/users", "email", page_size):
            obj = self.to_user_object(user, attributes_to_get, allow_partial)
            if handler(obj) is False:
                return

    def get_user_by_uid(
        self,
        uid: Uid,
        handler: ResultsHandler,
        options: Optional[OperationOptions],
        attributes_to_get: Optional[Set[str]],
        page_size: int,
    ) -> None:
        allow_partial = should_allow_partial_attribute_values(options)

        user = self._json(self._make_request("GET", _path("users", uid.value)))["data"]
        handler(self.to_user_object(user, attributes_to_get, allow_partial))

    def get_user_by_name(
        self,
        name: Name,
        handler: ResultsHandler,
        options: Optional[OperationOptions],
        attributes_to_get: Optional[Set[str]],
        page_size: int,
    ) -> None:
        allow_partial = should_allow_partial_attribute_values(options)
        wanted = name.value.lower()

        # Datadog can't find users by handle, so scan the full listing
        for user in self._paginate("/users", "email", page_size):
            handle = user["attributes"].get("handle") or ""
            if handle.lower() == wanted:
                handler(self.to_user_object(user, attributes_to_get, allow_partial))
                return

    # ========== Roles ==========

    def create_role(self, attributes: Iterable[Attribute]) -> Uid:
        attributes = list(attributes)
        role_name = get_name_from_attributes(attributes)
        if role_name is None:
            raise InvalidAttributeValueError("Invalid datadog role name. It's required for create a role.")

        body = {
            "data": {
                "type": "roles",
                "attributes": {"name": role_name.value},
            }
        }
        logger.info(f"[{self.instance_name}] Create datadog role: {role_name.value}")

        response = self._make_request("POST", "/roles", data=body)
        if response.status_code not in (200, 201):
            raise ConnectorIOError(
                f"Invalid status code when creating datadog role. status: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        created = self._json(response)["data"]
        return Uid(created["id"], Name(created["attributes"]["name"]))

    def update_role(
        self,
        uid: Uid,
        deltas: Iterable[AttributeDelta],
        options: Optional[OperationOptions] = None,
    ) -> None:
        delta = get_delta_for_name(deltas)
        new_name = delta.string_value() if delta is not None else None
        if not new_name:
            raise InvalidAttributeValueError("Invalid datadog role name. It's required for update a role.")

        body = {
            "data": {
                "type": "roles",
                "id": uid.value,
                "attributes": {"name": new_name},
            }
        }
        logger.info(f"[{self.instance_name}] Update datadog role: {uid.value} -> {new_name}")
        self._make_request("PATCH", _path("roles", uid.value), data=body)

    def delete_role(self, uid: Uid, options: Optional[OperationOptions] = None) -> None:
        logger.info(f"[{self.instance_name}] Delete datadog role: {uid.value}")

        response = self._make_request("DELETE", _path("roles", uid.value))
        if response.status_code != 204:
            raise ConnectorIOError(
                f"Invalid status code when deleting datadog role. status: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

    def get_roles(
        self,
        handler: ResultsHandler,
        options: Optional[OperationOptions],
        attributes_to_get: Optional[Set[str]],
        page_size: int,
    ) -> None:
        for role in self._paginate("/roles", "name", page_size):
            if handler(self.to_role_object(role, attributes_to_get)) is False:
                return

    def get_role_by_uid(
        self,
        uid: Uid,
        handler: ResultsHandler,
        options: Optional[OperationOptions],
        attributes_to_get: Optional[Set[str]],
        page_size: int,
    ) -> None:
        role = self._json(self._make_request("GET", _path("roles", uid.value)))["data"]
        handler(self.to_role_object(role, attributes_to_get))

    def get_role_by_name(
        self,
        name: Name,
        handler: ResultsHandler,
        options: Optional[OperationOptions],
        attributes_to_get: Optional[Set[str]],
        page_size: int,
    ) -> None:
        wanted = name.value.lower()

        # Datadog can't find roles by name, so scan the full listing
        for role in self._paginate("/roles", "name", page_size):
            if (role["attributes"].get("name") or "").lower() == wanted:
                handler(self.to_role_object(role, attributes_to_get))
                return

    # ========== Resource conversion ==========

    def to_user_object(
        self,
        user: Dict[str, Any],
        attributes_to_get: Optional[Set[str]],
        allow_partial_attribute_values: bool,
    ) -> ConnectorObject:
        attrs = user.get("attributes") or {}
        obj = ConnectorObject(
            object_class=ObjectClass.USER,
            uid=user["id"],
            name=attrs.get("handle"),
        )

        def wanted(attribute_name: str) -> bool:
            return should_return(attributes_to_get, attribute_name, USER_SCHEMA)

        if wanted(ATTR_EMAIL):
            obj.add_attribute(ATTR_EMAIL, attrs.get("email"))
        if wanted(ATTR_NAME):
            obj.add_attribute(ATTR_NAME, attrs.get("name"))
        if wanted(ATTR_TITLE):
            obj.add_attribute(ATTR_TITLE, attrs.get("title"))
        if wanted(ATTR_ICON):
            obj.add_attribute(ATTR_ICON, attrs.get("icon"))

        if wanted(ENABLE):
            obj.add_attribute(ENABLE, not attrs.get("disabled", False))
        if wanted(ATTR_CREATED_AT):
            obj.add_attribute(ATTR_CREATED_AT, to_datetime(attrs.get("created_at")))
        if wanted(ATTR_VERIFIED):
            obj.add_attribute(ATTR_VERIFIED, attrs.get("verified"))
        if wanted(ATTR_STATUS):
            obj.add_attribute(ATTR_STATUS, attrs.get("status"))

        role_data = ((user.get("relationships") or {}).get("roles") or {}).get("data") or []

        if allow_partial_attribute_values:
            logger.debug(
                f"[{self.instance_name}] Suppress fetching associations because "
                f"return partial attribute values is requested"
            )
            for attribute_name in (ATTR_ROLE_NAMES, ATTR_ROLES):
                obj.add(Attribute(
                    name=attribute_name,
                    values=[],
                    completeness=AttributeValueCompleteness.INCOMPLETE,
                ))

        elif attributes_to_get is None:
            logger.debug(
                f"[{self.instance_name}] Suppress fetching associations because "
                f"returned by default is false"
            )

        else:
            if ATTR_ROLE_NAMES in attributes_to_get:
                logger.debug(f"[{self.instance_name}] Fetching associations because attributes to get is requested")
                all_roles = self.get_all_role_map()
                role_names = [all_roles[r["id"]] for r in role_data if r.get("id") in all_roles]
                obj.add_attribute(ATTR_ROLE_NAMES, *role_names)

            if ATTR_ROLES in attributes_to_get:
                # Role ids are already part of the user resource
                obj.add_attribute(ATTR_ROLES, *[r["id"] for r in role_data if r.get("id")])

        return obj

    def to_role_object(
        self,
        role: Dict[str, Any],
        attributes_to_get: Optional[Set[str]],
    ) -> ConnectorObject:
        attrs = role.get("attributes") or {}
        obj = ConnectorObject(
            object_class=ObjectClass.ROLE,
            uid=role["id"],
            name=attrs.get("name"),
        )

        if should_return(attributes_to_get, ATTR_CREATED_AT, ROLE_SCHEMA):
            obj.add_attribute(ATTR_CREATED_AT, to_datetime(attrs.get("created_at")))
        if should_return(attributes_to_get, ATTR_MODIFIED_AT, ROLE_SCHEMA):
            obj.add_attribute(ATTR_MODIFIED_AT, to_datetime(attrs.get("modified_at")))
        if should_return(attributes_to_get, ATTR_USER_COUNT, ROLE_SCHEMA):
            obj.add_attribute(ATTR_USER_COUNT, attrs.get("user_count"))

        return obj
