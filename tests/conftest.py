"""
Shared fixtures.

``FakeDatadogSession`` stands in for ``requests.Session``: it serves the
Datadog v2 users, roles, role membership and invitation endpoints from
memory, with the same page-number pagination, and records every call.
"""

import json
import uuid
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest
import requests

from ddconnector.config import DatadogConfig
from ddconnector.connector import DatadogConnector
from ddconnector.integration.datadog_client import DatadogClient

API_PREFIX = "/api/v2"
CREATED_AT = "2024-03-01T10:15:30.123456+00:00"


class FakeResponse:
    def __init__(self, status_code: int, payload: Optional[Any] = None, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.text = json.dumps(payload) if payload is not None else ""
        self.content = self.text.encode("utf-8")
        self.headers = headers or {"Content-Type": "application/json"}

    def json(self):
        return json.loads(self.text)


class FakeDatadogSession:
    """In-memory Datadog API."""

    def __init__(self):
        self.headers: Dict[str, str] = {}
        self.proxies: Dict[str, str] = {}
        self.calls: List[Tuple[str, str, Optional[dict], Optional[Any]]] = []
        self.users: Dict[str, dict] = {}
        self.roles: Dict[str, dict] = {}
        # (method, path) -> (status, payload) returned instead of the normal result
        self.overrides: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.raise_on_request: Optional[Exception] = None
        # Listing endpoints keep returning the first page forever
        self.endless_pages = False
        self.closed = False

    # ========== Seeding ==========

    def add_role(self, name: str, role_id: Optional[str] = None) -> str:
        role_id = role_id or str(uuid.uuid4())
        self.roles[role_id] = {
            "type": "roles",
            "id": role_id,
            "attributes": {
                "name": name,
                "created_at": CREATED_AT,
                "modified_at": CREATED_AT,
            },
        }
        return role_id

    def add_user(
        self,
        handle: str,
        name: str = "",
        title: str = "",
        role_ids: Tuple[str, ...] = (),
        status: str = "Active",
        disabled: bool = False,
        user_id: Optional[str] = None,
    ) -> str:
        user_id = user_id or str(uuid.uuid4())
        self.users[user_id] = {
            "type": "users",
            "id": user_id,
            "attributes": {
                "handle": handle,
                "email": handle,
                "name": name,
                "title": title,
                "icon": f"https://secure.gravatar.com/avatar/{user_id}",
                "disabled": disabled,
                "verified": status == "Active",
                "status": status,
                "created_at": CREATED_AT,
            },
            "relationships": {
                "roles": {"data": [{"type": "roles", "id": rid} for rid in role_ids]},
            },
        }
        return user_id

    # ========== Inspection ==========

    def calls_to(self, method: Optional[str] = None, path: Optional[str] = None) -> list:
        return [
            call for call in self.calls
            if (method is None or call[0] == method) and (path is None or call[1] == path)
        ]

    # ========== requests.Session interface ==========

    def close(self):
        self.closed = True

    def request(self, method, url, json=None, params=None, timeout=None, **kwargs):
        path = urlsplit(url).path
        assert path.startswith(API_PREFIX), f"unexpected path {path}"
        path = path[len(API_PREFIX):]
        self.calls.append((method, path, params, json))

        if self.raise_on_request is not None:
            raise self.raise_on_request
        if (method, path) in self.overrides:
            status, payload = self.overrides[(method, path)]
            return FakeResponse(status, payload)

        parts = path.strip("/").split("/")
        if parts[0] == "users":
            return self._users(method, parts[1:], json, params)
        if parts[0] == "roles":
            return self._roles(method, parts[1:], json, params)
        if parts[0] == "user_invitations" and method == "POST":
            return self._invite(json)
        return FakeResponse(404, {"errors": ["Not found"]})

    # ========== Routing ==========

    def _page(self, items: List[dict], params: Optional[dict]) -> FakeResponse:
        params = params or {}
        size = int(params.get("page[size]", 10))
        number = int(params.get("page[number]", 0))
        if self.endless_pages:
            number = 0
        return FakeResponse(200, {"data": items[number * size:(number + 1) * size]})

    def _role_resource(self, role: dict) -> dict:
        count = sum(
            1 for user in self.users.values()
            if any(r["id"] == role["id"] for r in user["relationships"]["roles"]["data"])
        )
        resource = json_copy(role)
        resource["attributes"]["user_count"] = count
        return resource

    def _users(self, method, parts, body, params) -> FakeResponse:
        if not parts:
            if method == "GET":
                users = sorted(self.users.values(), key=lambda u: u["attributes"]["email"])
                return self._page(users, params)
            if method == "POST":
                attrs = body["data"]["attributes"]
                email = attrs["email"]
                if any(u["attributes"]["handle"].lower() == email.lower() for u in self.users.values()):
                    return FakeResponse(409, {"errors": ["User already exists"]})
                role_ids = tuple(r["id"] for r in body["data"]["relationships"]["roles"]["data"])
                user_id = self.add_user(
                    email,
                    name=attrs.get("name", ""),
                    title=attrs.get("title", ""),
                    role_ids=role_ids,
                    status="Pending",
                )
                return FakeResponse(201, {"data": self.users[user_id]})
            return FakeResponse(405, {"errors": ["Method not allowed"]})

        user = self.users.get(parts[0])
        if user is None:
            return FakeResponse(404, {"errors": ["Not found"]})

        if method == "GET":
            return FakeResponse(200, {"data": user})
        if method == "PATCH":
            attrs = body["data"]["attributes"]
            user["attributes"].update(attrs)
            if "disabled" in attrs:
                user["attributes"]["status"] = "Disabled" if attrs["disabled"] else "Active"
            return FakeResponse(200, {"data": user})
        if method == "DELETE":
            user["attributes"]["disabled"] = True
            user["attributes"]["status"] = "Disabled"
            return FakeResponse(204)
        return FakeResponse(405, {"errors": ["Method not allowed"]})

    def _roles(self, method, parts, body, params) -> FakeResponse:
        if not parts:
            if method == "GET":
                roles = sorted(self.roles.values(), key=lambda r: r["attributes"]["name"])
                return self._page([self._role_resource(r) for r in roles], params)
            if method == "POST":
                name = body["data"]["attributes"]["name"]
                if any(r["attributes"]["name"].lower() == name.lower() for r in self.roles.values()):
                    return FakeResponse(409, {"errors": ["Role already exists"]})
                role_id = self.add_role(name)
                return FakeResponse(200, {"data": self._role_resource(self.roles[role_id])})
            return FakeResponse(405, {"errors": ["Method not allowed"]})

        role = self.roles.get(parts[0])
        if role is None:
            return FakeResponse(404, {"errors": ["Not found"]})

        if len(parts) == 2 and parts[1] == "users":
            user = self.users.get(body["data"]["id"])
            if user is None:
                return FakeResponse(404, {"errors": ["Not found"]})
            memberships = user["relationships"]["roles"]["data"]
            if method == "POST":
                if all(r["id"] != role["id"] for r in memberships):
                    memberships.append({"type": "roles", "id": role["id"]})
                return FakeResponse(200, {"data": []})
            if method == "DELETE":
                user["relationships"]["roles"]["data"] = [r for r in memberships if r["id"] != role["id"]]
                return FakeResponse(200, {"data": []})
            return FakeResponse(405, {"errors": ["Method not allowed"]})

        if method == "GET":
            return FakeResponse(200, {"data": self._role_resource(role)})
        if method == "PATCH":
            role["attributes"].update(body["data"]["attributes"])
            return FakeResponse(200, {"data": self._role_resource(role)})
        if method == "DELETE":
            del self.roles[role["id"]]
            return FakeResponse(204)
        return FakeResponse(405, {"errors": ["Method not allowed"]})

    def _invite(self, body) -> FakeResponse:
        invitations = []
        for item in body["data"]:
            user_id = item["relationships"]["user"]["data"]["id"]
            if user_id not in self.users:
                return FakeResponse(404, {"errors": ["Not found"]})
            invitations.append({"type": "user_invitations", "id": str(uuid.uuid4())})
        return FakeResponse(201, {"data": invitations})


def json_copy(value):
    return json.loads(json.dumps(value))


# ========== Fixtures ==========

@pytest.fixture
def config():
    return DatadogConfig(
        api_key="test-api-key",
        app_key="test-app-key",
        site="datadoghq.com",
        query_page_size=50,
        max_query_pages=100,
        connection_timeout_ms=10000,
        read_timeout_ms=30000,
        http_proxy_host=None,
        http_proxy_port=0,
        http_proxy_user=None,
        http_proxy_password=None,
    )


@pytest.fixture
def fake_api():
    """Datadog with the three default roles."""
    api = FakeDatadogSession()
    api.add_role("Datadog Admin Role", role_id="role-admin")
    api.add_role("Datadog Standard Role", role_id="role-standard")
    api.add_role("Datadog Read Only Role", role_id="role-read-only")
    return api


@pytest.fixture
def client(config, fake_api):
    return DatadogClient(config, instance_name="test", session=fake_api)


@pytest.fixture
def connector(config, fake_api):
    return DatadogConnector(config, instance_name="test", session_factory=lambda: fake_api)


class Collector:
    """Results handler that keeps every object it receives."""

    def __init__(self):
        self.objects = []

    def __call__(self, obj):
        self.objects.append(obj)
        return True


@pytest.fixture
def collector():
    return Collector()


@pytest.fixture
def connection_error():
    return requests.exceptions.ConnectTimeout("connect timed out")
