"""
Unit tests for the DatadogConnector facade.

Tests:
- Object class dispatch and argument checks
- Schema validation of attribute sets and deltas
- Search through the filter translator
- Connection test and dispose
"""

import pytest

from ddconnector.connector import DatadogConnector
from ddconnector.framework.exceptions import (
    ConfigurationError,
    ConnectorError,
    ConnectorIOError,
    InvalidAttributeValueError,
)
from ddconnector.framework.filters import ContainsFilter, EqualsFilter
from ddconnector.framework.objects import (
    ENABLE,
    NAME,
    UID,
    Attribute,
    AttributeDelta,
    ObjectClass,
    OperationOptions,
    Uid,
)
from ddconnector.handlers import HANDLERS, RoleHandler, UserHandler
from ddconnector.schema import (
    ATTR_CREATED_AT,
    ATTR_EMAIL,
    ATTR_NAME,
    ATTR_ROLE_NAMES,
    ATTR_STATUS,
    ATTR_TITLE,
)


class TestInit:
    """Tests for connector construction."""

    def test_invalid_config(self, config):
        """Test an unusable configuration fails at init."""
        broken = config.model_copy(update={"query_page_size": 0})

        with pytest.raises(ConfigurationError):
            DatadogConnector(broken)

    def test_schema(self, connector):
        """Test both object classes are published."""
        schema = connector.schema()

        assert schema.get(ObjectClass.USER) is not None
        assert schema.get(ObjectClass.ROLE) is not None
        assert not schema.get(ObjectClass.USER).get(ATTR_ROLE_NAMES).returned_by_default
        assert schema.get(ObjectClass.USER).get(ATTR_ROLE_NAMES).multi_valued

    def test_handlers(self):
        """Test every object class has a handler."""
        assert HANDLERS == {ObjectClass.USER: UserHandler, ObjectClass.ROLE: RoleHandler}

    def test_schema_comes_from_handlers(self, connector):
        """Test each published object class is its handler's attribute table."""
        schema = connector.schema()

        for object_class, handler in HANDLERS.items():
            assert schema.get(object_class) is handler.schema_info()
            assert handler.schema_info().object_class is object_class


class TestArgumentChecks:
    """Tests for argument checks done before any call."""

    @pytest.mark.parametrize("object_class", [None, "group", "__ACCOUNT__"])
    def test_unsupported_object_class(self, connector, fake_api, object_class):
        """Test unknown object classes are rejected."""
        with pytest.raises(InvalidAttributeValueError):
            connector.create(object_class, [Attribute.of(NAME, "x")])

        assert fake_api.calls == []

    def test_object_class_is_case_insensitive(self, connector):
        """Test object class names match regardless of case."""
        uid = connector.create("USER", [Attribute.of(NAME, "alice@example.com")])

        assert uid.value

    @pytest.mark.parametrize("attributes", [None, []])
    def test_create_without_attributes(self, connector, fake_api, attributes):
        """Test create needs attributes."""
        with pytest.raises(InvalidAttributeValueError, match="Attributes not provided or empty"):
            connector.create("user", attributes)

        assert fake_api.calls == []

    def test_update_without_uid(self, connector):
        """Test update needs a uid."""
        with pytest.raises(InvalidAttributeValueError, match="uid not provided"):
            connector.update_delta("user", None, [AttributeDelta.replace(ATTR_NAME, "A")])

    def test_delete_without_uid(self, connector):
        """Test delete needs a uid."""
        with pytest.raises(InvalidAttributeValueError, match="uid not provided"):
            connector.delete("user", None)

    @pytest.mark.parametrize("deltas", [None, []])
    def test_empty_delta_is_noop(self, connector, fake_api, deltas):
        """Test an empty delta set returns without calling Datadog."""
        result = connector.update_delta("user", Uid("user-1"), deltas)

        assert result == set()
        assert fake_api.calls == []

    def test_empty_delta_checks_object_class(self, connector):
        """Test an empty delta set still needs a supported object class."""
        with pytest.raises(InvalidAttributeValueError):
            connector.update_delta("group", Uid("user-1"), [])


class TestSchemaValidation:
    """Tests for attribute checks against the object class schema."""

    def test_missing_required_name(self, connector, fake_api):
        """Test a user without __NAME__ is rejected."""
        with pytest.raises(InvalidAttributeValueError, match="Missing required attribute __NAME__"):
            connector.create("user", [Attribute.of(ATTR_TITLE, "Engineer")])

        assert fake_api.calls == []

    def test_unknown_attribute(self, connector):
        """Test attributes outside the schema are rejected."""
        with pytest.raises(InvalidAttributeValueError, match="Unknown attribute"):
            connector.create("user", [Attribute.of(NAME, "a@example.com"), Attribute.of("shoeSize", 42)])

    def test_read_only_attribute_on_create(self, connector):
        """Test read-only attributes can't be set."""
        with pytest.raises(InvalidAttributeValueError):
            connector.create("user", [Attribute.of(NAME, "a@example.com"), Attribute.of(ATTR_STATUS, "Active")])

    def test_single_valued_attribute_with_many_values(self, connector):
        """Test single-valued attributes take one value."""
        with pytest.raises(InvalidAttributeValueError, match="single-valued"):
            connector.create("user", [Attribute.of(NAME, "a@example.com"), Attribute.of(ATTR_TITLE, "A", "B")])

    def test_title_cannot_be_updated(self, connector, fake_api):
        """Test title is create-only."""
        with pytest.raises(InvalidAttributeValueError, match="can't be updated"):
            connector.update_delta("user", Uid("user-1"), [AttributeDelta.replace(ATTR_TITLE, "CTO")])

        assert fake_api.calls == []

    def test_handle_cannot_be_updated(self, connector, fake_api):
        """Test the user handle is immutable."""
        with pytest.raises(InvalidAttributeValueError):
            connector.update_delta("user", Uid("user-1"), [AttributeDelta.replace(NAME, "b@example.com")])

        assert fake_api.calls == []

    def test_add_on_single_valued_attribute(self, connector):
        """Test add/remove deltas need a multi-valued attribute."""
        with pytest.raises(InvalidAttributeValueError, match="use a replace delta"):
            connector.update_delta("user", Uid("user-1"), [AttributeDelta.add_remove(ATTR_EMAIL, add=["x@example.com"])])

    def test_role_name_is_updateable(self, connector, fake_api):
        """Test roles can be renamed."""
        result = connector.update_delta("role", Uid("role-admin"), [AttributeDelta.replace(NAME, "Admins")])

        assert result == set()
        assert fake_api.roles["role-admin"]["attributes"]["name"] == "Admins"


class TestOperations:
    """Tests for operations end to end against the in-memory API."""

    def test_user_lifecycle(self, connector, fake_api, collector):
        """Test create, update, read and delete of a user."""
        uid = connector.create("user", [
            Attribute.of(NAME, "alice@example.com"),
            Attribute.of(ATTR_NAME, "Alice"),
            Attribute.of(ATTR_ROLE_NAMES, "Datadog Standard Role"),
        ])

        connector.update_delta("user", uid, [
            AttributeDelta.replace(ATTR_NAME, "Alice Smith"),
            AttributeDelta.add_remove(ATTR_ROLE_NAMES, add=["Datadog Admin Role"], remove=["Datadog Standard Role"]),
        ])
        connector.delete("user", uid)

        options = OperationOptions(attributes_to_get=[ATTR_ROLE_NAMES], return_default_attributes=True)
        connector.search("user", EqualsFilter(Attribute.of(UID, uid.value)), collector, options)

        obj, = collector.objects
        assert obj.name == "alice@example.com"
        assert obj.value(ATTR_NAME) == "Alice Smith"
        assert obj.get(ATTR_ROLE_NAMES).values == ["Datadog Admin Role"]
        assert obj.value(ENABLE) is False
        assert obj.get(ATTR_CREATED_AT) is not None

    def test_search_by_name(self, connector, fake_api, collector):
        """Test a name filter is translated to a name lookup."""
        fake_api.add_user("alice@example.com", user_id="user-1")
        fake_api.add_user("bob@example.com", user_id="user-2")

        connector.search("user", EqualsFilter(Attribute.of(NAME, "BOB@example.com")), collector)

        assert [obj.uid for obj in collector.objects] == ["user-2"]

    def test_search_unsupported_filter_lists_all(self, connector, fake_api, collector):
        """Test untranslatable filters fall back to a full listing."""
        fake_api.add_user("alice@example.com")
        fake_api.add_user("bob@example.com")

        connector.search("user", ContainsFilter(Attribute.of(ATTR_EMAIL, "alice")), collector)

        assert len(collector.objects) == 2

    def test_search_missing_uid_is_empty(self, connector, collector):
        """Test a lookup of a missing uid returns no results instead of failing."""
        connector.search("role", EqualsFilter(Attribute.of(UID, "missing")), collector)

        assert collector.objects == []

    def test_list_roles_with_page_size(self, config, fake_api, collector):
        """Test listings use the configured page size."""
        connector = DatadogConnector(
            config.model_copy(update={"query_page_size": 2}),
            session_factory=lambda: fake_api,
        )

        connector.execute_query("role", None, collector)

        assert len(collector.objects) == 3
        assert {params["page[size]"] for _, _, params, _ in fake_api.calls_to("GET", "/roles")} == {2}

    def test_io_errors_propagate(self, connector, fake_api, connection_error, collector):
        """Test transport failures reach the caller."""
        fake_api.raise_on_request = connection_error

        with pytest.raises(ConnectorIOError):
            connector.search("user", None, collector)

    def test_unexpected_errors_are_wrapped(self, connector, fake_api, collector):
        """Test non-connector failures become ConnectorError."""
        fake_api.overrides[("GET", "/users/user-1")] = (200, {"unexpected": True})

        with pytest.raises(ConnectorError):
            connector.search("user", EqualsFilter(Attribute.of(UID, "user-1")), collector)


class TestLifecycle:
    """Tests for test() and dispose()."""

    def test_connection_test_rebuilds_client(self, connector, fake_api):
        """Test test() replaces the client and calls Datadog."""
        before = connector.client

        connector.test()

        assert connector.client is not before
        assert fake_api.calls_to("GET", "/users")

    def test_dispose(self, connector, fake_api):
        """Test dispose closes the session."""
        connector.dispose()

        assert connector.client is None
        assert fake_api.closed

    def test_operation_after_dispose(self, connector, collector):
        """Test a disposed connector builds a new client on demand."""
        connector.dispose()

        connector.search("role", None, collector)

        assert connector.client is not None
        assert len(collector.objects) == 3
