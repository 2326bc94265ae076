"""
Datadog Object Schemas

Attribute tables for the ``user`` and ``role`` object classes. The tables are
the single source of truth for which attributes may be created, updated,
returned by default, or carry multiple values.
"""

from __future__ import annotations

from datetime import datetime

from ddconnector.framework.objects import ENABLE, NAME, UID, ObjectClass
from ddconnector.framework.schema import (
    STRING_CASE_IGNORE,
    AttributeInfo,
    ObjectClassInfo,
)

# ========== User attributes ==========

# Unique and unchangeable. Not "id" to avoid clashing with host-side names.
ATTR_USER_ID = "userId"
ATTR_HANDLE = "handle"

ATTR_EMAIL = "email"
ATTR_NAME = "name"
ATTR_TITLE = "title"

# Read-only
ATTR_ICON = "icon"
ATTR_CREATED_AT = "createdAt"
ATTR_VERIFIED = "verified"
ATTR_STATUS = "status"  # Pending, Active, Disabled

# Associations
ATTR_ROLE_NAMES = "roleNames"
ATTR_ROLES = "roles"  # role ids

# Write-only trigger
ATTR_INVITATION = "invitation"

USER_STATUS_PENDING = "Pending"

USER_SCHEMA = ObjectClassInfo(
    object_class=ObjectClass.USER,
    attributes=(
        AttributeInfo(
            UID,
            native_name=ATTR_USER_ID,
            subtype=STRING_CASE_IGNORE,
            createable=False,
            updateable=False,
        ),
        AttributeInfo(
            NAME,
            native_name=ATTR_HANDLE,
            subtype=STRING_CASE_IGNORE,
            required=True,
            updateable=False,
        ),
        AttributeInfo(ENABLE, type=bool),
        AttributeInfo(ATTR_EMAIL),
        AttributeInfo(ATTR_NAME),
        AttributeInfo(ATTR_TITLE, updateable=False),
        AttributeInfo(ATTR_ICON, createable=False, updateable=False),
        AttributeInfo(ATTR_CREATED_AT, type=datetime, createable=False, updateable=False),
        AttributeInfo(ATTR_VERIFIED, type=bool, createable=False, updateable=False),
        AttributeInfo(ATTR_STATUS, createable=False, updateable=False),
        AttributeInfo(
            ATTR_ROLE_NAMES,
            subtype=STRING_CASE_IGNORE,
            multi_valued=True,
            returned_by_default=False,
        ),
        AttributeInfo(
            ATTR_ROLES,
            subtype=STRING_CASE_IGNORE,
            multi_valued=True,
            returned_by_default=False,
        ),
        AttributeInfo(
            ATTR_INVITATION,
            type=bool,
            readable=False,
            returned_by_default=False,
        ),
    ),
)

# ========== Role attributes ==========

ATTR_ROLE_ID = "roleId"
ATTR_ROLE_NAME = "name"

# Read-only
ATTR_MODIFIED_AT = "modifiedAt"
ATTR_USER_COUNT = "userCount"

ROLE_SCHEMA = ObjectClassInfo(
    object_class=ObjectClass.ROLE,
    attributes=(
        AttributeInfo(
            UID,
            native_name=ATTR_ROLE_ID,
            subtype=STRING_CASE_IGNORE,
            createable=False,
            updateable=False,
        ),
        AttributeInfo(
            NAME,
            native_name=ATTR_ROLE_NAME,
            subtype=STRING_CASE_IGNORE,
            required=True,
        ),
        AttributeInfo(ATTR_CREATED_AT, type=datetime, createable=False, updateable=False),
        AttributeInfo(ATTR_MODIFIED_AT, type=datetime, createable=False, updateable=False),
        AttributeInfo(ATTR_USER_COUNT, type=int, createable=False, updateable=False),
    ),
)

SEARCH_OPTIONS = (
    "attributes_to_get",
    "return_default_attributes",
    "allow_partial_attribute_values",
)

