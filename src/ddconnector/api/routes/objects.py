"""
Object Endpoints

Create, update, delete and search users and roles.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from ddconnector.api.dependencies import get_connector
from ddconnector.connector import DatadogConnector
from ddconnector.framework.filters import EqualsFilter
from ddconnector.framework.objects import (
    NAME,
    UID,
    Attribute,
    AttributeDelta,
    ConnectorObject,
    OperationOptions,
    Uid,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ========== Request/Response Models ==========

class CreateRequest(BaseModel):
    """Attributes of the object to create. A list value is a multi-valued attribute."""
    attributes: Dict[str, Any] = Field(..., description="Attribute name to value or list of values")


class DeltaModel(BaseModel):
    """Change to one attribute."""
    name: str
    values_to_add: Optional[List[Any]] = None
    values_to_remove: Optional[List[Any]] = None
    values_to_replace: Optional[List[Any]] = None


class UpdateRequest(BaseModel):
    deltas: List[DeltaModel] = Field(default_factory=list)


class UidResponse(BaseModel):
    uid: str
    name: Optional[str]


class ObjectModel(BaseModel):
    object_class: str
    uid: str
    name: Optional[str]
    attributes: Dict[str, List[Any]]
    incomplete_attributes: List[str]


class SearchResponse(BaseModel):
    results: List[ObjectModel]


def _to_attribute(name: str, value: Any) -> Attribute:
    if value is None:
        return Attribute(name=name)
    if isinstance(value, list):
        return Attribute(name=name, values=value)
    return Attribute.of(name, value)


# ========== Endpoints ==========

@router.post("/{object_class}", response_model=UidResponse)
def create_object(
    object_class: str,
    request: CreateRequest,
    connector: DatadogConnector = Depends(get_connector),
):
    attributes = [_to_attribute(name, value) for name, value in request.attributes.items()]
    uid = connector.create(object_class, attributes)
    logger.info(f"Created {object_class} {uid.value}")
    return UidResponse(uid=uid.value, name=uid.name_hint.value if uid.name_hint else None)


@router.patch("/{object_class}/{uid}", status_code=204)
def update_object(
    object_class: str,
    uid: str,
    request: UpdateRequest,
    connector: DatadogConnector = Depends(get_connector),
):
    deltas = [AttributeDelta(**delta.model_dump()) for delta in request.deltas]
    connector.update_delta(object_class, Uid(uid), deltas)
    return Response(status_code=204)


@router.delete("/{object_class}/{uid}", status_code=204)
def delete_object(
    object_class: str,
    uid: str,
    connector: DatadogConnector = Depends(get_connector),
):
    connector.delete(object_class, Uid(uid))
    return Response(status_code=204)


@router.get("/{object_class}", response_model=SearchResponse)
def search_objects(
    object_class: str,
    uid: Optional[str] = None,
    name: Optional[str] = None,
    attributes_to_get: Optional[List[str]] = Query(None),
    return_default_attributes: Optional[bool] = None,
    allow_partial_attribute_values: Optional[bool] = None,
    connector: DatadogConnector = Depends(get_connector),
):
    """
    Search objects of a class.

    Without ``uid`` or ``name`` every object is listed. ``name`` matches
    case-insensitively.
    """
    filter = None
    if uid is not None:
        filter = EqualsFilter(Attribute.of(UID, uid))
    elif name is not None:
        filter = EqualsFilter(Attribute.of(NAME, name))

    options = OperationOptions(
        attributes_to_get=attributes_to_get,
        return_default_attributes=return_default_attributes,
        allow_partial_attribute_values=allow_partial_attribute_values,
    )

    results: List[ConnectorObject] = []

    def collect(obj: ConnectorObject) -> bool:
        results.append(obj)
        return True

    connector.search(object_class, filter, collect, options)
    return SearchResponse(results=[ObjectModel(**obj.to_dict()) for obj in results])
