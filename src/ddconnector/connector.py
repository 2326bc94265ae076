"""
Datadog Connector

Entry point used by the identity governance host. Validates the request,
picks the handler for the object class and turns every failure into a
ConnectorError.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Set

import requests

from ddconnector.config import DatadogConfig
from ddconnector.filter import DatadogFilter, DatadogFilterTranslator
from ddconnector.framework.exceptions import (
    ConnectorError,
    InvalidAttributeValueError,
    UnknownUidError,
)
from ddconnector.framework.filters import Filter
from ddconnector.framework.objects import (
    Attribute,
    AttributeDelta,
    ObjectClass,
    OperationOptions,
    ResultsHandler,
    Uid,
)
from ddconnector.framework.schema import Schema
from ddconnector.handlers import HANDLERS, AbstractDatadogHandler, build_schema
from ddconnector.integration.datadog_client import DatadogClient

logger = logging.getLogger(__name__)


class DatadogConnector:
    """
    Datadog identity connector.

    Each instance owns one DatadogClient. Hosts that run operations
    concurrently should pool separate connector instances.

    Example:
        >>> connector = DatadogConnector(DatadogConfig(), instance_name="datadog")
        >>> uid = connector.create("user", [Attribute.of(NAME, "alice@example.com")])
        >>> connector.search("user", EqualsFilter(Attribute.of(UID, uid.value)), print)
    """

    def __init__(
        self,
        config: DatadogConfig,
        instance_name: str = "",
        session_factory: Optional[Callable[[], requests.Session]] = None,
    ):
        """
        Initialize the connector.

        Args:
            config: Connector configuration
            instance_name: Name used to prefix log records
            session_factory: Builds the HTTP session for each new client
        """
        config.validate_config()

        self.config = config
        self.instance_name = instance_name
        self.session_factory = session_factory
        self.client: Optional[DatadogClient] = None
        self._schema: Optional[Schema] = None

        try:
            self._init_client()
            self.schema()
        except ConnectorError:
            raise
        except Exception as e:
            raise ConnectorError(str(e)) from e

        logger.info(f"Connector {self.__class__.__name__} successfully initialized")

    def _init_client(self) -> None:
        session = self.session_factory() if self.session_factory else None
        self.client = DatadogClient(self.config, instance_name=self.instance_name, session=session)

    def _create_handler(self, object_class: Any) -> AbstractDatadogHandler:
        handler_class = HANDLERS[ObjectClass.parse(object_class)]
        if self.client is None:
            self._init_client()
        return handler_class(self.instance_name, self.config, self.client)

    # ========== Operations ==========

    def schema(self) -> Schema:
        self._schema = build_schema()
        return self._schema

    def create(
        self,
        object_class: Any,
        attributes: Optional[Iterable[Attribute]],
        options: Optional[OperationOptions] = None,
    ) -> Uid:
        attributes = list(attributes) if attributes is not None else []
        if not attributes:
            raise InvalidAttributeValueError("Attributes not provided or empty")

        handler = self._create_handler(object_class)
        return self._call(handler.create, attributes)

    def update_delta(
        self,
        object_class: Any,
        uid: Optional[Uid],
        deltas: Optional[Iterable[AttributeDelta]],
        options: Optional[OperationOptions] = None,
    ) -> Set[AttributeDelta]:
        if uid is None:
            raise InvalidAttributeValueError("uid not provided")

        handler = self._create_handler(object_class)

        deltas = list(deltas) if deltas is not None else []
        if not deltas:
            logger.debug(f"[{self.instance_name}] No modifications for {uid.value}, nothing to update")
            return set()

        return self._call(handler.update_delta, uid, deltas, options)

    def delete(
        self,
        object_class: Any,
        uid: Optional[Uid],
        options: Optional[OperationOptions] = None,
    ) -> None:
        if uid is None:
            raise InvalidAttributeValueError("uid not provided")

        handler = self._create_handler(object_class)
        self._call(handler.delete, uid, options)

    def create_filter_translator(
        self,
        object_class: Any,
        options: Optional[OperationOptions] = None,
    ) -> DatadogFilterTranslator:
        return DatadogFilterTranslator(ObjectClass.parse(object_class), options)

    def execute_query(
        self,
        object_class: Any,
        filter: Optional[DatadogFilter],
        handler: ResultsHandler,
        options: Optional[OperationOptions] = None,
    ) -> None:
        object_handler = self._create_handler(object_class)
        try:
            self._call(object_handler.query, filter, handler, options)
        except UnknownUidError:
            # An empty result tells the host there is no such object
            logger.debug(f"[{self.instance_name}] Object not found, returning empty result")

    def search(
        self,
        object_class: Any,
        filter: Optional[Filter],
        handler: ResultsHandler,
        options: Optional[OperationOptions] = None,
    ) -> None:
        """Translate a host filter and run the query."""
        queries: List[DatadogFilter] = self.create_filter_translator(object_class, options).translate(filter)
        self.execute_query(object_class, queries[0] if queries else None, handler, options)

    def test(self) -> None:
        try:
            self.dispose()
            self._init_client()
            self.client.test()
        except ConnectorError:
            raise
        except Exception as e:
            raise ConnectorError(str(e)) from e

    def check_alive(self) -> None:
        pass

    def dispose(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def _call(self, func, *args):
        try:
            return func(*args)
        except ConnectorError:
            raise
        except Exception as e:
            logger.error(f"[{self.instance_name}] Unexpected connector failure: {e}", exc_info=True)
            raise ConnectorError(str(e)) from e
