"""
Connector Exceptions

Generic error taxonomy shared by every layer of the connector.
Datadog HTTP failures are translated into these types by the REST client.
"""

from __future__ import annotations

from typing import Optional


class ConnectorError(Exception):
    """Base class for all connector failures."""
    pass


class ConfigurationError(ConnectorError):
    """Raised when the connector configuration is incomplete or invalid."""
    pass


class InvalidAttributeValueError(ConnectorError):
    """Raised when an attribute or its value can't be accepted."""
    pass


class ConnectionFailedError(ConnectorError):
    """Raised when Datadog rejects the credentials (HTTP 403)."""
    pass


class UnknownUidError(ConnectorError):
    """Raised when the target object doesn't exist (HTTP 404)."""
    pass


class AlreadyExistsError(ConnectorError):
    """Raised when the object to create already exists (HTTP 409)."""
    pass


class ConnectorIOError(ConnectorError):
    """
    Raised for transport failures and unexpected API responses.

    Carries the HTTP status code and response body when they are known.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class PaginationLimitExceededError(ConnectorIOError):
    """Raised when a listing keeps returning rows past the configured page bound."""
    pass
