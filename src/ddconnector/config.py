"""
Connector configuration management.

Every setting has a default read from the environment, so
``DatadogConfig()`` is enough in a deployed container.
"""

from __future__ import annotations

import os
from typing import Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field, SecretStr

from ddconnector.framework.exceptions import ConfigurationError

DEFAULT_SITE = "datadoghq.com"


def _optional_secret(name: str) -> Optional[SecretStr]:
    value = os.getenv(name)
    return SecretStr(value) if value else None


class DatadogConfig(BaseModel):
    """Configuration for the Datadog connector."""

    # Credentials
    api_key: SecretStr = Field(
        default_factory=lambda: SecretStr(os.getenv("DD_API_KEY", ""))
    )
    app_key: SecretStr = Field(
        default_factory=lambda: SecretStr(os.getenv("DD_APP_KEY", ""))
    )

    # Datadog site, e.g. "datadoghq.eu" or "https://api.datadoghq.eu"
    site: str = Field(
        default_factory=lambda: os.getenv("DD_SITE", DEFAULT_SITE)
    )

    # Listing
    query_page_size: int = Field(
        default_factory=lambda: int(os.getenv("DD_QUERY_PAGE_SIZE", "50"))
    )
    max_query_pages: int = Field(
        default_factory=lambda: int(os.getenv("DD_MAX_QUERY_PAGES", "10000"))
    )

    # Timeouts
    connection_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("DD_CONNECTION_TIMEOUT_MS", "10000"))
    )
    read_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("DD_READ_TIMEOUT_MS", "30000"))
    )

    # HTTP proxy
    http_proxy_host: Optional[str] = Field(
        default_factory=lambda: os.getenv("DD_HTTP_PROXY_HOST") or None
    )
    http_proxy_port: int = Field(
        default_factory=lambda: int(os.getenv("DD_HTTP_PROXY_PORT", "0"))
    )
    http_proxy_user: Optional[str] = Field(
        default_factory=lambda: os.getenv("DD_HTTP_PROXY_USER") or None
    )
    http_proxy_password: Optional[SecretStr] = Field(
        default_factory=lambda: _optional_secret("DD_HTTP_PROXY_PASSWORD")
    )

    @classmethod
    def from_env(cls) -> "DatadogConfig":
        """Create config from environment variables."""
        return cls()

    def validate_config(self) -> None:
        """Raise ConfigurationError when the configuration can't be used."""
        if not self.api_key.get_secret_value():
            raise ConfigurationError("Datadog API key is required")
        if not self.app_key.get_secret_value():
            raise ConfigurationError("Datadog application key is required")
        if self.query_page_size <= 0:
            raise ConfigurationError(f"Query page size must be positive: {self.query_page_size}")
        if self.max_query_pages <= 0:
            raise ConfigurationError(f"Max query pages must be positive: {self.max_query_pages}")
        if self.connection_timeout_ms <= 0 or self.read_timeout_ms <= 0:
            raise ConfigurationError("Connection and read timeouts must be positive")
        if self.http_proxy_host and not 0 < self.http_proxy_port < 65536:
            raise ConfigurationError(f"Invalid HTTP proxy port: {self.http_proxy_port}")

    @property
    def base_url(self) -> str:
        """API base URL derived from the configured site."""
        site = (self.site or DEFAULT_SITE).strip().rstrip("/")
        if site.startswith(("http://", "https://")):
            return site
        return f"https://api.{site}"

    @property
    def timeout(self) -> tuple[float, float]:
        """(connect, read) timeout in seconds, as requests expects it."""
        return self.connection_timeout_ms / 1000.0, self.read_timeout_ms / 1000.0

    @property
    def proxies(self) -> Dict[str, str]:
        """requests proxy mapping, empty when no proxy is configured."""
        if not self.http_proxy_host or self.http_proxy_port <= 0:
            return {}

        credentials = ""
        if self.http_proxy_user and self.http_proxy_password is not None:
            user = quote(self.http_proxy_user, safe="")
            password = quote(self.http_proxy_password.get_secret_value(), safe="")
            credentials = f"{user}:{password}@"

        proxy_url = f"http://{credentials}{self.http_proxy_host}:{self.http_proxy_port}"
        return {"http": proxy_url, "https": proxy_url}
