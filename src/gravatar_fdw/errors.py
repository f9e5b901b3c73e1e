"""Custom exceptions for the connector domain."""

from __future__ import annotations


class ConnectorError(Exception):
    """Base exception for this project."""


class ConfigError(ConnectorError):
    """Raised when connector options are invalid or cannot be resolved."""


class SecretError(ConnectorError):
    """Raised by a secret vault when a secret cannot be retrieved."""


class TransportError(ConnectorError):
    """Raised when an HTTP request cannot be completed."""


class MalformedResponseError(ConnectorError):
    """Raised when a successful response body is not a JSON object."""


class RateLimitedError(ConnectorError):
    """Raised when the upstream API answers 429."""

    def __init__(self, message: str, *, wait_seconds: int | None, using_api_key: bool) -> None:
        super().__init__(message)
        self.wait_seconds = wait_seconds
        self.using_api_key = using_api_key


class UnsupportedOperationError(ConnectorError):
    """Raised for every write-path operation."""
