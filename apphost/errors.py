"""
Errors raised by the application host.

Taxonomy:
    - ConfigurationError: bad declarations, detected before anything runs.
      Fatal, aborts startup.
    - ResolutionError: a resource reported reachable but its connection
      string came back empty. Fatal for that resource, never retried.
    - ConnectionStringUnavailableError: a connection string was requested
      before it was resolved. Not a failure; health checks report it as
      "not ready".
"""

from __future__ import annotations


class AppHostError(Exception):
    """Base exception for application host errors."""

    def __init__(self, message: str, *, resource: str | None = None):
        super().__init__(message)
        self.resource = resource

    def __str__(self) -> str:
        if self.resource:
            return f"[{self.resource}] {self.args[0]}"
        return str(self.args[0])


class ConfigurationError(AppHostError):
    """Raised when a resource declaration is invalid."""


class ResolutionError(AppHostError):
    """Raised when a connection string resolves to nothing."""


class ConnectionStringUnavailableError(AppHostError):
    """Raised when a connection string is read before it is resolved."""

    def __init__(self, message: str = "Connection string is unavailable", **kwargs):
        super().__init__(message, **kwargs)


class EndpointNotAllocatedError(AppHostError):
    """Raised when an endpoint address is read before the runtime allocates it."""

    def __init__(self, endpoint: str, *, resource: str | None = None):
        super().__init__(f"Endpoint '{endpoint}' has not been allocated", resource=resource)
        self.endpoint = endpoint


__all__ = [
    "AppHostError",
    "ConfigurationError",
    "ResolutionError",
    "ConnectionStringUnavailableError",
    "EndpointNotAllocatedError",
]
