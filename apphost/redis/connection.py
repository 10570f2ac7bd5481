"""
Redis connection strings.

Connection strings use the comma-separated client format:

    localhost:6379,password=secret,ssl=true

The first element is the endpoint; the rest are key=value options. Values
cannot contain commas, which is why generated Redis passwords never use
special characters.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import SecretStr

from apphost.errors import ConfigurationError

DEFAULT_REDIS_PORT = 6379


@dataclass(frozen=True)
class RedisConnectionOptions:
    """Parsed connection string."""

    host: str
    port: int = DEFAULT_REDIS_PORT
    password: SecretStr | None = None
    ssl: bool = False
    connect_timeout: float | None = None


def format_connection_string(host: str, port: int, password: str | None = None) -> str:
    connection_string = f"{host}:{port}"
    if password:
        connection_string += f",password={password}"
    return connection_string


def parse_connection_string(connection_string: str) -> RedisConnectionOptions:
    """
    Parse a Redis connection string.

    Raises:
        ConfigurationError: If the string is empty or malformed
    """
    parts = [p.strip() for p in (connection_string or "").split(",") if p.strip()]
    if not parts:
        raise ConfigurationError("Redis connection string is empty")

    endpoint, *options = parts
    host, sep, port_text = endpoint.rpartition(":")
    if not sep:
        host, port_text = endpoint, str(DEFAULT_REDIS_PORT)
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigurationError(f"Invalid port in Redis endpoint '{endpoint}'") from None

    password: SecretStr | None = None
    ssl = False
    connect_timeout: float | None = None
    for option in options:
        key, sep, value = option.partition("=")
        if not sep:
            raise ConfigurationError(f"Invalid Redis connection option '{key}'")
        key = key.strip().lower()
        if key == "password":
            password = SecretStr(value)
        elif key == "ssl":
            ssl = value.strip().lower() == "true"
        elif key == "connecttimeout":
            # milliseconds, like the client format
            try:
                connect_timeout = int(value) / 1000
            except ValueError:
                raise ConfigurationError(f"Invalid Redis connectTimeout '{value}'") from None

    return RedisConnectionOptions(
        host=host,
        port=port,
        password=password,
        ssl=ssl,
        connect_timeout=connect_timeout,
    )


__all__ = [
    "DEFAULT_REDIS_PORT",
    "RedisConnectionOptions",
    "format_connection_string",
    "parse_connection_string",
]
