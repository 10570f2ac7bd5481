"""
Redis health probe.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import redis.asyncio as aioredis

from apphost.health import HealthCheckResult, HealthStatus

from .connection import RedisConnectionOptions, parse_connection_string

logger = logging.getLogger(__name__)


def _default_client_factory(options: RedisConnectionOptions) -> Any:
    return aioredis.Redis(
        host=options.host,
        port=options.port,
        password=options.password.get_secret_value() if options.password else None,
        ssl=options.ssl,
        socket_connect_timeout=options.connect_timeout,
    )


class RedisHealthCheck:
    """
    Probe a Redis server with PING.

    The connection string is read through a factory at probe time, so a
    check can be registered before the server address is known. A factory
    that raises makes the probe report UNHEALTHY.
    """

    def __init__(
        self,
        connection_string_factory: Callable[[], str],
        *,
        client_factory: Callable[[RedisConnectionOptions], Any] | None = None,
    ):
        self._connection_string_factory = connection_string_factory
        self._client_factory = client_factory or _default_client_factory

    async def check(self, name: str) -> HealthCheckResult:
        connection_string = self._connection_string_factory()
        options = parse_connection_string(connection_string)

        client = self._client_factory(options)
        try:
            await client.ping()
        finally:
            await client.aclose()

        logger.debug(f"[redis] PING ok | check={name} | endpoint={options.host}:{options.port}")
        return HealthCheckResult(
            name=name,
            status=HealthStatus.HEALTHY,
            message="Redis responded to PING",
            metadata={"endpoint": f"{options.host}:{options.port}"},
        )


__all__ = ["RedisHealthCheck"]
