"""
Health checks for application resources.

A health check is registered once under a unique name and probed on
demand. Probes never raise to the caller: exceptions and timeouts are
reported as UNHEALTHY results.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from apphost.errors import ConfigurationError

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status for a resource."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    name: str
    status: HealthStatus
    latency_ms: float | None = None
    message: str | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "message": self.message,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class HealthCheck(Protocol):
    """Anything that can probe a resource."""

    async def check(self, name: str) -> HealthCheckResult:
        ...


@dataclass
class HealthCheckRegistration:
    name: str
    check: HealthCheck
    tags: tuple[str, ...] = ()


class HealthCheckRegistry:
    """
    Registry of named health checks.

    Usage:
        registry = HealthCheckRegistry()
        registry.add("db_check", RedisHealthCheck(lambda: "localhost:6379"))

        result = await registry.check("db_check")
        results = await registry.check_all()
    """

    def __init__(self, timeout_seconds: float = 5.0):
        """
        Initialize health check registry.

        Args:
            timeout_seconds: Timeout for a single probe
        """
        self.timeout_seconds = timeout_seconds
        self._registrations: dict[str, HealthCheckRegistration] = {}
        self._last_checks: dict[str, HealthCheckResult] = {}

    def add(self, name: str, check: HealthCheck, *, tags: Iterable[str] = ()) -> None:
        """
        Register a health check.

        Raises:
            ConfigurationError: If a check with this name is already registered
        """
        if name in self._registrations:
            raise ConfigurationError(f"Health check '{name}' is already registered")
        self._registrations[name] = HealthCheckRegistration(name=name, check=check, tags=tuple(tags))
        logger.debug(f"[health] Registered health check: {name}")

    def __contains__(self, name: str) -> bool:
        return name in self._registrations

    def names(self) -> list[str]:
        return list(self._registrations)

    async def check(self, name: str) -> HealthCheckResult:
        """
        Run one health check.

        Raises:
            KeyError: If no check is registered under this name
        """
        registration = self._registrations[name]
        start_time = time.perf_counter()

        try:
            result = await asyncio.wait_for(
                registration.check.check(name),
                timeout=self.timeout_seconds,
            )
            result.latency_ms = (time.perf_counter() - start_time) * 1000
        except asyncio.TimeoutError:
            result = HealthCheckResult(
                name=name,
                status=HealthStatus.UNHEALTHY,
                latency_ms=(time.perf_counter() - start_time) * 1000,
                error=f"Timeout after {self.timeout_seconds}s",
            )
        except Exception as e:
            result = HealthCheckResult(
                name=name,
                status=HealthStatus.UNHEALTHY,
                latency_ms=(time.perf_counter() - start_time) * 1000,
                error=str(e),
            )

        if result.status != HealthStatus.HEALTHY:
            logger.info(f"[health] {name} is {result.status.value}: {result.error or result.message}")
        self._last_checks[name] = result
        return result

    async def check_all(self, tags: Iterable[str] | None = None) -> list[HealthCheckResult]:
        """Run every registered check, optionally only those carrying one of the tags."""
        wanted = set(tags) if tags is not None else None
        names = [
            r.name
            for r in self._registrations.values()
            if wanted is None or wanted.intersection(r.tags)
        ]
        return list(await asyncio.gather(*(self.check(name) for name in names)))

    def get_last_check(self, name: str) -> HealthCheckResult | None:
        """Get the last result for a check."""
        return self._last_checks.get(name)


__all__ = [
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheck",
    "HealthCheckRegistry",
]
