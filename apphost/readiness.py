"""
Readiness coordination.

A ReadinessCoordinator owns the connection string of one resource. It
subscribes to ConnectionStringAvailableEvent for that resource and, when the
event fires, resolves the connection string exactly once.

State machine:

    DECLARED --attach()--> SUBSCRIBED --event--> RESOLVING --+--> RESOLVED
                               |                             +--> FAILED
                               +--shutdown--> ABANDONED

RESOLVED, FAILED and ABANDONED are terminal. Events arriving in any other
state than SUBSCRIBED are ignored, so a resource is never resolved twice.

Readers either poll ``connection_string`` (None until resolved) or
``await wait()``. Every waiter observes the same outcome: the value, the
single ResolutionError, or cancellation on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from apphost.errors import (
    ConfigurationError,
    ConnectionStringUnavailableError,
    ResolutionError,
)
from apphost.hosting.eventing import (
    ApplicationStoppingEvent,
    ConnectionStringAvailableEvent,
)

if TYPE_CHECKING:
    from apphost.hosting.eventing import EventBus, EventSubscription

logger = logging.getLogger(__name__)


class SupportsConnectionString(Protocol):
    name: str

    async def get_connection_string(self) -> str | None:
        ...


class ReadinessState(str, Enum):
    """Lifecycle of a resource's connection string."""

    DECLARED = "declared"
    SUBSCRIBED = "subscribed"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (ReadinessState.RESOLVED, ReadinessState.FAILED, ReadinessState.ABANDONED)


class ReadinessCoordinator:
    """
    One-shot connection string resolution for a single resource.

    Example:
        coordinator = ReadinessCoordinator(redis)
        coordinator.attach(builder.eventing)

        # later, once the runtime reports the container reachable
        await eventing.publish(ConnectionStringAvailableEvent(redis))
        connection_string = await coordinator.wait()
    """

    def __init__(self, resource: SupportsConnectionString):
        self.resource = resource
        self._state = ReadinessState.DECLARED
        self._connection_string: str | None = None
        self._error: BaseException | None = None
        self._done = asyncio.Event()
        self._subscriptions: list[EventSubscription] = []
        self._eventing: EventBus | None = None

    @property
    def state(self) -> ReadinessState:
        return self._state

    @property
    def connection_string(self) -> str | None:
        """The resolved connection string, or None if not yet available."""
        return self._connection_string

    def require_connection_string(self) -> str:
        """
        The resolved connection string.

        Raises:
            ConnectionStringUnavailableError: If not resolved yet
        """
        if self._state != ReadinessState.RESOLVED or self._connection_string is None:
            raise ConnectionStringUnavailableError(resource=self.resource.name)
        return self._connection_string

    def attach(self, eventing: EventBus) -> None:
        """
        Subscribe to readiness and shutdown events.

        Raises:
            ConfigurationError: If already attached
        """
        if self._state != ReadinessState.DECLARED:
            raise ConfigurationError(
                "Readiness is already being tracked for this resource",
                resource=self.resource.name,
            )
        self._eventing = eventing
        self._subscriptions = [
            eventing.subscribe(
                ConnectionStringAvailableEvent,
                self._on_connection_string_available,
                resource=self.resource,
            ),
            eventing.subscribe(ApplicationStoppingEvent, self._on_application_stopping),
        ]
        self._state = ReadinessState.SUBSCRIBED
        logger.debug(f"[readiness] Subscribed | resource={self.resource.name}")

    async def _on_connection_string_available(self, event: ConnectionStringAvailableEvent) -> None:
        if self._state != ReadinessState.SUBSCRIBED:
            logger.debug(
                f"[readiness] Ignoring event | resource={self.resource.name} | state={self._state.value}"
            )
            return

        self._state = ReadinessState.RESOLVING
        self._detach()
        logger.info(f"[readiness] Resolving connection string | resource={self.resource.name}")

        try:
            connection_string = await self.resource.get_connection_string()
        except asyncio.CancelledError:
            self._mark_abandoned("Resolution was cancelled")
            raise
        except Exception as e:
            self._fail(e)
            raise

        if not connection_string:
            error = ResolutionError(
                f"ConnectionStringAvailableEvent was published for the '{self.resource.name}' "
                "resource but the connection string was null.",
                resource=self.resource.name,
            )
            self._fail(error)
            raise error

        self._connection_string = connection_string
        self._state = ReadinessState.RESOLVED
        self._done.set()
        logger.info(f"[readiness] Connection string resolved | resource={self.resource.name}")

    async def _on_application_stopping(self, event: ApplicationStoppingEvent) -> None:
        self.abandon()

    def abandon(self) -> None:
        """Drop a pending subscription. No effect once resolution has started."""
        if self._state.is_terminal or self._state == ReadinessState.RESOLVING:
            return
        self._detach()
        self._mark_abandoned("Application stopped")

    async def wait(self) -> str:
        """
        Wait for the connection string.

        Raises:
            ResolutionError: If resolution failed
            asyncio.CancelledError: If the application stopped first
        """
        await self._done.wait()
        if self._error is not None:
            raise self._error
        assert self._connection_string is not None
        return self._connection_string

    def _mark_abandoned(self, reason: str) -> None:
        self._state = ReadinessState.ABANDONED
        self._error = asyncio.CancelledError(
            f"{reason} before '{self.resource.name}' became ready"
        )
        self._done.set()
        logger.info(f"[readiness] Abandoned | resource={self.resource.name} | reason={reason}")

    def _fail(self, error: BaseException) -> None:
        self._error = error
        self._state = ReadinessState.FAILED
        self._done.set()
        logger.error(f"[readiness] Resolution failed | resource={self.resource.name} | error={error}")

    def _detach(self) -> None:
        if self._eventing is not None:
            for subscription in self._subscriptions:
                self._eventing.unsubscribe(subscription)
        self._subscriptions = []


__all__ = [
    "ReadinessState",
    "ReadinessCoordinator",
]
