"""
Application-wide eventing.

Handlers subscribe to an event type, optionally scoped to one resource.
Publishing awaits matching handlers one after another in subscription
order. A handler exception is logged and propagated to the publisher, so
fatal resource errors surface to whoever reported the event.

Usage:
    bus = EventBus()

    async def on_ready(event: ConnectionStringAvailableEvent) -> None:
        ...

    subscription = bus.subscribe(ConnectionStringAvailableEvent, on_ready, resource=redis)
    await bus.publish(ConnectionStringAvailableEvent(redis))
    bus.unsubscribe(subscription)
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .resource import Resource

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Awaitable[None]]

_subscription_ids = itertools.count(1)


class DistributedApplicationEvent:
    """Base class for application events."""


@dataclass(frozen=True)
class ResourceEvent(DistributedApplicationEvent):
    """An event about one resource."""

    resource: Resource


@dataclass(frozen=True)
class ConnectionStringAvailableEvent(ResourceEvent):
    """The resource is reachable and its connection string can be computed."""


@dataclass(frozen=True)
class ApplicationStoppingEvent(DistributedApplicationEvent):
    """The application is shutting down."""


@dataclass(frozen=True)
class EventSubscription:
    """Handle returned by subscribe(), used to unsubscribe."""

    id: int
    event_type: type[DistributedApplicationEvent]
    handler: EventHandler
    resource_name: str | None = None

    def matches(self, event: DistributedApplicationEvent) -> bool:
        if not isinstance(event, self.event_type):
            return False
        if self.resource_name is None:
            return True
        return isinstance(event, ResourceEvent) and event.resource.name == self.resource_name


class EventBus:
    """In-process event bus for application lifecycle events."""

    def __init__(self) -> None:
        self._subscriptions: list[EventSubscription] = []

    def subscribe(
        self,
        event_type: type[DistributedApplicationEvent],
        handler: EventHandler,
        *,
        resource: Resource | None = None,
    ) -> EventSubscription:
        """
        Register an async handler.

        Args:
            event_type: Event class to listen for (subclasses match too)
            handler: Async callable receiving the event
            resource: Only receive events about this resource

        Returns:
            Subscription handle
        """
        subscription = EventSubscription(
            id=next(_subscription_ids),
            event_type=event_type,
            handler=handler,
            resource_name=resource.name if resource is not None else None,
        )
        self._subscriptions.append(subscription)
        logger.debug(
            f"[eventing] Subscribed | event={event_type.__name__} | "
            f"resource={subscription.resource_name} | id={subscription.id}"
        )
        return subscription

    def unsubscribe(self, subscription: EventSubscription) -> None:
        """Remove a subscription. Unknown subscriptions are ignored."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(f"[eventing] Unsubscribed | id={subscription.id}")

    async def publish(self, event: DistributedApplicationEvent) -> None:
        """
        Deliver an event to every matching handler.

        Raises:
            Exception: Whatever a handler raised; later handlers are not run
        """
        # Snapshot so handlers may unsubscribe while we iterate
        matching = [s for s in self._subscriptions if s.matches(event)]
        logger.debug(
            f"[eventing] Publishing {type(event).__name__} to {len(matching)} handler(s)"
        )
        for subscription in matching:
            try:
                await subscription.handler(event)
            except Exception:
                logger.exception(
                    f"[eventing] Handler failed | event={type(event).__name__} | "
                    f"id={subscription.id}"
                )
                raise

    def subscriber_count(self, event_type: type[DistributedApplicationEvent] | None = None) -> int:
        if event_type is None:
            return len(self._subscriptions)
        return sum(1 for s in self._subscriptions if issubclass(s.event_type, event_type))


__all__ = [
    "DistributedApplicationEvent",
    "ResourceEvent",
    "ConnectionStringAvailableEvent",
    "ApplicationStoppingEvent",
    "EventSubscription",
    "EventBus",
]
