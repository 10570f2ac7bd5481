"""
Tests for the application event bus.
"""

import pytest

from apphost.hosting import (
    ApplicationStoppingEvent,
    ConnectionStringAvailableEvent,
    EventBus,
    Resource,
)


@pytest.fixture
def resource():
    return Resource("cache")


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_delivers_in_subscription_order(self, resource):
        bus = EventBus()
        received = []

        async def first(event):
            received.append(("first", event))

        async def second(event):
            received.append(("second", event))

        bus.subscribe(ConnectionStringAvailableEvent, first)
        bus.subscribe(ConnectionStringAvailableEvent, second)
        event = ConnectionStringAvailableEvent(resource)

        await bus.publish(event)

        assert received == [("first", event), ("second", event)]

    @pytest.mark.asyncio
    async def test_resource_scoping(self, resource):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event.resource.name)

        bus.subscribe(ConnectionStringAvailableEvent, handler, resource=resource)

        await bus.publish(ConnectionStringAvailableEvent(Resource("other")))
        await bus.publish(ConnectionStringAvailableEvent(resource))

        assert received == ["cache"]

    @pytest.mark.asyncio
    async def test_scoped_handler_ignores_application_events(self, resource):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(ApplicationStoppingEvent, handler, resource=resource)

        await bus.publish(ApplicationStoppingEvent())

        assert received == []

    @pytest.mark.asyncio
    async def test_unsubscribe(self, resource):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        subscription = bus.subscribe(ConnectionStringAvailableEvent, handler)
        bus.unsubscribe(subscription)
        bus.unsubscribe(subscription)

        await bus.publish(ConnectionStringAvailableEvent(resource))

        assert received == []
        assert bus.subscriber_count() == 0

    @pytest.mark.asyncio
    async def test_handler_error_propagates_and_stops_delivery(self, resource):
        bus = EventBus()
        received = []

        async def failing(event):
            raise ValueError("bad handler")

        async def later(event):
            received.append(event)

        bus.subscribe(ConnectionStringAvailableEvent, failing)
        bus.subscribe(ConnectionStringAvailableEvent, later)

        with pytest.raises(ValueError, match="bad handler"):
            await bus.publish(ConnectionStringAvailableEvent(resource))

        assert received == []

    @pytest.mark.asyncio
    async def test_handler_may_unsubscribe_itself(self, resource):
        bus = EventBus()
        calls = []

        async def once(event):
            calls.append(event)
            bus.unsubscribe(subscription)

        subscription = bus.subscribe(ConnectionStringAvailableEvent, once)

        await bus.publish(ConnectionStringAvailableEvent(resource))
        await bus.publish(ConnectionStringAvailableEvent(resource))

        assert len(calls) == 1

    def test_subscriber_count_by_type(self):
        bus = EventBus()

        async def handler(event):
            pass

        bus.subscribe(ConnectionStringAvailableEvent, handler)
        bus.subscribe(ApplicationStoppingEvent, handler)

        assert bus.subscriber_count() == 2
        assert bus.subscriber_count(ApplicationStoppingEvent) == 1
