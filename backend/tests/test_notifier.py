"""
Tests for the Notifier adapter.

Delivery runs on the notifier's background loop, so tests call flush()
before asserting on what was published.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from shared.infrastructure.correlation import correlation_scope
from shared.infrastructure.events import (
    ORDER_CREATED,
    ORDER_ITEM_STATUS_CHANGED,
    Event,
)
from ordering.services.events import Notifier, RedisEventPublisher, channels_for


class FakePublisher:
    """Async publisher double. Channels in fail_on raise like a dead Redis."""

    def __init__(self, fail_on=(), delay=0.0):
        self.fail_on = set(fail_on)
        self.delay = delay
        self.published: list[tuple[str, Event]] = []
        self.closed = False

    async def publish(self, channel, event):
        if self.delay:
            await asyncio.sleep(self.delay)
        if channel in self.fail_on:
            raise ConnectionError("Error 111 connecting to localhost:6379")
        self.published.append((channel, event))
        return 1

    async def close(self):
        self.closed = True

    @property
    def channels(self):
        return [channel for channel, _ in self.published]


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def notifier(publisher):
    notifier = Notifier(publisher=publisher, enabled=True, max_pending=100)
    yield notifier
    notifier.close(timeout=2.0)


ITEM_PAYLOAD = {
    "order_id": 10,
    "item_id": 20,
    "table_id": 1,
    "stall_id": 3,
    "user_id": 7,
    "entity": {"status": "PREPARING"},
}


class TestChannelsFor:

    def test_all_audiences(self):
        event = Event(type=ORDER_ITEM_STATUS_CHANGED, table_id=1, stall_id=3, user_id=7)
        assert channels_for(event) == ["stall:3:kitchen", "table:1", "user:7"]

    def test_order_event_without_user(self):
        event = Event(type=ORDER_CREATED, order_id=5, table_id=2)
        assert channels_for(event) == ["table:2"]

    def test_no_audience(self):
        assert channels_for(Event(type=ORDER_CREATED, order_id=5)) == []


class TestNotify:

    def test_publishes_to_every_channel(self, notifier, publisher):
        notifier.notify(ORDER_ITEM_STATUS_CHANGED, ITEM_PAYLOAD)

        assert notifier.flush(timeout=2.0) is True
        assert publisher.channels == ["stall:3:kitchen", "table:1", "user:7"]
        event = publisher.published[0][1]
        assert event.type == ORDER_ITEM_STATUS_CHANGED
        assert event.item_id == 20
        assert event.entity == {"status": "PREPARING"}
        assert event.ts is not None

    def test_failing_channel_does_not_stop_others(self, notifier, publisher):
        publisher.fail_on = {"table:1"}

        notifier.notify(ORDER_ITEM_STATUS_CHANGED, ITEM_PAYLOAD)

        assert notifier.flush(timeout=2.0) is True
        assert publisher.channels == ["stall:3:kitchen", "user:7"]

    def test_publisher_failure_never_raises(self, publisher):
        publisher.fail_on = {"stall:3:kitchen", "table:1", "user:7"}
        notifier = Notifier(publisher=publisher, enabled=True)
        try:
            notifier.notify(ORDER_ITEM_STATUS_CHANGED, ITEM_PAYLOAD)
            assert notifier.flush(timeout=2.0) is True
        finally:
            notifier.close(timeout=2.0)

        assert publisher.published == []

    def test_invalid_payload_is_logged_not_raised(self, notifier, publisher):
        notifier.notify(ORDER_CREATED, {"order_id": 0, "table_id": 1})
        notifier.notify(ORDER_CREATED, {"order_id": 1, "not_a_field": True})

        assert notifier.flush(timeout=1.0) is True
        assert publisher.published == []
        assert notifier.pending_count == 0

    def test_event_without_audience_is_skipped(self, notifier, publisher):
        notifier.notify(ORDER_CREATED, {"order_id": 1})

        assert notifier.flush(timeout=1.0) is True
        assert publisher.published == []

    def test_disabled_notifier_is_noop(self, publisher):
        notifier = Notifier(publisher=publisher, enabled=False)

        notifier.notify(ORDER_ITEM_STATUS_CHANGED, ITEM_PAYLOAD)

        assert notifier.enabled is False
        assert notifier.pending_count == 0
        assert publisher.published == []

    def test_request_id_travels_with_event(self, notifier, publisher):
        with correlation_scope("req-abc"):
            notifier.notify(ORDER_CREATED, {"order_id": 1, "table_id": 1})

        notifier.flush(timeout=2.0)
        assert publisher.published[0][1].request_id == "req-abc"

    def test_zero_max_pending_drops_everything(self, publisher):
        notifier = Notifier(publisher=publisher, enabled=True, max_pending=0)
        try:
            notifier.notify(ORDER_CREATED, {"order_id": 1, "table_id": 1})
            assert notifier.flush(timeout=1.0) is True
        finally:
            notifier.close(timeout=1.0)

        assert publisher.published == []
        assert publisher.closed is False

    def test_excess_notifications_are_dropped(self):
        publisher = FakePublisher(delay=0.3)
        notifier = Notifier(publisher=publisher, enabled=True, max_pending=1)
        try:
            notifier.notify(ORDER_CREATED, {"order_id": 1, "table_id": 1})
            notifier.notify(ORDER_CREATED, {"order_id": 2, "table_id": 1})
            assert notifier.flush(timeout=2.0) is True
        finally:
            notifier.close(timeout=2.0)

        assert [event.order_id for _, event in publisher.published] == [1]


class TestClose:

    def test_close_releases_publisher(self, publisher):
        notifier = Notifier(publisher=publisher, enabled=True)
        notifier.notify(ORDER_CREATED, {"order_id": 1, "table_id": 1})

        notifier.close(timeout=2.0)

        assert publisher.closed is True
        assert publisher.channels == ["table:1"]

    def test_close_without_activity(self, publisher):
        Notifier(publisher=publisher, enabled=True).close()
        assert publisher.closed is False


class TestRedisEventPublisher:

    @pytest.mark.asyncio
    async def test_publishes_through_shared_pool(self):
        redis_client = AsyncMock()
        event = Event(type=ORDER_CREATED, order_id=1, table_id=1)

        with patch(
            "ordering.services.events.notifier.get_redis_pool",
            new=AsyncMock(return_value=redis_client),
        ), patch(
            "ordering.services.events.notifier.publish_event",
            new=AsyncMock(return_value=2),
        ) as publish:
            result = await RedisEventPublisher().publish("table:1", event)

        assert result == 2
        publish.assert_awaited_once_with(redis_client, "table:1", event)
