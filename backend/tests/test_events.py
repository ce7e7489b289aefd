"""
Tests for the Redis event layer: schema, channels, circuit breaker and publish.
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from shared.infrastructure.events import (
    MAX_EVENT_SIZE,
    ORDER_CREATED,
    CircuitState,
    Event,
    EventCircuitBreaker,
    calculate_retry_delay_with_jitter,
    channel_stall_kitchen,
    channel_table,
    channel_user,
    get_event_circuit_breaker,
    publish_event,
)


class TestEventSchema:

    def test_to_json_fills_timestamp(self):
        event = Event(type=ORDER_CREATED, order_id=1, table_id=2)

        data = json.loads(event.to_json())

        assert data["type"] == ORDER_CREATED
        assert data["order_id"] == 1
        assert data["entity"] == {}
        assert data["ts"]
        assert data["v"] == 1

    def test_decimal_entity_values_serialize(self):
        event = Event(type=ORDER_CREATED, order_id=1, entity={"total_price": Decimal("9.90")})

        assert json.loads(event.to_json())["entity"]["total_price"] == "9.90"

    def test_from_json_validates(self):
        event = Event.from_json(Event(type=ORDER_CREATED, order_id=3).to_json())
        assert event.order_id == 3

        with pytest.raises(ValueError):
            Event.from_json(json.dumps({"type": ORDER_CREATED, "order_id": -1}))

    @pytest.mark.parametrize("field", ["order_id", "item_id", "table_id", "stall_id", "user_id"])
    def test_ids_must_be_positive(self, field):
        with pytest.raises(ValueError):
            Event(type=ORDER_CREATED, **{field: 0})

    def test_type_required(self):
        with pytest.raises(ValueError):
            Event(type="")


class TestChannels:

    def test_names(self):
        assert channel_stall_kitchen(4) == "stall:4:kitchen"
        assert channel_table(12) == "table:12"
        assert channel_user(9) == "user:9"

    @pytest.mark.parametrize("bad", [0, -3, "5", None])
    def test_invalid_ids(self, bad):
        with pytest.raises(ValueError):
            channel_table(bad)


class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        breaker = EventCircuitBreaker(failure_threshold=2, recovery_timeout=60)

        breaker.record_failure()
        assert breaker.can_execute() is True
        breaker.record_failure()

        assert breaker.state is CircuitState.OPEN
        assert breaker.can_execute() is False
        assert breaker.get_stats()["rejected_count"] == 1

    def test_half_open_after_timeout_then_recovers(self):
        breaker = EventCircuitBreaker(failure_threshold=1, recovery_timeout=0)
        breaker.record_failure()

        assert breaker.can_execute() is True
        assert breaker.state is CircuitState.HALF_OPEN

        breaker.record_success()
        assert breaker.state is CircuitState.CLOSED

    def test_half_open_failure_reopens(self):
        breaker = EventCircuitBreaker(failure_threshold=1, recovery_timeout=0)
        breaker.record_failure()
        breaker.can_execute()

        breaker.record_failure()

        assert breaker.state is CircuitState.OPEN

    def test_success_resets_failure_count(self):
        breaker = EventCircuitBreaker(failure_threshold=2)
        breaker.record_failure()
        breaker.record_success()
        breaker.record_failure()

        assert breaker.state is CircuitState.CLOSED

    def test_singleton(self):
        assert get_event_circuit_breaker() is get_event_circuit_breaker()


class TestRetryDelay:

    @pytest.mark.parametrize("attempt", [0, 1, 2, 3, 10])
    def test_within_bounds(self, attempt):
        delay = calculate_retry_delay_with_jitter(attempt, base_delay=0.1)
        assert 0.1 <= delay <= 10.0


class TestPublishEvent:

    @pytest.mark.asyncio
    async def test_publishes_json(self):
        redis_client = AsyncMock()
        redis_client.publish.return_value = 3
        event = Event(type=ORDER_CREATED, order_id=1, table_id=2)

        result = await publish_event(redis_client, "table:2", event)

        assert result == 3
        channel, message = redis_client.publish.await_args.args
        assert channel == "table:2"
        assert json.loads(message)["order_id"] == 1

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        redis_client = AsyncMock()
        redis_client.publish.side_effect = [ConnectionError("reset"), 1]

        with patch("shared.infrastructure.events.publisher.asyncio.sleep", new=AsyncMock()):
            result = await publish_event(redis_client, "table:1", Event(type=ORDER_CREATED, order_id=1))

        assert result == 1
        assert redis_client.publish.await_count == 2
        assert get_event_circuit_breaker().state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_raises_after_all_retries_and_records_failure(self):
        redis_client = AsyncMock()
        redis_client.publish.side_effect = ConnectionError("refused")

        with patch("shared.infrastructure.events.publisher.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(ConnectionError):
                await publish_event(redis_client, "table:1", Event(type=ORDER_CREATED, order_id=1))

        assert redis_client.publish.await_count == 3
        assert get_event_circuit_breaker().get_stats()["failure_count"] == 1

    @pytest.mark.asyncio
    async def test_open_circuit_skips_publish(self):
        breaker = get_event_circuit_breaker()
        for _ in range(10):
            breaker.record_failure()
        redis_client = AsyncMock()

        result = await publish_event(redis_client, "table:1", Event(type=ORDER_CREATED, order_id=1))

        assert result == 0
        redis_client.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_successful_trial_closes_circuit(self, monkeypatch):
        breaker = EventCircuitBreaker(failure_threshold=1, recovery_timeout=0)
        breaker.record_failure()
        monkeypatch.setattr(
            "shared.infrastructure.events.publisher.get_event_circuit_breaker", lambda: breaker
        )
        redis_client = AsyncMock()
        redis_client.publish.return_value = 1

        result = await publish_event(redis_client, "table:1", Event(type=ORDER_CREATED, order_id=1))

        assert result == 1
        assert breaker.state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_oversized_event_rejected(self):
        redis_client = AsyncMock()
        event = Event(type=ORDER_CREATED, order_id=1, entity={"blob": "x" * MAX_EVENT_SIZE})

        with pytest.raises(ValueError):
            await publish_event(redis_client, "table:1", event)

        redis_client.publish.assert_not_awaited()


class TestRedisPool:

    @pytest.mark.asyncio
    async def test_pool_is_created_once_and_closed(self):
        from shared.infrastructure.events import redis_pool

        fake_client = AsyncMock()
        with patch.object(redis_pool.redis, "from_url", return_value=fake_client) as from_url:
            first = await redis_pool.get_redis_pool()
            second = await redis_pool.get_redis_pool()
            await redis_pool.close_redis_pool()

        assert first is second is fake_client
        from_url.assert_called_once()
        fake_client.aclose.assert_awaited_once()
        assert redis_pool._redis_pool is None
