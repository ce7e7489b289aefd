"""
Publish one Event to one Redis channel.
"""

from __future__ import annotations

import asyncio

import redis.asyncio as redis

from shared.config.settings import settings
from shared.config.logging import events_logger as logger
from .event_types import MAX_EVENT_SIZE
from .event_schema import Event
from .circuit_breaker import get_event_circuit_breaker, calculate_retry_delay_with_jitter


def _encode(event: Event) -> str:
    message = event.to_json()
    size = len(message.encode("utf-8"))
    if size > MAX_EVENT_SIZE:
        raise ValueError(f"Event {event.type} exceeds max size: {size} > {MAX_EVENT_SIZE} bytes")
    return message


async def publish_event(redis_client: redis.Redis, channel: str, event: Event) -> int:
    """
    PUBLISH the event, retrying with jittered backoff.

    Returns:
        Number of subscribers reached, or 0 when the circuit breaker is open.

    Raises:
        ValueError: The encoded event is larger than MAX_EVENT_SIZE.
        Exception: The last Redis error once every attempt failed. The
            failure counts once against the circuit breaker.
    """
    message = _encode(event)

    breaker = get_event_circuit_breaker()
    if not breaker.can_execute():
        logger.warning("Redis publish skipped, circuit open", channel=channel, event_type=event.type)
        return 0

    attempts = max(1, settings.redis_publish_max_retries)
    attempt = 0
    while True:
        try:
            receivers = await redis_client.publish(channel, message)
        except Exception as e:
            attempt += 1
            if attempt >= attempts:
                breaker.record_failure()
                logger.error(
                    "Redis publish failed",
                    channel=channel,
                    event_type=event.type,
                    attempts=attempts,
                    error=str(e),
                )
                raise
            delay = calculate_retry_delay_with_jitter(attempt - 1, settings.redis_publish_retry_delay)
            logger.warning(
                "Redis publish failed, retrying",
                channel=channel,
                attempt=attempt,
                delay_seconds=round(delay, 2),
                error=str(e),
            )
            await asyncio.sleep(delay)
        else:
            breaker.record_success()
            return receivers
