"""
Notifier - fire-and-forget publication of order events.

Services call notify() only after their transaction committed. Publication
runs on a background event loop thread so the caller never waits on Redis,
and a failure there is logged, never raised.

Usage:
    notifier = get_notifier()
    notifier.notify(ORDER_CREATED, {"order_id": 1, "table_id": 3, "entity": {...}})
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from datetime import datetime, timezone
from typing import Any, Protocol

from shared.config.settings import settings
from shared.config.logging import events_logger as logger
from shared.infrastructure.correlation import get_request_id, request_id_var
from shared.infrastructure.events import (
    Event,
    channel_stall_kitchen,
    channel_table,
    channel_user,
    close_redis_pool,
    get_redis_pool,
    publish_event,
)


class EventPublisher(Protocol):
    """Anything that can push one event to one channel."""

    async def publish(self, channel: str, event: Event) -> int: ...


class RedisEventPublisher:
    """Publishes through the shared Redis pool with retry and circuit breaker."""

    async def publish(self, channel: str, event: Event) -> int:
        redis_client = await get_redis_pool()
        return await publish_event(redis_client, channel, event)

    async def close(self) -> None:
        await close_redis_pool()


def channels_for(event: Event) -> list[str]:
    """
    Channels an event is delivered to.

    Kitchen display of the stall, guests at the table and the ordering user,
    each only when the event carries the corresponding ID.
    """
    channels = []
    if event.stall_id is not None:
        channels.append(channel_stall_kitchen(event.stall_id))
    if event.table_id is not None:
        channels.append(channel_table(event.table_id))
    if event.user_id is not None:
        channels.append(channel_user(event.user_id))
    return channels


class Notifier:
    """
    Notification adapter.

    notify() validates the event, schedules delivery and returns. At most
    max_pending deliveries are in flight; beyond that new events are dropped.
    """

    def __init__(
        self,
        publisher: EventPublisher | None = None,
        enabled: bool | None = None,
        max_pending: int | None = None,
    ):
        self._publisher = publisher or RedisEventPublisher()
        self._enabled = settings.notifications_enabled if enabled is None else enabled
        self._max_pending = settings.notifier_max_pending if max_pending is None else max_pending

        self._lock = threading.Lock()
        self._pending: set[concurrent.futures.Future] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def notify(self, topic: str, payload: dict[str, Any]) -> None:
        """Publish an event in the background. Never raises."""
        if not self._enabled:
            logger.debug("Notifications disabled, event dropped", event_type=topic)
            return

        try:
            event = self._build_event(topic, payload)
            channels = channels_for(event)
        except (TypeError, ValueError) as e:
            logger.error("Invalid notification payload", event_type=topic, error=str(e))
            return

        if not channels:
            logger.debug("Notification has no audience", event_type=topic)
            return

        try:
            self._schedule(event, channels)
        except Exception as e:
            logger.error("Failed to schedule notification", event_type=topic, error=str(e))

    def flush(self, timeout: float = 5.0) -> bool:
        """Wait for in-flight deliveries. Returns True if all finished."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = concurrent.futures.wait(pending, timeout=timeout)
        return not not_done

    def close(self, timeout: float = 5.0) -> None:
        """Drain deliveries, release the publisher and stop the loop thread."""
        self.flush(timeout)

        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return

        close = getattr(self._publisher, "close", None)
        if close is not None:
            try:
                asyncio.run_coroutine_threadsafe(close(), loop).result(timeout)
            except Exception as e:
                logger.warning("Error closing notification publisher", error=str(e))

        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout)
        loop.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _build_event(self, topic: str, payload: dict[str, Any]) -> Event:
        return Event(
            type=topic,
            request_id=get_request_id() or None,
            ts=datetime.now(timezone.utc).isoformat(),
            **payload,
        )

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        # Caller holds self._lock
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=self._loop.run_forever,
                name="notifier-loop",
                daemon=True,
            )
            self._thread.start()
        return self._loop

    def _schedule(self, event: Event, channels: list[str]) -> None:
        with self._lock:
            if len(self._pending) >= self._max_pending:
                logger.warning(
                    "Notification dropped, too many in flight",
                    event_type=event.type,
                    max_pending=self._max_pending,
                )
                return
            loop = self._ensure_loop()
            future = asyncio.run_coroutine_threadsafe(self._deliver(event, channels), loop)
            self._pending.add(future)
        future.add_done_callback(self._on_done)

    async def _deliver(self, event: Event, channels: list[str]) -> int:
        # Each task runs in its own context copy
        request_id_var.set(event.request_id or "")

        delivered = 0
        for channel in channels:
            try:
                await self._publisher.publish(channel, event)
                delivered += 1
            except Exception as e:
                logger.error(
                    "Failed to publish notification",
                    channel=channel,
                    event_type=event.type,
                    error=str(e),
                )
        logger.debug(
            "Notification delivered",
            event_type=event.type,
            channels=len(channels),
            delivered=delivered,
        )
        return delivered

    def _on_done(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.error("Notification delivery crashed", error=str(future.exception()))


# =============================================================================
# Singleton instance
# =============================================================================

_notifier: Notifier | None = None
_notifier_lock = threading.Lock()


def get_notifier() -> Notifier:
    """Get or create the notifier singleton."""
    global _notifier
    if _notifier is None:
        with _notifier_lock:
            if _notifier is None:
                _notifier = Notifier()
    return _notifier


def shutdown_notifier(timeout: float = 5.0) -> None:
    """Close the notifier singleton (application shutdown)."""
    global _notifier
    with _notifier_lock:
        notifier, _notifier = _notifier, None
    if notifier is not None:
        notifier.close(timeout)
