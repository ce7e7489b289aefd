"""
Circuit breaker guarding Redis publication.

After failure_threshold consecutive failed publications the breaker opens and
publish_event returns immediately instead of waiting on socket timeouts.
Once recovery_timeout has passed one trial publication is let through: success
closes the breaker, failure opens it again.
"""

from __future__ import annotations

import random
import threading
import time
from enum import Enum
from functools import lru_cache

from shared.config.settings import settings
from shared.config.logging import events_logger as logger

MAX_RETRY_DELAY = 10.0


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"  # One trial publication allowed


class EventCircuitBreaker:
    """Thread-safe: the notifier loop and request threads share one instance."""

    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 30.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self._state = CircuitState.CLOSED
        self._failures = 0
        self._rejected = 0
        self._opened_at = 0.0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    def can_execute(self) -> bool:
        with self._lock:
            if self._state is CircuitState.OPEN:
                if time.monotonic() - self._opened_at < self.recovery_timeout:
                    self._rejected += 1
                    return False
                self._state = CircuitState.HALF_OPEN
                logger.info("Event circuit breaker half-open, trying Redis again")
            return True

    def record_success(self) -> None:
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                logger.info("Event circuit breaker closed, Redis recovered")
            self._state = CircuitState.CLOSED
            self._failures = 0

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._state is CircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
                if self._state is not CircuitState.OPEN:
                    logger.error(
                        "Event circuit breaker opened",
                        failure_count=self._failures,
                        threshold=self.failure_threshold,
                    )
                self._state = CircuitState.OPEN
                self._opened_at = time.monotonic()

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "state": self._state.value,
                "failure_count": self._failures,
                "rejected_count": self._rejected,
            }


@lru_cache(maxsize=1)
def get_event_circuit_breaker() -> EventCircuitBreaker:
    """Process-wide breaker configured from settings."""
    return EventCircuitBreaker(
        failure_threshold=settings.event_circuit_failure_threshold,
        recovery_timeout=settings.event_circuit_recovery_timeout,
    )


def reset_event_circuit_breaker() -> None:
    """Forget the breaker; the next caller gets a fresh CLOSED one."""
    get_event_circuit_breaker.cache_clear()


def calculate_retry_delay_with_jitter(attempt: int, base_delay: float = 0.5) -> float:
    """Exponential backoff (0-indexed attempt) with full jitter above base_delay."""
    ceiling = min(base_delay * (2 ** attempt), MAX_RETRY_DELAY)
    return random.uniform(base_delay, max(base_delay, ceiling))
