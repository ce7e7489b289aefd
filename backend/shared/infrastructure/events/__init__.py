"""
Event System for Real-time Notifications via Redis pub/sub.

Modules:
- circuit_breaker.py: Circuit breaker and retry delay helper
- event_types.py: Event type constants
- event_schema.py: Event dataclass with validation
- channels.py: Channel naming functions
- redis_pool.py: Connection pool management
- publisher.py: Core publish_event with retry
"""

from .circuit_breaker import (
    CircuitState,
    EventCircuitBreaker,
    get_event_circuit_breaker,
    reset_event_circuit_breaker,
    calculate_retry_delay_with_jitter,
)
from .event_types import (
    ORDER_CREATED,
    ORDER_STATUS_CHANGED,
    ORDER_UPDATED,
    ORDER_DELETED,
    ORDER_ITEM_STATUS_CHANGED,
    CUSTOM_ORDER_ITEM_CREATED,
    CUSTOM_ORDER_ITEM_STATUS_CHANGED,
    MAX_EVENT_SIZE,
)
from .event_schema import Event
from .channels import (
    channel_stall_kitchen,
    channel_table,
    channel_user,
)
from .redis_pool import get_redis_pool, close_redis_pool
from .publisher import publish_event

__all__ = [
    # Circuit breaker
    "CircuitState",
    "EventCircuitBreaker",
    "get_event_circuit_breaker",
    "reset_event_circuit_breaker",
    "calculate_retry_delay_with_jitter",
    # Event types
    "ORDER_CREATED",
    "ORDER_STATUS_CHANGED",
    "ORDER_UPDATED",
    "ORDER_DELETED",
    "ORDER_ITEM_STATUS_CHANGED",
    "CUSTOM_ORDER_ITEM_CREATED",
    "CUSTOM_ORDER_ITEM_STATUS_CHANGED",
    "MAX_EVENT_SIZE",
    # Schema
    "Event",
    # Channels
    "channel_stall_kitchen",
    "channel_table",
    "channel_user",
    # Redis
    "get_redis_pool",
    "close_redis_pool",
    "publish_event",
]
