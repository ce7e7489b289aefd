"""
Order event notifications (Redis pub/sub, published after commit).
"""

from .notifier import (
    EventPublisher,
    RedisEventPublisher,
    Notifier,
    channels_for,
    get_notifier,
    shutdown_notifier,
)

__all__ = [
    "EventPublisher",
    "RedisEventPublisher",
    "Notifier",
    "channels_for",
    "get_notifier",
    "shutdown_notifier",
]
