"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, DATABASE_URL
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    OrderItemStatus,
    OrderStatus,
    ItemKind,
    Limits,
    next_item_status,
    previous_item_status,
    is_terminal,
)

__all__ = [
    # settings
    "settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "OrderItemStatus",
    "OrderStatus",
    "ItemKind",
    "Limits",
    "next_item_status",
    "previous_item_status",
    "is_terminal",
]
