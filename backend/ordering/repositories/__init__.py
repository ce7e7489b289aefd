"""
Repository Pattern implementation.
Centralizes data access. Repositories never commit.

Usage:
    from ordering.repositories import OrderItemRepository
    from shared.config.constants import ItemKind

    repo = OrderItemRepository(db, ItemKind.CUSTOM)
    found = repo.get_current_status_and_parent(42, lock=True)
"""

from .base import BaseRepository
from .order_item import (
    StatusBearing,
    OrderItemRepository,
    get_order_item_repository,
)
from .order import OrderRepository, get_order_repository
from .venue import (
    TableRepository,
    StallRepository,
    get_table_repository,
    get_stall_repository,
)

__all__ = [
    "BaseRepository",
    "StatusBearing",
    "OrderItemRepository",
    "get_order_item_repository",
    "OrderRepository",
    "get_order_repository",
    "TableRepository",
    "StallRepository",
    "get_table_repository",
    "get_stall_repository",
]
