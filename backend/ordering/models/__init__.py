"""
SQLAlchemy ORM Models Package.

- base: Base class and TimestampMixin
- venue: Venue, Table, Stall
- catalog: MenuItem
- order: Order, OrderItem, OrderItemModifier, CustomOrderItem
"""

from .base import Base, TimestampMixin
from .venue import Venue, Table, Stall
from .catalog import MenuItem
from .order import Order, OrderItem, OrderItemModifier, CustomOrderItem

__all__ = [
    "Base",
    "TimestampMixin",
    "Venue",
    "Table",
    "Stall",
    "MenuItem",
    "Order",
    "OrderItem",
    "OrderItemModifier",
    "CustomOrderItem",
]
