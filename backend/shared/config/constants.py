"""
Centralized constants for the ordering engine.
Status domains, the item status transition table and validation limits.

Usage:
    from shared.config.constants import OrderItemStatus, next_item_status

    nxt = next_item_status(OrderItemStatus.INCOMING)  # OrderItemStatus.PREPARING
"""

from decimal import Decimal
from enum import Enum
from typing import Final


# =============================================================================
# Statuses
# =============================================================================


class OrderItemStatus(str, Enum):
    """Preparation status of a standard or custom order item."""

    INCOMING = "INCOMING"
    PREPARING = "PREPARING"
    SERVED = "SERVED"
    CANCELLED = "CANCELLED"


class OrderStatus(str, Enum):
    """Aggregate status of an order, derived from its items."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ItemKind(str, Enum):
    """Which table an order item lives in."""

    STANDARD = "STANDARD"  # Child of an Order, participates in rollup
    CUSTOM = "CUSTOM"  # Staff-entered line for a stall/table pair, no parent


INITIAL_ORDER_STATUS: Final[OrderStatus] = OrderStatus.PENDING
INITIAL_ITEM_STATUS: Final[OrderItemStatus] = OrderItemStatus.INCOMING

TERMINAL_ITEM_STATUSES: Final[frozenset[OrderItemStatus]] = frozenset(
    {OrderItemStatus.SERVED, OrderItemStatus.CANCELLED}
)


# =============================================================================
# Status Transitions
# =============================================================================
# INCOMING -> PREPARING -> SERVED. SERVED and CANCELLED are terminal.
# CANCELLED is only reachable through an explicit cancel, never by advancing.


def next_item_status(current: OrderItemStatus | str) -> OrderItemStatus | None:
    """
    Return the status an item moves to when advanced.

    Returns None when ``current`` is terminal. Raises ValueError for a value
    outside the status domain.
    """
    status = OrderItemStatus(current)
    if status is OrderItemStatus.INCOMING:
        return OrderItemStatus.PREPARING
    if status is OrderItemStatus.PREPARING:
        return OrderItemStatus.SERVED
    if status is OrderItemStatus.SERVED:
        return None
    if status is OrderItemStatus.CANCELLED:
        return None
    raise ValueError(f"Unhandled order item status: {status!r}")


def previous_item_status(current: OrderItemStatus | str) -> OrderItemStatus | None:
    """
    Return the status an item moves back to when reverted.

    INCOMING has nothing to revert to and a CANCELLED item stays cancelled.
    """
    status = OrderItemStatus(current)
    if status is OrderItemStatus.INCOMING:
        return None
    if status is OrderItemStatus.PREPARING:
        return OrderItemStatus.INCOMING
    if status is OrderItemStatus.SERVED:
        return OrderItemStatus.PREPARING
    if status is OrderItemStatus.CANCELLED:
        return None
    raise ValueError(f"Unhandled order item status: {status!r}")


def is_terminal(status: OrderItemStatus | str) -> bool:
    """True for SERVED and CANCELLED."""
    return OrderItemStatus(status) in TERMINAL_ITEM_STATUSES


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    # Quantity limits
    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 999

    # Price limits
    MIN_PRICE: Final[Decimal] = Decimal("0")
    MAX_PRICE: Final[Decimal] = Decimal("100000")

    # String lengths
    MAX_NAME_LENGTH: Final[int] = 200
    MAX_REMARKS_LENGTH: Final[int] = 500
    MAX_TABLE_NUMBER_LENGTH: Final[int] = 20

    # Items per order
    MAX_ITEMS_PER_ORDER: Final[int] = 100
