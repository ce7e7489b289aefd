"""
Order Rollup Domain Service.

Derives an order's status from the statuses of its items and writes it back
only when it changed. Called after every status change of a standard item.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.constants import OrderItemStatus, OrderStatus, is_terminal
from shared.config.logging import get_logger
from shared.utils.exceptions import OrderNotFoundError
from ordering.repositories import OrderItemRepository, OrderRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class RollupResult:
    """Outcome of one rollup. changed is False when nothing was written."""

    order_id: int
    previous: OrderStatus
    current: OrderStatus
    changed: bool


def compute_order_status(
    item_statuses: Iterable[OrderItemStatus | str],
    current: OrderStatus | str,
) -> OrderStatus:
    """
    Derive the order status from its item statuses.

    - No items: keep the current status.
    - Any item still INCOMING or PREPARING: PENDING.
    - Every item CANCELLED: CANCELLED.
    - Every item terminal, at least one SERVED: COMPLETED.
    """
    statuses = [OrderItemStatus(s) for s in item_statuses]
    if not statuses:
        return OrderStatus(current)

    if any(not is_terminal(s) for s in statuses):
        return OrderStatus.PENDING

    if all(s is OrderItemStatus.CANCELLED for s in statuses):
        return OrderStatus.CANCELLED

    return OrderStatus.COMPLETED


class OrderRollupEngine:
    """
    Keeps Order.status consistent with its items.

    Never commits; it writes inside the caller's transaction.
    """

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderRepository(db)
        self._items = OrderItemRepository(db)

    def rollup(self, order_id: int) -> RollupResult:
        """
        Recompute and persist the status of one order.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """
        order = self._orders.lock(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        previous = OrderStatus(order.status)
        derived = compute_order_status(
            self._items.list_statuses_for_order(order_id),
            previous,
        )

        if derived is previous:
            return RollupResult(order_id, previous, derived, changed=False)

        self._orders.set_status(order_id, derived)
        logger.info(
            "Order status rolled up",
            order_id=order_id,
            previous_status=previous.value,
            status=derived.value,
        )
        return RollupResult(order_id, previous, derived, changed=True)

    def rollup_in_savepoint(self, order_id: int) -> RollupResult | None:
        """
        Run rollup inside a SAVEPOINT.

        A failure rolls back only the savepoint and returns None, so the
        item change that triggered it can still be committed.
        """
        try:
            with self._db.begin_nested():
                return self.rollup(order_id)
        except (SQLAlchemyError, OrderNotFoundError) as e:
            logger.error(
                "Order rollup failed, keeping item change",
                order_id=order_id,
                error=str(e),
            )
            return None
