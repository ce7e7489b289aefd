"""
Order Repository - Data access for order headers.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shared.config.constants import OrderStatus
from ordering.models import Order, OrderItem
from .base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """
    Repository for Order entities.

    get(..., with_items=True) eager loads items -> modifiers so building an
    OrderOutput does not issue one query per line.
    """

    @property
    def model(self) -> type[Order]:
        return Order

    def get(self, order_id: int, with_items: bool = False) -> Order | None:
        if not with_items:
            return self.find_by_id(order_id)

        return self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items).selectinload(OrderItem.modifiers))
            .execution_options(populate_existing=True)
        )

    def lock(self, order_id: int) -> Order | None:
        """Read the order row FOR UPDATE. Returns None if it does not exist."""
        return self._db.scalar(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    def set_status(self, order_id: int, new_status: OrderStatus) -> Order | None:
        result = self._db.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(status=OrderStatus(new_status).value)
        )
        if result.rowcount == 0:
            return None
        return self.find_by_id(order_id)


def get_order_repository(db: Session) -> OrderRepository:
    """Factory function for OrderRepository."""
    return OrderRepository(db)
