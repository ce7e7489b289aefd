"""
Order Item Repository - status access for standard and custom items.

One adapter serves both item tables so the status operations are written
once. The kind is chosen when the repository is built.
"""

from typing import Protocol, Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shared.config.constants import ItemKind, OrderItemStatus
from ordering.models import CustomOrderItem, OrderItem
from .base import BaseRepository


class StatusBearing(Protocol):
    """An item with a preparation status and an optional parent order."""

    id: int
    status: str

    @property
    def parent_order_id(self) -> int | None: ...


_MODELS: dict[ItemKind, type] = {
    ItemKind.STANDARD: OrderItem,
    ItemKind.CUSTOM: CustomOrderItem,
}


class OrderItemRepository(BaseRepository[StatusBearing]):
    """
    Repository for OrderItem and CustomOrderItem rows.

    Usage:
        repo = OrderItemRepository(db, ItemKind.STANDARD)
        found = repo.get_current_status_and_parent(item_id, lock=True)
        if found is None:
            ...  # not found
        status, order_id = found
    """

    def __init__(self, db: Session, kind: ItemKind = ItemKind.STANDARD):
        super().__init__(db)
        self._kind = ItemKind(kind)

    @property
    def kind(self) -> ItemKind:
        return self._kind

    @property
    def model(self) -> type:
        return _MODELS[self._kind]

    def get(self, item_id: int) -> StatusBearing | None:
        return self.find_by_id(item_id)

    def get_current_status_and_parent(
        self,
        item_id: int,
        lock: bool = False,
    ) -> tuple[OrderItemStatus, int | None] | None:
        """
        Read an item's status and parent order ID.

        Args:
            item_id: Item ID
            lock: Read the row FOR UPDATE so concurrent status changes serialize

        Returns:
            (status, parent_order_id) or None if the item does not exist.
            parent_order_id is always None for custom items.
        """
        query = select(self.model).where(self.model.id == item_id)
        if lock:
            query = query.with_for_update()

        # populate_existing: a locked read must not be served from a stale identity map
        item = self._db.scalar(query.execution_options(populate_existing=True))
        if item is None:
            return None
        return OrderItemStatus(item.status), item.parent_order_id

    def set_status(self, item_id: int, new_status: OrderItemStatus) -> StatusBearing | None:
        """
        Write a new status in a single UPDATE.

        Returns:
            The updated item, or None when no row matched.
        """
        result = self._db.execute(
            update(self.model)
            .where(self.model.id == item_id)
            .values(status=OrderItemStatus(new_status).value)
        )
        if result.rowcount == 0:
            return None
        return self.find_by_id(item_id)

    def lock_for_order(self, order_id: int) -> list[int]:
        """Lock every standard item of an order FOR UPDATE. Returns their IDs."""
        return list(
            self._db.scalars(
                select(OrderItem.id)
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id)
                .with_for_update()
            ).all()
        )

    def list_statuses_for_order(self, order_id: int) -> list[OrderItemStatus]:
        """Statuses of every standard item of an order (empty for unknown orders)."""
        rows: Sequence[str] = self._db.scalars(
            select(OrderItem.status)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        ).all()
        return [OrderItemStatus(s) for s in rows]


def get_order_item_repository(db: Session, kind: ItemKind = ItemKind.STANDARD) -> OrderItemRepository:
    """Factory function for OrderItemRepository."""
    return OrderItemRepository(db, kind)
