"""
Order Item Domain Services.

OrderItemStatusService moves standard and custom items through
INCOMING -> PREPARING -> SERVED (or CANCELLED) and keeps the parent order
status in step. OrderItemService edits and deletes standard lines.

Locks are always taken item first, then order.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.constants import (
    ItemKind,
    Limits,
    OrderItemStatus,
    OrderStatus,
    is_terminal,
    next_item_status,
    previous_item_status,
)
from shared.config.logging import kitchen_logger as logger
from shared.infrastructure.db import safe_commit
from shared.infrastructure.events import (
    CUSTOM_ORDER_ITEM_STATUS_CHANGED,
    ORDER_ITEM_STATUS_CHANGED,
    ORDER_STATUS_CHANGED,
)
from shared.utils.exceptions import (
    AppException,
    DatabaseError,
    InvalidTransitionError,
    OrderItemNotFoundError,
)
from shared.utils.schemas import ItemStatusChange, OrderItemOutput, UpdateOrderItemRequest
from shared.utils.validators import sanitize_text, updatable_fields
from ordering.models import Order, OrderItem
from ordering.repositories import OrderItemRepository, OrderRepository
from ordering.services.events import Notifier, get_notifier
from .rollup import OrderRollupEngine, RollupResult

CENT = Decimal("0.01")

ADVANCE = "advance"
REVERT = "revert"
CANCEL = "cancel"


def _entity_name(kind: ItemKind) -> str:
    return "Custom Order Item" if kind is ItemKind.CUSTOM else "Order Item"


class OrderItemStatusService:
    """
    Status operations shared by standard and custom items.

    Usage:
        service = OrderItemStatusService(db)
        change = service.advance_item_status(item_id, ItemKind.STANDARD)
        if change.order_status_changed:
            ...
    """

    def __init__(self, db: Session, notifier: Notifier | None = None):
        self._db = db
        self._notifier = notifier or get_notifier()
        self._orders = OrderRepository(db)
        self._rollup = OrderRollupEngine(db)

    def advance_item_status(self, item_id: int, kind: ItemKind = ItemKind.STANDARD) -> ItemStatusChange:
        """
        Move an item one step forward.

        Raises:
            OrderItemNotFoundError: Unknown item.
            InvalidTransitionError: Item is SERVED or CANCELLED.
            DatabaseError: Storage failure; nothing changed.
        """
        return self._change_status(item_id, ItemKind(kind), ADVANCE)

    def revert_item_status(self, item_id: int, kind: ItemKind = ItemKind.STANDARD) -> ItemStatusChange:
        """
        Move an item one step back (SERVED -> PREPARING -> INCOMING).

        Raises:
            InvalidTransitionError: Item is INCOMING or CANCELLED.
        """
        return self._change_status(item_id, ItemKind(kind), REVERT)

    def cancel_item(self, item_id: int, kind: ItemKind = ItemKind.STANDARD) -> ItemStatusChange:
        """
        Cancel an item that is still INCOMING or PREPARING.

        An item already SERVED or CANCELLED is left as is and the result
        reports changed=False.
        """
        return self._change_status(item_id, ItemKind(kind), CANCEL)

    # =========================================================================
    # Internals
    # =========================================================================

    def _target_status(
        self,
        action: str,
        kind: ItemKind,
        current: OrderItemStatus,
    ) -> OrderItemStatus | None:
        """Status to move to, or None for a cancel that has nothing to do."""
        if action == CANCEL:
            return None if is_terminal(current) else OrderItemStatus.CANCELLED

        if action == ADVANCE:
            target = next_item_status(current)
        else:
            target = previous_item_status(current)
        if target is None:
            raise InvalidTransitionError(_entity_name(kind), current.value, action=action)
        return target

    def _change_status(self, item_id: int, kind: ItemKind, action: str) -> ItemStatusChange:
        items = OrderItemRepository(self._db, kind)
        rollup: RollupResult | None = None
        order: Order | None = None

        try:
            found = items.get_current_status_and_parent(item_id, lock=True)
            if found is None:
                raise OrderItemNotFoundError(item_id, kind.value)
            current, order_id = found

            if order_id is not None:
                order = self._orders.lock(order_id)

            target = self._target_status(action, kind, current)
            if target is None:
                unchanged = ItemStatusChange(
                    item_id=item_id,
                    kind=kind,
                    previous_status=current,
                    status=current,
                    changed=False,
                    order_id=order_id,
                    order_status=self._order_status(order, None),
                )
                # Nothing to write; release the row locks
                self._db.rollback()
                logger.debug(
                    "Cancel ignored, item already final",
                    item_id=item_id,
                    kind=kind.value,
                    status=current.value,
                )
                return unchanged

            item = items.set_status(item_id, target)
            if item is None:
                raise OrderItemNotFoundError(item_id, kind.value)

            if order_id is not None:
                rollup = self._rollup.rollup_in_savepoint(order_id)

            notifications = self._build_notifications(item, kind, current, target, order, rollup)
            order_status = self._order_status(order, rollup)

            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError(
                f"order item {action}",
                item_id=item_id,
                kind=kind.value,
                error=str(e),
            ) from e

        logger.info(
            "Order item status changed",
            item_id=item_id,
            kind=kind.value,
            previous_status=current.value,
            status=target.value,
            order_id=order_id,
        )

        for topic, payload in notifications:
            self._notifier.notify(topic, payload)

        return ItemStatusChange(
            item_id=item_id,
            kind=kind,
            previous_status=current,
            status=target,
            changed=True,
            order_id=order_id,
            order_status=order_status,
            order_status_changed=rollup.changed if rollup is not None else False,
        )

    @staticmethod
    def _order_status(order: Order | None, rollup: RollupResult | None) -> OrderStatus | None:
        if rollup is not None:
            return rollup.current
        if order is not None:
            return OrderStatus(order.status)
        return None

    @staticmethod
    def _build_notifications(
        item: Any,
        kind: ItemKind,
        previous: OrderItemStatus,
        status: OrderItemStatus,
        order: Order | None,
        rollup: RollupResult | None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Capture everything the events need while the rows are still loaded."""
        entity = {
            "kind": kind.value,
            "status": status.value,
            "previous_status": previous.value,
        }

        if kind is ItemKind.CUSTOM:
            return [(
                CUSTOM_ORDER_ITEM_STATUS_CHANGED,
                {
                    "item_id": item.id,
                    "table_id": item.table_id,
                    "stall_id": item.stall_id,
                    "user_id": item.user_id,
                    "entity": entity,
                },
            )]

        notifications = [(
            ORDER_ITEM_STATUS_CHANGED,
            {
                "order_id": item.order_id,
                "item_id": item.id,
                "table_id": order.table_id,
                "stall_id": item.menu_item.stall_id,
                "user_id": order.user_id,
                "entity": entity,
            },
        )]
        if rollup is not None and rollup.changed:
            notifications.append((
                ORDER_STATUS_CHANGED,
                {
                    "order_id": order.id,
                    "table_id": order.table_id,
                    "user_id": order.user_id,
                    "entity": {
                        "status": rollup.current.value,
                        "previous_status": rollup.previous.value,
                    },
                },
            ))
        return notifications


class OrderItemService:
    """Edits and deletes standard order lines."""

    def __init__(self, db: Session, notifier: Notifier | None = None):
        self._db = db
        self._notifier = notifier or get_notifier()
        self._items = OrderItemRepository(db, ItemKind.STANDARD)
        self._orders = OrderRepository(db)
        self._rollup = OrderRollupEngine(db)

    def get_item(self, item_id: int) -> OrderItemOutput:
        item = self._items.get(item_id)
        if item is None:
            raise OrderItemNotFoundError(item_id)
        return OrderItemOutput.model_validate(item)

    def update_item(self, item_id: int, payload: Mapping[str, Any] | UpdateOrderItemRequest) -> OrderItemOutput:
        """
        Update quantity, unit price or notes and recompute the line subtotal.

        Raises:
            NoUpdatableFieldsError: Nothing recognized to update.
            OrderItemNotFoundError: Unknown item.
            DatabaseError: Storage failure.
        """
        values = updatable_fields(
            UpdateOrderItemRequest, payload, "Order Item", required=("quantity", "unit_price")
        )
        if "notes" in values:
            values["notes"] = sanitize_text(values["notes"], Limits.MAX_REMARKS_LENGTH)

        try:
            if self._items.get_current_status_and_parent(item_id, lock=True) is None:
                raise OrderItemNotFoundError(item_id)
            item: OrderItem = self._items.get(item_id)

            quantity = values.get("quantity", item.quantity)
            unit_price = values.get("unit_price", item.unit_price)
            modifiers_total = sum((m.price_modifier for m in item.modifiers), Decimal("0"))
            values["line_subtotal"] = ((unit_price + modifiers_total) * quantity).quantize(CENT)

            item = self._items.update_fields(item_id, values)
            output = OrderItemOutput.model_validate(item)
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("order item update", item_id=item_id, error=str(e)) from e

        logger.info("Order item updated", item_id=item_id, fields=sorted(values))
        return output

    def delete_item(self, item_id: int) -> RollupResult | None:
        """
        Delete a line and recompute its order status.

        Returns the rollup result, or None if the rollup failed (the
        deletion is kept either way).
        """
        try:
            found = self._items.get_current_status_and_parent(item_id, lock=True)
            if found is None:
                raise OrderItemNotFoundError(item_id)
            _, order_id = found
            order = self._orders.lock(order_id)

            self._items.delete(item_id)
            rollup = self._rollup.rollup_in_savepoint(order_id)
            table_id, user_id = order.table_id, order.user_id

            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("order item deletion", item_id=item_id, error=str(e)) from e

        logger.info("Order item deleted", item_id=item_id, order_id=order_id)

        if rollup is not None and rollup.changed:
            self._notifier.notify(
                ORDER_STATUS_CHANGED,
                {
                    "order_id": order_id,
                    "table_id": table_id,
                    "user_id": user_id,
                    "entity": {
                        "status": rollup.current.value,
                        "previous_status": rollup.previous.value,
                    },
                },
            )
        return rollup
