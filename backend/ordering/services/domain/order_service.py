"""
Order Domain Service.

Creates orders atomically (header and every line in one transaction) and
handles the administrative operations on order headers.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.constants import INITIAL_ITEM_STATUS, INITIAL_ORDER_STATUS, Limits
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import safe_commit
from shared.infrastructure.events import (
    ORDER_CREATED,
    ORDER_DELETED,
    ORDER_STATUS_CHANGED,
    ORDER_UPDATED,
)
from shared.utils.exceptions import (
    AppException,
    DatabaseError,
    NotFoundError,
    OrderNotFoundError,
    TableNotFoundError,
)
from shared.utils.schemas import (
    CreateOrderRequest,
    LineItemInput,
    OrderOutput,
    UpdateOrderRequest,
)
from shared.utils.validators import sanitize_text, updatable_fields, validate_payload
from ordering.models import Order, OrderItem, OrderItemModifier
from ordering.repositories import OrderItemRepository, OrderRepository, TableRepository
from ordering.services.events import Notifier, get_notifier
from .rollup import OrderRollupEngine, RollupResult

CENT = Decimal("0.01")


def compute_line_subtotal(line: LineItemInput) -> Decimal:
    """(unit price + modifier prices) x quantity, rounded to cents."""
    unit = line.unit_price + sum((m.price for m in line.modifiers), Decimal("0"))
    return (unit * line.quantity).quantize(CENT)


class OrderService:
    """
    Domain service for Order operations.

    Every public method owns its transaction: it commits on success and
    rolls back on any failure. Notifications are sent after commit.
    """

    def __init__(self, db: Session, notifier: Notifier | None = None):
        self._db = db
        self._notifier = notifier or get_notifier()
        self._orders = OrderRepository(db)
        self._items = OrderItemRepository(db)
        self._tables = TableRepository(db)
        self._rollup = OrderRollupEngine(db)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(self, request: CreateOrderRequest) -> Order:
        """
        Create an order and all of its lines atomically.

        The header is inserted first (status PENDING), then each line with
        status INCOMING. Any storage failure rolls back everything.

        Raises:
            TableNotFoundError: No active table has that number.
            DatabaseError: A storage operation failed; nothing was written.
        """
        try:
            table = self._tables.find_active_by_number(request.table_number, request.venue_id)
            if table is None:
                self._db.rollback()
                raise TableNotFoundError(request.table_number, venue_id=request.venue_id)

            order = Order(
                table_id=table.id,
                user_id=request.user_id,
                status=INITIAL_ORDER_STATUS.value,
                total_price=request.total_price,
                remarks=sanitize_text(request.remarks, Limits.MAX_REMARKS_LENGTH),
            )
            self._db.add(order)
            self._db.flush()

            # Flush per line so a bad line fails where it is, after the header
            for line in request.items:
                item = OrderItem(
                    order_id=order.id,
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_subtotal=compute_line_subtotal(line),
                    status=INITIAL_ITEM_STATUS.value,
                    notes=sanitize_text(line.notes, Limits.MAX_REMARKS_LENGTH),
                )
                item.modifiers = [
                    OrderItemModifier(
                        option_id=m.option_id,
                        option_name=m.name,
                        price_modifier=m.price,
                    )
                    for m in line.modifiers
                ]
                self._db.add(item)
                self._db.flush()

            safe_commit(self._db)
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError(
                "order creation",
                table_number=request.table_number,
                error=str(e),
            ) from e

        self._db.refresh(order)

        logger.info(
            "Order created",
            order_id=order.id,
            table_id=order.table_id,
            items_count=len(request.items),
        )

        self._notifier.notify(
            ORDER_CREATED,
            {
                "order_id": order.id,
                "table_id": order.table_id,
                "user_id": order.user_id,
                "entity": {
                    "status": order.status,
                    "total_price": str(order.total_price),
                    "items_count": len(request.items),
                },
            },
        )
        return order

    def create_order_from_payload(self, payload: Mapping[str, Any]) -> Order:
        """
        Validate a raw payload, then create the order.

        Raises:
            ValidationError: Malformed payload; nothing was touched.
        """
        request = validate_payload(CreateOrderRequest, payload)
        return self.create_order(request)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_order(self, order_id: int) -> OrderOutput:
        """Get an order with its lines and modifiers."""
        order = self._orders.get(order_id, with_items=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        return OrderOutput.model_validate(order)

    # =========================================================================
    # Administrative edits
    # =========================================================================

    def update_order(self, order_id: int, payload: Mapping[str, Any] | UpdateOrderRequest) -> OrderOutput:
        """
        Update table, total or remarks. Status is derived, never edited here.

        Raises:
            NoUpdatableFieldsError: Nothing recognized to update.
            OrderNotFoundError, NotFoundError: Order or new table missing.
            DatabaseError: Storage failure.
        """
        values = updatable_fields(
            UpdateOrderRequest, payload, "Order", required=("table_id", "total_price")
        )
        if "remarks" in values:
            values["remarks"] = sanitize_text(values["remarks"], Limits.MAX_REMARKS_LENGTH)

        try:
            if self._orders.lock(order_id) is None:
                raise OrderNotFoundError(order_id)
            if "table_id" in values and self._tables.find_active(values["table_id"]) is None:
                raise NotFoundError("Table", values["table_id"])

            order = self._orders.update_fields(order_id, values)
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("order update", order_id=order_id, error=str(e)) from e

        logger.info("Order updated", order_id=order_id, fields=sorted(values))

        self._notifier.notify(
            ORDER_UPDATED,
            {
                "order_id": order_id,
                "table_id": order.table_id,
                "user_id": order.user_id,
                "entity": {"fields": sorted(values)},
            },
        )
        return self.get_order(order_id)

    def delete_order(self, order_id: int) -> None:
        """
        Hard delete an order. Lines and modifiers go with it (ON DELETE CASCADE).

        The lines are locked before the order, the same order status changes use.
        """
        try:
            self._items.lock_for_order(order_id)
            order = self._orders.lock(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            table_id, user_id = order.table_id, order.user_id

            self._orders.delete(order_id)
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("order deletion", order_id=order_id, error=str(e)) from e

        logger.info("Order deleted", order_id=order_id)

        self._notifier.notify(
            ORDER_DELETED,
            {"order_id": order_id, "table_id": table_id, "user_id": user_id},
        )

    def refresh_status(self, order_id: int) -> RollupResult:
        """Recompute the order status from its lines and commit it."""
        try:
            result = self._rollup.rollup(order_id)
            order = self._orders.find_by_id(order_id)
            table_id, user_id = order.table_id, order.user_id
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("order status refresh", order_id=order_id, error=str(e)) from e

        if result.changed:
            self._notifier.notify(
                ORDER_STATUS_CHANGED,
                {
                    "order_id": order_id,
                    "table_id": table_id,
                    "user_id": user_id,
                    "entity": {
                        "status": result.current.value,
                        "previous_status": result.previous.value,
                    },
                },
            )
        return result
