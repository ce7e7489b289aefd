"""
Custom Order Item Domain Service.

Custom items are staff-entered lines for a stall/table pair (e.g. an off-menu
request). They share the item status lifecycle but have no parent order, so
their status changes never trigger a rollup. Status changes go through
OrderItemStatusService with ItemKind.CUSTOM.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.constants import INITIAL_ITEM_STATUS, ItemKind, Limits
from shared.config.logging import kitchen_logger as logger
from shared.infrastructure.db import safe_commit
from shared.infrastructure.events import CUSTOM_ORDER_ITEM_CREATED
from shared.utils.exceptions import (
    AppException,
    DatabaseError,
    NotFoundError,
    OrderItemNotFoundError,
    StallNotFoundError,
)
from shared.utils.schemas import (
    CreateCustomOrderItemRequest,
    CustomOrderItemOutput,
    UpdateCustomOrderItemRequest,
)
from shared.utils.validators import sanitize_text, updatable_fields, validate_payload
from ordering.models import CustomOrderItem
from ordering.repositories import OrderItemRepository, StallRepository, TableRepository
from ordering.services.events import Notifier, get_notifier


class CustomOrderItemService:
    """CRUD for custom order items."""

    def __init__(self, db: Session, notifier: Notifier | None = None):
        self._db = db
        self._notifier = notifier or get_notifier()
        self._items = OrderItemRepository(db, ItemKind.CUSTOM)
        self._stalls = StallRepository(db)
        self._tables = TableRepository(db)

    def _require_stall_and_table(self, stall_id: int | None, table_id: int | None) -> None:
        if stall_id is not None and self._stalls.find_active(stall_id) is None:
            raise StallNotFoundError(stall_id)
        if table_id is not None and self._tables.find_active(table_id) is None:
            raise NotFoundError("Table", table_id)

    def create(self, payload: Mapping[str, Any] | CreateCustomOrderItemRequest) -> CustomOrderItemOutput:
        """
        Create a custom item with status INCOMING in its own transaction.

        Raises:
            ValidationError: Malformed payload.
            StallNotFoundError, NotFoundError: Stall or table missing or inactive.
            DatabaseError: Storage failure; nothing was written.
        """
        request = validate_payload(CreateCustomOrderItemRequest, payload)

        try:
            self._require_stall_and_table(request.stall_id, request.table_id)

            item = CustomOrderItem(
                stall_id=request.stall_id,
                table_id=request.table_id,
                user_id=request.user_id,
                name=request.name.strip(),
                status=INITIAL_ITEM_STATUS.value,
                quantity=request.quantity,
                price=request.price,
                remarks=sanitize_text(request.remarks, Limits.MAX_REMARKS_LENGTH),
            )
            self._db.add(item)
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("custom order item creation", stall_id=request.stall_id, error=str(e)) from e

        self._db.refresh(item)
        output = CustomOrderItemOutput.model_validate(item)

        logger.info(
            "Custom order item created",
            item_id=item.id,
            stall_id=item.stall_id,
            table_id=item.table_id,
        )

        self._notifier.notify(
            CUSTOM_ORDER_ITEM_CREATED,
            {
                "item_id": item.id,
                "stall_id": item.stall_id,
                "table_id": item.table_id,
                "user_id": item.user_id,
                "entity": {
                    "name": item.name,
                    "quantity": item.quantity,
                    "status": item.status,
                },
            },
        )
        return output

    def get(self, item_id: int) -> CustomOrderItemOutput:
        item = self._items.get(item_id)
        if item is None:
            raise OrderItemNotFoundError(item_id, ItemKind.CUSTOM.value)
        return CustomOrderItemOutput.model_validate(item)

    def update(
        self,
        item_id: int,
        payload: Mapping[str, Any] | UpdateCustomOrderItemRequest,
    ) -> CustomOrderItemOutput:
        """
        Update the editable fields of a custom item. Status is not editable here.

        Raises:
            NoUpdatableFieldsError: Nothing recognized to update.
            OrderItemNotFoundError: Unknown item.
        """
        values = updatable_fields(
            UpdateCustomOrderItemRequest,
            payload,
            "Custom Order Item",
            required=("stall_id", "table_id", "name", "quantity", "price"),
        )
        if "name" in values:
            values["name"] = values["name"].strip()
        if "remarks" in values:
            values["remarks"] = sanitize_text(values["remarks"], Limits.MAX_REMARKS_LENGTH)

        try:
            if self._items.get_current_status_and_parent(item_id, lock=True) is None:
                raise OrderItemNotFoundError(item_id, ItemKind.CUSTOM.value)
            self._require_stall_and_table(values.get("stall_id"), values.get("table_id"))

            item = self._items.update_fields(item_id, values)
            output = CustomOrderItemOutput.model_validate(item)
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("custom order item update", item_id=item_id, error=str(e)) from e

        logger.info("Custom order item updated", item_id=item_id, fields=sorted(values))
        return output

    def delete(self, item_id: int) -> None:
        try:
            if not self._items.delete(item_id):
                raise OrderItemNotFoundError(item_id, ItemKind.CUSTOM.value)
            safe_commit(self._db)
        except AppException:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DatabaseError("custom order item deletion", item_id=item_id, error=str(e)) from e

        logger.info("Custom order item deleted", item_id=item_id)
