"""
Tests for CustomOrderItemService and custom item status changes.
"""

from decimal import Decimal

import pytest
from sqlalchemy import delete, select

from shared.config.constants import ItemKind, OrderItemStatus
from shared.infrastructure.events import (
    CUSTOM_ORDER_ITEM_CREATED,
    CUSTOM_ORDER_ITEM_STATUS_CHANGED,
)
from shared.utils.exceptions import (
    InvalidTransitionError,
    NoUpdatableFieldsError,
    NotFoundError,
    OrderItemNotFoundError,
    StallNotFoundError,
    ValidationError,
)
from ordering.models import CustomOrderItem, Order, Stall
from ordering.services.domain import CustomOrderItemService, OrderItemStatusService, OrderRollupEngine


@pytest.fixture
def custom_payload(seed_stall, seed_table):
    return {
        "stall_id": seed_stall.id,
        "table_id": seed_table.id,
        "user_id": 7,
        "name": "  Off-menu fried rice ",
        "quantity": 2,
        "price": "6.50",
        "remarks": "less oil",
    }


@pytest.fixture
def custom_item(db_session, fake_notifier, custom_payload):
    item = CustomOrderItemService(db_session, fake_notifier).create(custom_payload)
    fake_notifier.sent.clear()
    return item


class TestCreate:

    def test_creates_incoming_item(self, db_session, fake_notifier, custom_payload):
        output = CustomOrderItemService(db_session, fake_notifier).create(custom_payload)

        assert output.id is not None
        assert output.status is OrderItemStatus.INCOMING
        assert output.name == "Off-menu fried rice"
        assert output.price == Decimal("6.50")
        assert fake_notifier.topics == [CUSTOM_ORDER_ITEM_CREATED]
        assert fake_notifier.payloads(CUSTOM_ORDER_ITEM_CREATED)[0]["stall_id"] == output.stall_id

    def test_inactive_stall_rejected(self, db_session, fake_notifier, custom_payload, seed_stall):
        seed_stall.is_active = False
        db_session.commit()

        with pytest.raises(StallNotFoundError):
            CustomOrderItemService(db_session, fake_notifier).create(custom_payload)

        assert db_session.scalars(select(CustomOrderItem)).all() == []

    def test_unknown_table_rejected(self, db_session, fake_notifier, custom_payload):
        custom_payload["table_id"] = 404

        with pytest.raises(NotFoundError):
            CustomOrderItemService(db_session, fake_notifier).create(custom_payload)

    def test_invalid_quantity_rejected(self, db_session, fake_notifier, custom_payload):
        custom_payload["quantity"] = 0

        with pytest.raises(ValidationError):
            CustomOrderItemService(db_session, fake_notifier).create(custom_payload)


class TestReadUpdateDelete:

    def test_get(self, db_session, fake_notifier, custom_item):
        output = CustomOrderItemService(db_session, fake_notifier).get(custom_item.id)
        assert output.remarks == "less oil"

    def test_get_unknown(self, db_session, fake_notifier, seed_table):
        with pytest.raises(OrderItemNotFoundError) as exc_info:
            CustomOrderItemService(db_session, fake_notifier).get(1234)

        assert "Custom Order Item" in exc_info.value.detail

    def test_update_fields(self, db_session, fake_notifier, custom_item):
        output = CustomOrderItemService(db_session, fake_notifier).update(
            custom_item.id, {"quantity": 3, "remarks": None}
        )

        assert output.quantity == 3
        assert output.remarks is None

    def test_update_status_is_not_editable(self, db_session, fake_notifier, custom_item):
        with pytest.raises(NoUpdatableFieldsError):
            CustomOrderItemService(db_session, fake_notifier).update(custom_item.id, {"status": "SERVED"})

    def test_update_to_unknown_stall(self, db_session, fake_notifier, custom_item):
        with pytest.raises(StallNotFoundError):
            CustomOrderItemService(db_session, fake_notifier).update(custom_item.id, {"stall_id": 55})

    def test_update_unknown_item(self, db_session, fake_notifier, seed_table):
        with pytest.raises(OrderItemNotFoundError):
            CustomOrderItemService(db_session, fake_notifier).update(999, {"quantity": 1})

    def test_delete(self, db_session, fake_notifier, custom_item):
        service = CustomOrderItemService(db_session, fake_notifier)

        service.delete(custom_item.id)

        with pytest.raises(OrderItemNotFoundError):
            service.get(custom_item.id)

    def test_delete_unknown(self, db_session, fake_notifier, seed_table):
        with pytest.raises(OrderItemNotFoundError):
            CustomOrderItemService(db_session, fake_notifier).delete(999)

    def test_stall_delete_cascades(self, db_session, fake_notifier, custom_item, seed_stall):
        db_session.execute(delete(Stall).where(Stall.id == seed_stall.id))
        db_session.commit()

        assert db_session.scalars(select(CustomOrderItem)).all() == []


class TestCustomStatus:
    """Custom items share the lifecycle but never touch an order."""

    def test_full_lifecycle(self, db_session, fake_notifier, custom_item):
        service = OrderItemStatusService(db_session, fake_notifier)

        first = service.advance_item_status(custom_item.id, ItemKind.CUSTOM)
        second = service.advance_item_status(custom_item.id, ItemKind.CUSTOM)

        assert first.status is OrderItemStatus.PREPARING
        assert second.status is OrderItemStatus.SERVED
        assert second.order_id is None
        assert second.order_status is None
        assert fake_notifier.topics == [CUSTOM_ORDER_ITEM_STATUS_CHANGED] * 2

        with pytest.raises(InvalidTransitionError):
            service.advance_item_status(custom_item.id, ItemKind.CUSTOM)

    def test_no_rollup(self, db_session, fake_notifier, custom_item, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("rollup must not run for custom items")

        monkeypatch.setattr(OrderRollupEngine, "rollup_in_savepoint", fail)
        service = OrderItemStatusService(db_session, fake_notifier)

        service.cancel_item(custom_item.id, ItemKind.CUSTOM)

        assert db_session.scalars(select(Order)).all() == []

    def test_revert(self, db_session, fake_notifier, custom_item):
        service = OrderItemStatusService(db_session, fake_notifier)
        service.advance_item_status(custom_item.id, "CUSTOM")

        change = service.revert_item_status(custom_item.id, "CUSTOM")

        assert change.status is OrderItemStatus.INCOMING
        assert change.kind is ItemKind.CUSTOM

    def test_event_targets_stall_kitchen(self, db_session, fake_notifier, custom_item):
        OrderItemStatusService(db_session, fake_notifier).advance_item_status(custom_item.id, ItemKind.CUSTOM)

        payload = fake_notifier.payloads(CUSTOM_ORDER_ITEM_STATUS_CHANGED)[0]
        assert payload["stall_id"] == custom_item.stall_id
        assert payload["table_id"] == custom_item.table_id
        assert "order_id" not in payload

    def test_standard_id_is_not_a_custom_id(self, db_session, fake_notifier, seed_table):
        with pytest.raises(OrderItemNotFoundError):
            OrderItemStatusService(db_session, fake_notifier).advance_item_status(1, ItemKind.CUSTOM)
