"""
Shared Pydantic schemas for order commands and views.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from shared.config.constants import Limits, OrderItemStatus, OrderStatus, ItemKind


# =============================================================================
# Order Creation
# =============================================================================


class ModifierInput(BaseModel):
    """A selected modifier option on a line item (e.g. "extra cheese")."""

    option_id: int
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    price: Decimal = Field(default=Decimal("0"), ge=Limits.MIN_PRICE, le=Limits.MAX_PRICE)


class LineItemInput(BaseModel):
    """Input for a single line of a new order."""

    item_id: int
    quantity: int = Field(ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)
    unit_price: Decimal = Field(ge=Limits.MIN_PRICE, le=Limits.MAX_PRICE)
    modifiers: list[ModifierInput] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=Limits.MAX_REMARKS_LENGTH)


class CreateOrderRequest(BaseModel):
    """Request to place an order at a table, identified by its printed number."""

    table_number: str = Field(min_length=1, max_length=Limits.MAX_TABLE_NUMBER_LENGTH)
    total_price: Decimal = Field(ge=Limits.MIN_PRICE)
    items: list[LineItemInput] = Field(min_length=1, max_length=Limits.MAX_ITEMS_PER_ORDER)
    venue_id: int | None = None
    user_id: int | None = None
    remarks: str | None = Field(default=None, max_length=Limits.MAX_REMARKS_LENGTH)


# =============================================================================
# Field Updates
# =============================================================================
# Unknown keys are dropped; an update left with no fields is rejected by the service.


class UpdateOrderRequest(BaseModel):
    """Administrative edit of an order. Status is never editable here."""

    table_id: int | None = None
    total_price: Decimal | None = Field(default=None, ge=Limits.MIN_PRICE)
    remarks: str | None = Field(default=None, max_length=Limits.MAX_REMARKS_LENGTH)


class UpdateOrderItemRequest(BaseModel):
    """Edit of a standard order line."""

    quantity: int | None = Field(default=None, ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)
    unit_price: Decimal | None = Field(default=None, ge=Limits.MIN_PRICE, le=Limits.MAX_PRICE)
    notes: str | None = Field(default=None, max_length=Limits.MAX_REMARKS_LENGTH)


class CreateCustomOrderItemRequest(BaseModel):
    """Staff-entered line for a stall/table pair."""

    stall_id: int
    table_id: int
    user_id: int | None = None
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    quantity: int = Field(ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)
    price: Decimal = Field(ge=Limits.MIN_PRICE, le=Limits.MAX_PRICE)
    remarks: str | None = Field(default=None, max_length=Limits.MAX_REMARKS_LENGTH)


class UpdateCustomOrderItemRequest(BaseModel):
    """Edit of a custom order line. Status goes through the status operations."""

    stall_id: int | None = None
    table_id: int | None = None
    user_id: int | None = None
    name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    quantity: int | None = Field(default=None, ge=Limits.MIN_QUANTITY, le=Limits.MAX_QUANTITY)
    price: Decimal | None = Field(default=None, ge=Limits.MIN_PRICE, le=Limits.MAX_PRICE)
    remarks: str | None = Field(default=None, max_length=Limits.MAX_REMARKS_LENGTH)


# =============================================================================
# Views
# =============================================================================


class OrderItemModifierOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    option_id: int
    option_name: str
    price_modifier: Decimal


class OrderItemOutput(BaseModel):
    """Output for a single line of an order."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    item_id: int
    quantity: int
    unit_price: Decimal
    line_subtotal: Decimal
    status: OrderItemStatus
    notes: str | None = None
    modifiers: list[OrderItemModifierOutput] = Field(default_factory=list)


class OrderOutput(BaseModel):
    """Output for an order with its lines."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    table_id: int
    user_id: int | None = None
    status: OrderStatus
    total_price: Decimal
    remarks: str | None = None
    created_at: datetime | None = None
    items: list[OrderItemOutput] = Field(default_factory=list)


class CustomOrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    stall_id: int
    table_id: int
    user_id: int | None = None
    name: str
    status: OrderItemStatus
    quantity: int
    price: Decimal
    remarks: str | None = None
    created_at: datetime | None = None


class ItemStatusChange(BaseModel):
    """Result of advancing, reverting or cancelling an item."""

    item_id: int
    kind: ItemKind
    previous_status: OrderItemStatus
    status: OrderItemStatus
    changed: bool = True
    order_id: int | None = None
    order_status: OrderStatus | None = None
    order_status_changed: bool = False
