"""
Order Models: Order, OrderItem, OrderItemModifier, CustomOrderItem.

Statuses are stored as text using the values of the enums in
shared.config.constants.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import INITIAL_ITEM_STATUS, INITIAL_ORDER_STATUS

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .catalog import MenuItem
    from .venue import Stall, Table


class Order(TimestampMixin, Base):
    """
    An order placed at a table.
    The status is an aggregate of the item statuses, kept by the rollup engine.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("dining_table.id"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, index=True)
    status: Mapped[str] = mapped_column(
        Text, default=INITIAL_ORDER_STATUS.value, nullable=False, index=True
    )  # PENDING, COMPLETED, CANCELLED
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(Text)

    table: Mapped["Table"] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="chk_order_total_non_negative"),
        Index("ix_order_table_status", "table_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status='{self.status}', table_id={self.table_id})>"


class OrderItem(TimestampMixin, Base):
    """
    A single line of an order.
    Stores the unit price at the time of order for historical accuracy.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("menu_item.id"), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    line_subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        Text, default=INITIAL_ITEM_STATUS.value, nullable=False, index=True
    )  # INCOMING, PREPARING, SERVED, CANCELLED
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_qty_positive"),
        CheckConstraint("unit_price >= 0", name="chk_order_item_price_non_negative"),
    )

    order: Mapped["Order"] = relationship(back_populates="items")
    menu_item: Mapped["MenuItem"] = relationship()
    modifiers: Mapped[list["OrderItemModifier"]] = relationship(
        back_populates="order_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItemModifier.id",
    )

    @property
    def parent_order_id(self) -> int:
        return self.order_id

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, status='{self.status}')>"


class OrderItemModifier(Base):
    """A modifier option chosen for an order line, priced at order time."""

    __tablename__ = "order_item_modifier"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("order_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    option_name: Mapped[str] = mapped_column(Text, nullable=False)
    price_modifier: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    order_item: Mapped["OrderItem"] = relationship(back_populates="modifiers")


class CustomOrderItem(TimestampMixin, Base):
    """
    A staff-entered line for a stall/table pair, outside any order.
    Shares the item status domain but never affects an order status.
    """

    __tablename__ = "custom_order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    stall_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("stall.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("dining_table.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, default=INITIAL_ITEM_STATUS.value, nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_custom_item_qty_positive"),
        CheckConstraint("price >= 0", name="chk_custom_item_price_non_negative"),
        Index("ix_custom_item_stall_status", "stall_id", "status"),
    )

    stall: Mapped["Stall"] = relationship()
    table: Mapped["Table"] = relationship()

    @property
    def parent_order_id(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"<CustomOrderItem(id={self.id}, stall_id={self.stall_id}, status='{self.status}')>"
