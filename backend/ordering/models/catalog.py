"""
Catalog Model: MenuItem.

The catalog is managed elsewhere; the ordering engine only references it.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .venue import Stall


class MenuItem(TimestampMixin, Base):
    """A sellable item on a stall's menu."""

    __tablename__ = "menu_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    stall_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("stall.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    stall: Mapped["Stall"] = relationship(back_populates="menu_items")

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_menu_item_price_non_negative"),
    )
