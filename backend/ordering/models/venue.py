"""
Venue Models: Venue, Table, Stall.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .catalog import MenuItem
    from .order import Order


class Venue(TimestampMixin, Base):
    """A food court or restaurant. Scopes tables and stalls."""

    __tablename__ = "venue"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    tables: Mapped[list["Table"]] = relationship(back_populates="venue")
    stalls: Mapped[list["Stall"]] = relationship(back_populates="venue")


class Table(TimestampMixin, Base):
    """
    Physical table in a venue.
    Guests identify it by the printed table_number (often via a QR code).
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "dining_table"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    venue_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("venue.id", ondelete="CASCADE"), nullable=False, index=True
    )
    table_number: Mapped[str] = mapped_column(Text, nullable=False)  # "12", "T-3"
    qr_code: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    venue: Mapped["Venue"] = relationship(back_populates="tables")
    orders: Mapped[list["Order"]] = relationship(back_populates="table")

    __table_args__ = (
        UniqueConstraint("venue_id", "table_number", name="uq_table_venue_number"),
        Index("ix_table_number", "table_number"),
    )

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, table_number='{self.table_number}', venue_id={self.venue_id})>"


class Stall(TimestampMixin, Base):
    """A kitchen/vendor inside a venue. Prepares items and owns a kitchen display."""

    __tablename__ = "stall"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    venue_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("venue.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    venue: Mapped["Venue"] = relationship(back_populates="stalls")
    menu_items: Mapped[list["MenuItem"]] = relationship(back_populates="stall")
