"""
Venue Repositories - lookups for tables and stalls.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from ordering.models import Stall, Table
from .base import BaseRepository


class TableRepository(BaseRepository[Table]):

    @property
    def model(self) -> type[Table]:
        return Table

    def find_active_by_number(self, table_number: str, venue_id: int | None = None) -> Table | None:
        """
        Resolve a printed table number to an active table.

        Without venue_id the lowest-ID active match wins; callers serving more
        than one venue should always pass venue_id.
        """
        query = select(Table).where(
            Table.table_number == table_number.strip(),
            Table.is_active.is_(True),
        )
        if venue_id is not None:
            query = query.where(Table.venue_id == venue_id)
        return self._db.scalars(query.order_by(Table.id).limit(1)).first()

    def find_active(self, table_id: int) -> Table | None:
        table = self.find_by_id(table_id)
        if table is None or not table.is_active:
            return None
        return table


class StallRepository(BaseRepository[Stall]):

    @property
    def model(self) -> type[Stall]:
        return Stall

    def find_active(self, stall_id: int) -> Stall | None:
        stall = self.find_by_id(stall_id)
        if stall is None or not stall.is_active:
            return None
        return stall


def get_table_repository(db: Session) -> TableRepository:
    return TableRepository(db)


def get_stall_repository(db: Session) -> StallRepository:
    return StallRepository(db)
